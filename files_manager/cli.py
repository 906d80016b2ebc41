"""
Files Manager CLI

启动 API 服务、后台 Worker，或初始化数据库
"""

import sys
from typing import Optional

import click

from config import get_config, get_config_manager
from files_manager import __version__
from files_manager.api.logging_config import setup_logging


def _load_config(config_path: Optional[str]):
    if config_path:
        manager = get_config_manager()
        manager.config_path = config_path
        return manager.reload()
    return get_config()


def _setup_logging(config) -> None:
    setup_logging(
        log_level=config.logging.level,
        log_file=config.logging.file,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
    )


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(exists=True), default=None, help="配置文件路径")
@click.pass_context
def cli(ctx, config_path: Optional[str]):
    """Files Manager 命令行工具"""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option("--host", default=None, help="监听地址（默认读取配置）")
@click.option("--port", type=int, default=None, help="监听端口（默认读取配置）")
@click.option("--reload", is_flag=True, help="代码变更时自动重载")
@click.pass_context
def serve(ctx, host: Optional[str], port: Optional[int], reload: bool):
    """启动 API 服务"""
    import uvicorn

    config = _load_config(ctx.obj["config_path"])
    host = host or config.api.host
    port = port or config.api.port

    click.echo(f"🚀 Files Manager API: http://{host}:{port}")
    uvicorn.run(
        "files_manager.api.main:app",
        host=host,
        port=port,
        reload=reload or config.api.reload,
        workers=None if reload else config.api.workers,
    )


@cli.command()
@click.option("--once", is_flag=True, help="只处理当前队列中的任务后退出")
@click.pass_context
def worker(ctx, once: bool):
    """启动后台 Worker（缩略图与欢迎消息）"""
    from files_manager.services import build_services
    from files_manager.worker import JobWorker

    config = _load_config(ctx.obj["config_path"])
    _setup_logging(config)

    services = build_services(config)
    job_worker = JobWorker(services)

    try:
        if once:
            total = 0
            while True:
                processed = job_worker.run_once()
                if not processed:
                    break
                total += processed
            click.echo(f"✅ 已处理 {total} 个任务")
        else:
            job_worker.run()
    except KeyboardInterrupt:
        job_worker.stop()
        click.echo("\n👋 Worker 已停止")
    finally:
        services.close()


@cli.command("init-db")
@click.pass_context
def init_db(ctx):
    """创建数据库表"""
    from files_manager.db import PersistentStore

    config = _load_config(ctx.obj["config_path"])
    store = PersistentStore(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        connect_timeout=config.database.connect_timeout,
    )
    try:
        store.create_all()
        click.echo(f"✅ 数据库已初始化: {config.database.url}")
    except Exception as e:
        click.echo(f"❌ 初始化失败: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
