"""
Files Manager

多用户文件托管后端：会话令牌认证、文件访问控制与异步后处理
"""

__version__ = "1.0.0"
