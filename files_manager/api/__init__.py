"""
HTTP API 模块
"""
