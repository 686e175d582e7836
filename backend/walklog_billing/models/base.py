"""
基础模型模块

所有表模型共用的时间工具。数据库中的时间一律使用带时区的 UTC 时间。
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """获取当前 UTC 时间"""
    return datetime.now(timezone.utc)


__all__ = ["utc_now"]
