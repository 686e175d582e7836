"""
数据库模型定义模块

本模块使用 SQLModel 定义所有数据库表结构。

模型按功能拆分：
- user.py: 用户身份与订阅资料模型
- webhook_event.py: 计费 webhook 事件审计模型
"""
from sqlmodel import SQLModel

from .base import utc_now
from .user import User, UserProfile
from .webhook_event import BillingWebhookEvent

__all__ = [
    "SQLModel",
    "utc_now",
    "User",
    "UserProfile",
    "BillingWebhookEvent",
]
