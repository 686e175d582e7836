"""
数据库连接模块

管理数据库引擎的创建和表初始化。
"""
from sqlalchemy import Engine
from sqlmodel import SQLModel, create_engine  # SQLModel 的数据库工具

from walklog_billing import models  # noqa: F401  确保所有表模型已注册到 metadata
from walklog_billing.core.config import settings

# 创建数据库引擎（连接池）
engine = create_engine(str(settings.SQLALCHEMY_DATABASE_URI), pool_pre_ping=True)


def init_db(db_engine: Engine) -> None:
    """
    初始化数据库表

    根据 SQLModel metadata 创建缺失的表（users、user_profiles、
    billing_webhook_events），已存在的表不会被修改。

    Args:
        db_engine: 数据库引擎
    """
    SQLModel.metadata.create_all(db_engine)
