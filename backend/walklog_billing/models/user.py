"""
用户模型模块

定义身份表（users）和订阅资料表（user_profiles）。
"""
from datetime import datetime

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String, Text
from sqlmodel import Field, SQLModel

from walklog_billing.core.snowflake import generate_id
from walklog_billing.enums import SubscriptionTier

from .base import utc_now


class User(SQLModel, table=True):
    """
    用户身份模型

    由认证服务创建，这里只读取。id 即移动端登录后的用户 ID，
    RevenueCat 的 app_user_id 通常与它相同。

    字段说明：
    - id: 主键，字符串形式的用户 ID
    - email: 邮箱（可选）
    - created_at: 创建时间
    """
    __tablename__ = "users"
    id: str = Field(sa_column=Column(String(64), primary_key=True))
    email: str | None = Field(default=None, max_length=255)

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class UserProfile(SQLModel, table=True):
    """
    用户订阅资料模型

    每个用户最多一条，在收到第一个引用该用户的 webhook 事件时惰性创建。
    只由 webhook 处理流程修改，从不删除。

    字段说明：
    - id: 主键，Snowflake ID
    - user_id: 用户 ID（外键，唯一）
    - subscription_tier: 订阅等级（free/premium）
    - subscription_expires_at: 到期时间，ISO-8601 字符串，免费用户为空字符串
    - subscription_source: 订阅来源（计费系统标识，如 "revenuecat"）
    - revenuecat_app_user_id: RevenueCat 的 app_user_id，用于反查用户
    - revenuecat_last_event: 最近一次应用的事件类型
    - revenuecat_last_event_at: 最近一次事件的发生时间（ISO-8601 字符串）
    - created_at / updated_at: 创建/更新时间
    """
    __tablename__ = "user_profiles"
    id: int = Field(
        default_factory=generate_id,
        sa_column=Column(BigInteger, primary_key=True, autoincrement=False),
    )
    user_id: str = Field(
        sa_column=Column(
            String(64),
            ForeignKey("users.id", ondelete="CASCADE"),
            unique=True,
            index=True,
            nullable=False,
        )
    )

    subscription_tier: SubscriptionTier = Field(
        default=SubscriptionTier.free, sa_column=Column(String(16), nullable=False)
    )
    subscription_expires_at: str = Field(default="", max_length=32)
    subscription_source: str = Field(default="", max_length=32)

    revenuecat_app_user_id: str = Field(
        default="", sa_column=Column(Text, index=True, nullable=False, default="")
    )
    revenuecat_last_event: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    revenuecat_last_event_at: str = Field(default="", max_length=32)

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
