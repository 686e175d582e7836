"""
Webhook 事件模型模块

定义计费 webhook 事件审计表。
"""
from datetime import datetime

from sqlalchemy import JSON, BigInteger, Column, DateTime, ForeignKey, String, Text
from sqlmodel import Field, SQLModel

from walklog_billing.core.snowflake import generate_id

from .base import utc_now


class BillingWebhookEvent(SQLModel, table=True):
    """
    计费 Webhook 事件记录模型

    每个外部事件 ID 只有一条记录，event_id 上的唯一约束由数据库保证，
    并发重投时第二次插入会失败，这就是去重信号。
    记录在业务处理前写入（processed=False），处理结束时更新一次结果。

    字段说明：
    - id: 主键，Snowflake ID
    - event_id: 外部事件 ID（唯一），缺失时由 类型:用户:时间戳 合成
    - event_type: 规范化（大写）后的事件类型
    - app_user_id: RevenueCat 的 app_user_id
    - user_id: 解析出的用户 ID（处理成功后关联）
    - payload: 原始请求体（JSON，原样保存用于审计）
    - processed: 是否处理成功
    - processed_at: 处理结束时间
    - processing_error: 错误描述；忽略的事件为 "ignored:<类型>"
    - created_at: 接收时间
    """
    __tablename__ = "billing_webhook_events"

    id: int = Field(
        default_factory=generate_id,
        sa_column=Column(BigInteger, primary_key=True, autoincrement=False),
    )
    # 以下三个字段来自外部请求，不限制长度
    event_id: str = Field(sa_column=Column(Text, unique=True, index=True, nullable=False))
    event_type: str = Field(sa_column=Column(Text, nullable=False))
    app_user_id: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    user_id: str | None = Field(
        default=None,
        sa_column=Column(
            String(64), ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True
        ),
    )
    payload: dict | None = Field(default=None, sa_column=Column(JSON))

    processed: bool = Field(default=False)
    processed_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    processing_error: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
