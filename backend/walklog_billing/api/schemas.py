"""
API 请求/响应数据模型（Schema）

定义 webhook 接口和查询接口的数据结构。
使用 Pydantic 进行数据验证和序列化，这些模型不是数据库表。
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from walklog_billing.enums import SubscriptionTier

# ============================================================
# 通用响应模型
# ============================================================


class ApiEnvelope(BaseModel):
    """
    API 统一响应格式

    - code: 状态码（0 表示成功，非 0 表示错误）
    - message: 消息
    - data: 业务数据

    示例响应：
        {"code": 0, "message": "success", "data": {...}}
        {"code": 401101, "message": "Invalid webhook token", "data": None}
    """
    code: int = 0
    message: str = "success"
    data: Any | None = None


# ============================================================
# Webhook 相关模型
# ============================================================


class RevenueCatWebhookEvent(BaseModel):
    """
    规范化后的 webhook 事件

    无论请求体是 {type, app_user_id, ...} 还是 {event: {...}}，
    解析后都得到这一种结构，后续流程只读取它。
    """
    model_config = ConfigDict(frozen=True)

    event_id: str
    event_type: str  # 大写
    app_user_id: str = ""
    event: dict[str, Any]  # 解包后的事件对象
    payload: dict[str, Any]  # 原始请求体，原样保存


class WebhookAck(BaseModel):
    """
    webhook 成功响应

    三种形态：
        {"ok": true, "duplicate": true}
        {"ok": true, "ignored": true}
        {"ok": true, "processed": true, "eventType": "RENEWAL"}
    """
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    duplicate: bool | None = None
    ignored: bool | None = None
    processed: bool | None = None
    event_type: str | None = Field(default=None, alias="eventType")


class WebhookEventPublic(BaseModel):
    """事件审计记录"""
    event_id: str
    event_type: str
    app_user_id: str
    user_id: str | None = None
    processed: bool
    processed_at: datetime | None = None
    processing_error: str
    payload: dict[str, Any] | None = None
    created_at: datetime


class SubscriptionStatusData(BaseModel):
    """用户订阅状态"""
    user_id: str
    subscription_tier: SubscriptionTier
    subscription_expires_at: str
    subscription_source: str
    is_premium: bool
    last_event: str
    last_event_at: str
