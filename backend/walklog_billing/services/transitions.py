"""
订阅状态迁移

把 RevenueCat 生命周期事件映射为 user_profiles 上的字段变更。
这里只修改内存中的 profile 对象，持久化由调用方负责。

| 事件                        | 等级     | 到期时间                  |
|-----------------------------|----------|---------------------------|
| INITIAL_PURCHASE / RENEWAL  | premium  | expiration_at_ms          |
| CANCELLATION                | premium  | expiration_at_ms（到期前仍可用）|
| EXPIRATION                  | free     | ""                        |
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any

from walklog_billing.api.errors import TransitionError
from walklog_billing.enums import SubscriptionTier, WebhookEventType
from walklog_billing.models import UserProfile

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def iso_from_ms(value: Any) -> str:
    """
    毫秒时间戳转 ISO-8601 字符串（UTC，毫秒精度，Z 结尾）

    缺失、非数字、非有限值、<=0 或超出可表示范围时返回空字符串。

    示例：
        >>> iso_from_ms(1700000000000)
        '2023-11-14T22:13:20.000Z'
    """
    if value is None or isinstance(value, bool):
        return ""
    try:
        n = float(value)
    except (TypeError, ValueError):
        return ""
    if not math.isfinite(n) or n <= 0:
        return ""

    try:
        dt = _UNIX_EPOCH + timedelta(milliseconds=int(n))
    except OverflowError:
        return ""
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def apply_transition(
    profile: UserProfile,
    event_type: str,
    event: dict[str, Any],
    app_user_id: str,
    source: str,
) -> None:
    """
    按事件类型更新订阅资料

    无论事件类型如何，都会刷新 subscription_source 和
    revenuecat_app_user_id 这两个冗余字段。

    Args:
        profile: 待修改的用户订阅资料
        event_type: 规范化后的事件类型
        event: 解包后的事件对象（读取 expiration_at_ms）
        app_user_id: RevenueCat 的 app_user_id
        source: 计费系统标识

    Raises:
        TransitionError: 事件类型不受支持
    """
    if not WebhookEventType.is_supported(event_type):
        raise TransitionError(f"Unsupported event type: {event_type}")

    profile.revenuecat_app_user_id = app_user_id
    profile.subscription_source = source

    kind = WebhookEventType(event_type)
    if kind in (WebhookEventType.INITIAL_PURCHASE, WebhookEventType.RENEWAL):
        profile.subscription_tier = SubscriptionTier.premium
        profile.subscription_expires_at = iso_from_ms(event.get("expiration_at_ms"))
    elif kind == WebhookEventType.CANCELLATION:
        # 取消只是停止续费，到期前仍保留 premium
        profile.subscription_tier = SubscriptionTier.premium
        profile.subscription_expires_at = iso_from_ms(event.get("expiration_at_ms"))
    elif kind == WebhookEventType.EXPIRATION:
        profile.subscription_tier = SubscriptionTier.free
        profile.subscription_expires_at = ""


def has_premium_access(profile: UserProfile, now: datetime) -> bool:
    """premium 且未到期（没有到期时间视为长期有效）"""
    if profile.subscription_tier != SubscriptionTier.premium:
        return False
    expires_at = parse_iso(profile.subscription_expires_at)
    if expires_at is None:
        return True
    return expires_at > now
