"""
枚举类型定义模块

定义订阅与 webhook 处理中使用的枚举类型。

所有枚举都继承自 str 和 Enum，这样既可以用作字符串，又具有枚举的特性。
"""
from enum import Enum  # 枚举类型，用于定义固定的选项集合


class SubscriptionTier(str, Enum):
    """
    订阅等级枚举

    - free: 免费用户
    - premium: 付费用户（购买/续费/取消后到期前）
    """
    free = "free"
    premium = "premium"


class WebhookEventType(str, Enum):
    """
    受支持的 RevenueCat webhook 事件类型

    只有这四种事件会改变用户订阅状态，其它类型（如 TEST、BILLING_ISSUE）
    会被记录并标记为 ignored。
    """
    INITIAL_PURCHASE = "INITIAL_PURCHASE"
    RENEWAL = "RENEWAL"
    CANCELLATION = "CANCELLATION"
    EXPIRATION = "EXPIRATION"

    @classmethod
    def is_supported(cls, value: str) -> bool:
        return value in cls._value2member_map_


class BillingProvider(str, Enum):
    """
    计费服务提供方

    webhook 路径中的 provider 段必须是这里的某个值。
    """
    revenuecat = "revenuecat"
