"""
Snowflake ID 生成器

为 user_profiles 和 billing_webhook_events 生成 64 位主键：
41 位毫秒时间戳 | 10 位节点 ID | 12 位序列号。
不同实例必须配置不同的 SNOWFLAKE_NODE_ID。
"""
from __future__ import annotations

import threading
import time

from walklog_billing.core.config import settings

# 2024-01-01T00:00:00Z
_EPOCH_MS = 1704067200000
_NODE_BITS = 10
_SEQ_BITS = 12
_MAX_NODE = (1 << _NODE_BITS) - 1
_SEQ_MASK = (1 << _SEQ_BITS) - 1
# 可容忍的时钟回拨（毫秒）
_MAX_BACKWARD_MS = 5000


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class Snowflake:
    def __init__(self, *, node_id: int) -> None:
        if not 0 <= node_id <= _MAX_NODE:
            raise ValueError(f"SNOWFLAKE_NODE_ID must be between 0 and {_MAX_NODE}")
        self.node_id = node_id
        self._lock = threading.Lock()
        self._last_ms = -1
        self._seq = 0

    def _next_ms(self, after_ms: int) -> int:
        ts = _now_ms()
        while ts <= after_ms:
            time.sleep(0.0005)
            ts = _now_ms()
        return ts

    def next_id(self) -> int:
        """
        生成下一个 ID（线程安全）

        时钟小幅回拨时沿用上一次的毫秒继续递增序列号；
        回拨超过 5 秒说明节点时钟异常，直接报错。
        """
        with self._lock:
            ts = _now_ms()
            if self._last_ms - ts > _MAX_BACKWARD_MS:
                raise RuntimeError(
                    f"System clock is {self._last_ms - ts}ms behind the last issued id"
                )
            ts = max(ts, self._last_ms)

            if ts == self._last_ms:
                self._seq = (self._seq + 1) & _SEQ_MASK
                if self._seq == 0:
                    ts = self._next_ms(self._last_ms)
            else:
                self._seq = 0

            self._last_ms = ts
            return (
                ((ts - _EPOCH_MS) << (_NODE_BITS + _SEQ_BITS))
                | (self.node_id << _SEQ_BITS)
                | self._seq
            )


_generator: Snowflake | None = None
_generator_lock = threading.Lock()


def generate_id() -> int:
    """用进程级生成器生成 ID，节点号取自 SNOWFLAKE_NODE_ID"""
    global _generator
    if _generator is None:
        with _generator_lock:
            if _generator is None:
                _generator = Snowflake(node_id=settings.SNOWFLAKE_NODE_ID)
    return _generator.next_id()
