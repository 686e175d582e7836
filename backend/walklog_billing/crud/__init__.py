"""CRUD 操作模块"""
from .profile import get_by_app_user_id as get_profile_by_app_user_id
from .profile import get_by_user_id as get_profile_by_user_id
from .profile import resolve as resolve_profile
from .user import create as create_user
from .user import get_by_id as get_user_by_id
from .webhook_event import create as create_webhook_event
from .webhook_event import get_by_event_id as get_webhook_event
from .webhook_event import mark_outcome as mark_webhook_event_outcome

__all__ = [
    "create_user",
    "get_user_by_id",
    "get_profile_by_user_id",
    "get_profile_by_app_user_id",
    "resolve_profile",
    "create_webhook_event",
    "get_webhook_event",
    "mark_webhook_event_outcome",
]
