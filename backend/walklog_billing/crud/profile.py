"""用户订阅资料 CRUD 操作"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from walklog_billing.crud import user as user_crud
from walklog_billing.enums import SubscriptionTier
from walklog_billing.models import UserProfile

logger = logging.getLogger(__name__)


def get_by_user_id(*, session: Session, user_id: str) -> UserProfile | None:
    """根据用户 ID 查询订阅资料"""
    statement = select(UserProfile).where(UserProfile.user_id == user_id)
    return session.exec(statement).first()


def get_by_app_user_id(*, session: Session, app_user_id: str) -> UserProfile | None:
    """根据 RevenueCat app_user_id 查询订阅资料"""
    statement = select(UserProfile).where(UserProfile.revenuecat_app_user_id == app_user_id)
    return session.exec(statement).first()


def _create_for_user(*, session: Session, app_user_id: str, source: str) -> UserProfile | None:
    user = user_crud.get_by_id(session=session, user_id=app_user_id)
    if not user:
        return None

    profile = UserProfile(
        user_id=user.id,
        subscription_tier=SubscriptionTier.free,
        subscription_source=source,
        revenuecat_app_user_id=app_user_id,
    )
    session.add(profile)
    try:
        session.commit()
    except IntegrityError:
        # 并发请求已为该用户创建资料
        session.rollback()
        return get_by_user_id(session=session, user_id=user.id)
    session.refresh(profile)
    logger.info(f"Created subscription profile for user {user.id}")
    return profile


def resolve(*, session: Session, app_user_id: str, source: str) -> UserProfile | None:
    """
    根据 app_user_id 查找或创建订阅资料

    查找顺序（命中即返回）：
    1. user_id 等于 app_user_id 的资料
    2. revenuecat_app_user_id 等于 app_user_id 的资料
    3. 存在 id 为 app_user_id 的用户时，创建一条 free 资料
    每一步的数据库错误只记录日志并继续下一步；全部失败返回 None。

    Args:
        session: 数据库会话
        app_user_id: RevenueCat 的 app_user_id
        source: 新建资料时写入的计费系统标识

    Returns:
        用户订阅资料，无法映射到已知用户时为 None
    """
    if not app_user_id:
        return None

    steps = (
        ("user_id", lambda: get_by_user_id(session=session, user_id=app_user_id)),
        ("app_user_id", lambda: get_by_app_user_id(session=session, app_user_id=app_user_id)),
        ("create", lambda: _create_for_user(session=session, app_user_id=app_user_id, source=source)),
    )
    for name, step in steps:
        try:
            profile = step()
        except SQLAlchemyError as e:
            session.rollback()
            logger.warning(f"Profile lookup by {name} failed for {app_user_id}: {e}")
            continue
        if profile is not None:
            return profile
    return None
