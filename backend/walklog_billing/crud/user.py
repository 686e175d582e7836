"""用户身份 CRUD 操作"""
from sqlmodel import Session

from walklog_billing.models import User


def get_by_id(*, session: Session, user_id: str) -> User | None:
    """根据用户 ID 查询用户"""
    if not user_id:
        return None
    return session.get(User, user_id)


def create(*, session: Session, user_id: str, email: str | None = None) -> User:
    """创建用户身份记录"""
    user = User(id=user_id, email=email)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user
