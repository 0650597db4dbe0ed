from sqlalchemy import select
from sqlalchemy.orm import Session
from cms.core.security import get_password_hash
from cms.crud.base import commit, utcnow
from cms.models.user import User, UserRole


def get_by_id(session: Session, user_id: int) -> User | None:
    return session.get(User, user_id)


def get_by_username(session: Session, username: str) -> User | None:
    result = session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


def create_user(
    session: Session,
    username: str,
    email: str,
    password: str,
    role: UserRole = UserRole.EDITOR,
) -> User:
    """Insert a user with a hashed password; duplicates raise ResourceConflict."""
    user = User(
        username=username,
        email=email,
        password=get_password_hash(password),
        role=role,
    )
    session.add(user)
    commit(session, conflict_message="Username or email already exists")
    session.refresh(user)
    return user


def update_password(session: Session, user: User, new_password: str) -> None:
    user.password = get_password_hash(new_password)
    user.updated_at = utcnow()
    commit(session)
