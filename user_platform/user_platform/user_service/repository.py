"""
Local user store queries.
"""
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from .models import User, UserProfile


def email_exists(db: Session, email: str) -> bool:
    """Return True if a non-deleted user owns ``email``, ignoring case."""
    query = db.query(User.user_id).filter(
        func.lower(User.email) == email.lower(),
        User.deleted_at.is_(None)
    )
    return db.query(query.exists()).scalar()


def find_user_with_profile(db: Session, user_id: str) -> Optional[User]:
    """Load a non-deleted user with its profile joined."""
    return (
        db.query(User)
        .options(joinedload(User.profile))
        .filter(User.user_id == user_id, User.deleted_at.is_(None))
        .first()
    )


def add_user_with_profile(db: Session, user: User, profile: UserProfile) -> None:
    """
    Persist a user and its profile in one transaction.

    Nothing touches the database after the commit, so a raised error always
    means the rows were not written.
    """
    user.profile = profile
    db.add(user)
    db.commit()
