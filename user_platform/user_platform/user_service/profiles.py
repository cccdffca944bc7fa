"""
Profile read path for the authenticated caller.
"""
from dataclasses import dataclass
from datetime import datetime
import logging

from sqlalchemy.orm import Session

from .auth import AuthenticatedIdentity
from .exceptions import UserNotFound
from .repository import find_user_with_profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileResult:
    user_id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime


def get_user_profile(db: Session, identity: AuthenticatedIdentity) -> ProfileResult:
    """
    Get the profile of the authenticated caller.

    Raises:
        UserNotFound: No live user exists for the caller's id
    """
    logger.debug("Retrieving user profile for user ID: %s", identity.user_id)

    user = find_user_with_profile(db, identity.user_id)
    if user is None or user.profile is None:
        raise UserNotFound()

    return ProfileResult(
        user_id=user.user_id,
        email=user.email,
        first_name=user.profile.first_name,
        last_name=user.profile.last_name,
        created_at=user.created_at,
    )
