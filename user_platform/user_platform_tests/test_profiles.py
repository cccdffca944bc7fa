"""Tests for the profile read path."""
from datetime import datetime

import pytest

from user_platform.user_platform.user_service.auth import AuthenticatedIdentity
from user_platform.user_platform.user_service.exceptions import UserNotFound
from user_platform.user_platform.user_service.models import AccountStatus, User, UserProfile
from user_platform.user_platform.user_service.profiles import get_user_profile


@pytest.fixture
def test_user(db_session):
    """Create a registered user with a profile."""
    user = User(
        user_id="0b8f7a52-2c6e-4c3a-8d0e-6f1b2a3c4d5e",
        email="test@example.com",
        account_status=AccountStatus.ACTIVE,
        email_verified=False,
    )
    user.profile = UserProfile(first_name="Test", last_name="User")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def test_get_user_profile_returns_joined_record(db_session, test_user):
    profile = get_user_profile(db_session, AuthenticatedIdentity(user_id=test_user.user_id))

    assert profile.user_id == test_user.user_id
    assert profile.email == "test@example.com"
    assert profile.first_name == "Test"
    assert profile.last_name == "User"
    assert profile.created_at == test_user.created_at


def test_get_user_profile_unknown_user(db_session, test_user):
    with pytest.raises(UserNotFound) as exc_info:
        get_user_profile(db_session, AuthenticatedIdentity(user_id="not-a-known-id"))

    assert exc_info.value.message == "User profile not found"


def test_get_user_profile_soft_deleted_user(db_session, test_user):
    test_user.deleted_at = datetime.utcnow()
    test_user.account_status = AccountStatus.DELETED
    db_session.commit()

    with pytest.raises(UserNotFound):
        get_user_profile(db_session, AuthenticatedIdentity(user_id=test_user.user_id))
