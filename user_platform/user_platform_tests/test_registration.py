"""Tests for the registration orchestrator."""
from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from user_platform.user_platform.user_service import registration
from user_platform.user_platform.user_service.exceptions import (
    CompensationFailed,
    EmailAlreadyExists,
    IdentityProviderError,
    PersistenceError,
)
from user_platform.user_platform.user_service.models import AccountStatus, User, UserProfile
from user_platform.user_platform.user_service.registration import register_user
from user_platform.user_platform.user_service.schemas import UserRegistrationRequest

KEYCLOAK_ID = "5f0c2a4e-8d1b-4f7a-9c3e-2b6d1a7e9f10"


def make_request(email="test@example.com", password="SecureP@ss123", first_name="Test", last_name="User"):
    return UserRegistrationRequest(
        email=email, password=password, first_name=first_name, last_name=last_name
    )


def add_existing_user(db, email, user_id="existing-user", deleted_at=None):
    user = User(user_id=user_id, email=email, account_status=AccountStatus.ACTIVE, deleted_at=deleted_at)
    user.profile = UserProfile(first_name="Old", last_name="Account")
    db.add(user)
    db.commit()
    return user


def test_register_user_success(db_session, identity_provider):
    identity_provider.create_account.side_effect = None
    identity_provider.create_account.return_value = KEYCLOAK_ID

    result = register_user(db_session, make_request(), identity_provider)

    assert result.user_id == KEYCLOAK_ID
    assert result.email == "test@example.com"
    assert result.first_name == "Test"
    assert result.last_name == "User"
    assert isinstance(result.created_at, datetime)

    identity_provider.create_account.assert_called_once_with(
        "test@example.com", "SecureP@ss123", "Test", "User"
    )

    user = db_session.query(User).filter(User.user_id == KEYCLOAK_ID).one()
    assert user.email == "test@example.com"
    assert user.account_status == AccountStatus.ACTIVE
    assert user.email_verified is False
    assert user.failed_login_attempts == 0
    assert user.deleted_at is None
    assert user.profile.first_name == "Test"
    assert user.profile.last_name == "User"
    assert user.profile.timezone == "UTC"
    assert user.profile.language == "en"
    assert user.profile.profile_id


def test_register_user_duplicate_email_skips_identity_provider(db_session, identity_provider):
    add_existing_user(db_session, "test@example.com")

    with pytest.raises(EmailAlreadyExists) as exc_info:
        register_user(db_session, make_request(), identity_provider)

    assert exc_info.value.message == "An account with this email already exists"
    identity_provider.create_account.assert_not_called()
    assert db_session.query(User).count() == 1


def test_register_user_email_check_is_case_insensitive(db_session, identity_provider):
    register_user(db_session, make_request(email="A@x.com"), identity_provider)

    with pytest.raises(EmailAlreadyExists):
        register_user(db_session, make_request(email="a@x.com"), identity_provider)

    assert identity_provider.create_account.call_count == 1
    assert db_session.query(User).count() == 1


def test_register_user_stores_lowercase_email_and_echoes_submitted(db_session, identity_provider):
    result = register_user(db_session, make_request(email="TEST@EXAMPLE.COM"), identity_provider)

    assert result.email == "TEST@EXAMPLE.COM"
    user = db_session.query(User).one()
    assert user.email == "test@example.com"
    identity_provider.create_account.assert_called_once_with(
        "TEST@EXAMPLE.COM", "SecureP@ss123", "Test", "User"
    )


def test_register_user_allows_email_of_soft_deleted_user(db_session, identity_provider):
    add_existing_user(db_session, "test@example.com", deleted_at=datetime.utcnow())

    result = register_user(db_session, make_request(), identity_provider)

    assert result.email == "test@example.com"
    assert db_session.query(User).count() == 2


def test_register_user_identity_provider_failure_writes_nothing(db_session, identity_provider):
    identity_provider.create_account.side_effect = IdentityProviderError("Keycloak down", status=503)

    with pytest.raises(IdentityProviderError):
        register_user(db_session, make_request(), identity_provider)

    assert db_session.query(User).count() == 0
    assert db_session.query(UserProfile).count() == 0
    identity_provider.delete_account.assert_not_called()


def test_register_user_persistence_failure_compensates(db_session, identity_provider):
    identity_provider.create_account.side_effect = None
    identity_provider.create_account.return_value = KEYCLOAK_ID
    failure = OperationalError("INSERT INTO users", {}, Exception("database is locked"))

    with patch.object(registration, "add_user_with_profile", side_effect=failure):
        with pytest.raises(PersistenceError) as exc_info:
            register_user(db_session, make_request(), identity_provider, compensate=True)

    assert not isinstance(exc_info.value, CompensationFailed)
    assert exc_info.value.external_id == KEYCLOAK_ID
    identity_provider.delete_account.assert_called_once_with(KEYCLOAK_ID)
    assert db_session.query(User).count() == 0


def test_register_user_compensation_failure(db_session, identity_provider):
    identity_provider.create_account.side_effect = None
    identity_provider.create_account.return_value = KEYCLOAK_ID
    identity_provider.delete_account.side_effect = IdentityProviderError("Keycloak down")
    failure = OperationalError("INSERT INTO users", {}, Exception("disk I/O error"))

    with patch.object(registration, "add_user_with_profile", side_effect=failure):
        with pytest.raises(CompensationFailed) as exc_info:
            register_user(db_session, make_request(), identity_provider, compensate=True)

    assert exc_info.value.external_id == KEYCLOAK_ID
    identity_provider.delete_account.assert_called_once_with(KEYCLOAK_ID)


def test_register_user_without_compensation_leaves_orphan(db_session, identity_provider):
    identity_provider.create_account.side_effect = None
    identity_provider.create_account.return_value = KEYCLOAK_ID
    failure = OperationalError("INSERT INTO users", {}, Exception("database is locked"))

    with patch.object(registration, "add_user_with_profile", side_effect=failure):
        with pytest.raises(PersistenceError) as exc_info:
            register_user(db_session, make_request(), identity_provider, compensate=False)

    assert exc_info.value.external_id == KEYCLOAK_ID
    identity_provider.delete_account.assert_not_called()


def test_register_user_concurrent_duplicate_maps_to_email_exists(db_session, identity_provider):
    # Another request committed the same address after our pre-check passed
    add_existing_user(db_session, "test@example.com")
    identity_provider.create_account.side_effect = None
    identity_provider.create_account.return_value = KEYCLOAK_ID

    with patch.object(registration, "email_exists", return_value=False):
        with pytest.raises(EmailAlreadyExists):
            register_user(db_session, make_request(email="Test@Example.com"), identity_provider, compensate=True)

    identity_provider.delete_account.assert_called_once_with(KEYCLOAK_ID)
    assert db_session.query(User).count() == 1
    assert db_session.query(User).filter(User.user_id == KEYCLOAK_ID).first() is None


def test_register_user_never_reads_back_after_commit(db_session, identity_provider):
    # A failure after the commit must not delete a fully registered account
    identity_provider.create_account.side_effect = None
    identity_provider.create_account.return_value = KEYCLOAK_ID
    failure = OperationalError("SELECT users.user_id", {}, Exception("server closed the connection"))

    with patch.object(db_session, "refresh", side_effect=failure):
        result = register_user(db_session, make_request(), identity_provider, compensate=True)

    identity_provider.delete_account.assert_not_called()
    assert result.user_id == KEYCLOAK_ID

    stored = db_session.query(User).filter(User.user_id == KEYCLOAK_ID).one()
    assert stored.created_at == result.created_at
    assert stored.profile.first_name == "Test"
