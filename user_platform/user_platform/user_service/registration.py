"""
User registration.

Registration spans two stores that share no transaction: the identity
provider owns the credentials, the local database owns the user and profile
rows. The sequence is fixed:

1. reject the email if a live local user already has it (case-insensitive),
   before the identity provider is contacted;
2. create the provider account, whose id becomes the local primary key;
3. write the user and profile rows in one local transaction.

If step 3 fails the provider account is orphaned. By default it is deleted
again (compensation); if that delete fails too, ``CompensationFailed`` is
raised with the orphaned id so it can be reconciled by hand.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .exceptions import (
    CompensationFailed,
    EmailAlreadyExists,
    IdentityProviderError,
    PersistenceError,
)
from .models import AccountStatus, User, UserProfile
from .repository import add_user_with_profile, email_exists
from .schemas import UserRegistrationRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"
DEFAULT_LANGUAGE = "en"


@dataclass(frozen=True)
class RegistrationResult:
    user_id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime


def register_user(
    db: Session,
    request: UserRegistrationRequest,
    identity_provider,
    compensate: Optional[bool] = None,
) -> RegistrationResult:
    """
    Register a new user.

    Args:
        db: Database session
        request: Validated registration request
        identity_provider: Client exposing ``create_account`` and ``delete_account``
        compensate: Delete the provider account when the local write fails
            (defaults to COMPENSATE_ON_PERSISTENCE_FAILURE)

    Returns:
        RegistrationResult for the new account

    Raises:
        EmailAlreadyExists: Email taken locally, before or during the write
        IdentityProviderError: Provider account creation failed; nothing was written
        PersistenceError: Local write failed after the provider account was created
        CompensationFailed: Local write failed and the provider account could not be removed
    """
    if compensate is None:
        compensate = settings.COMPENSATE_ON_PERSISTENCE_FAILURE

    logger.info("Registering new user: %s", request.email)

    if email_exists(db, request.email):
        logger.warning("Email already exists: %s", request.email)
        raise EmailAlreadyExists()

    # Raises IdentityProviderError; no local write has happened yet
    external_id = identity_provider.create_account(
        request.email,
        request.password,
        request.first_name,
        request.last_name,
    )

    # Timestamps are set here so the result needs no read after the commit
    now = datetime.utcnow()
    user = User(
        user_id=external_id,
        email=request.email.lower(),
        account_status=AccountStatus.ACTIVE,
        email_verified=False,
        created_at=now,
        updated_at=now,
    )
    profile = UserProfile(
        first_name=request.first_name,
        last_name=request.last_name,
        timezone=DEFAULT_TIMEZONE,
        language=DEFAULT_LANGUAGE,
        created_at=now,
        updated_at=now,
    )

    try:
        add_user_with_profile(db, user, profile)
    except IntegrityError as e:
        db.rollback()
        logger.warning(
            "Local insert for %s rejected by a constraint (concurrent registration?): %s",
            request.email, e.orig
        )
        _compensate(identity_provider, external_id, compensate)
        raise EmailAlreadyExists() from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to persist user %s with ID %s: %s", request.email, external_id, e)
        _compensate(identity_provider, external_id, compensate)
        raise PersistenceError("Failed to persist user", external_id=external_id) from e

    logger.info("User registered successfully: %s with ID: %s", request.email, external_id)

    return RegistrationResult(
        user_id=external_id,
        email=request.email,
        first_name=request.first_name,
        last_name=request.last_name,
        created_at=now,
    )


def _compensate(identity_provider, external_id: str, enabled: bool) -> None:
    if not enabled:
        logger.error(
            "Orphaned identity provider account left in place: %s", external_id
        )
        return

    try:
        identity_provider.delete_account(external_id)
    except IdentityProviderError as e:
        logger.error(
            "Compensating delete failed; orphaned identity provider account: %s", external_id
        )
        raise CompensationFailed(
            "Failed to remove orphaned identity provider account", external_id=external_id
        ) from e

    logger.info("Removed identity provider account %s after failed local write", external_id)
