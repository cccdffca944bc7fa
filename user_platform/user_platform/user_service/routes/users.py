"""
User registration and profile endpoints.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import AuthenticatedIdentity, get_current_identity
from ..db import get_db
from ..identity_provider import KeycloakAdminClient, get_identity_provider
from ..profiles import get_user_profile
from ..registration import register_user
from ..schemas import (
    ErrorResponse,
    UserProfileResponse,
    UserRegistrationRequest,
    UserRegistrationResponse,
)

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.post(
    "/register",
    response_model=UserRegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid request data", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse},
    },
)
def register(
    payload: UserRegistrationRequest,
    db: Session = Depends(get_db),
    identity_provider: KeycloakAdminClient = Depends(get_identity_provider),
):
    logger.info("Registration request received for email: %s", payload.email)
    result = register_user(db, payload, identity_provider)
    return UserRegistrationResponse(
        user_id=result.user_id,
        email=result.email,
        first_name=result.first_name,
        last_name=result.last_name,
        created_at=result.created_at,
    )


@router.get(
    "/me",
    response_model=UserProfileResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "No profile for the caller", "model": ErrorResponse},
    },
)
def me(
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    logger.info("Profile request received for user ID: %s", identity.user_id)
    profile = get_user_profile(db, identity)
    return UserProfileResponse(
        user_id=profile.user_id,
        email=profile.email,
        first_name=profile.first_name,
        last_name=profile.last_name,
        created_at=profile.created_at,
    )
