"""
Login token endpoint, proxied to the identity provider.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import JSONResponse

from ..exceptions import IdentityProviderError
from ..identity_provider import KeycloakAdminClient, get_identity_provider

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

INVALID_GRANT = {
    "error": "invalid_grant",
    "error_description": "Invalid user credentials",
}


@router.post("/token")
def token(
    grant_type: Optional[str] = Form(default=None),
    username: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
    client_id: Optional[str] = Form(default=None),
    scope: Optional[str] = Form(default=None),
    identity_provider: KeycloakAdminClient = Depends(get_identity_provider),
):
    """
    OAuth2 token request (login).

    The provider's status and body are passed through unchanged. If the
    provider cannot be reached the caller gets a 401 ``invalid_grant``.
    """
    logger.info("Token request received for username: %s", username)
    form = {
        "grant_type": grant_type,
        "username": username,
        "password": password,
        "client_id": client_id,
        "scope": scope,
    }
    try:
        status_code, body = identity_provider.request_token(form)
    except IdentityProviderError:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content=INVALID_GRANT)

    if status_code == status.HTTP_200_OK:
        logger.info("Token issued successfully for username: %s", username)
    else:
        logger.warning("Token request for %s rejected with status %s", username, status_code)
    return JSONResponse(status_code=status_code, content=body)
