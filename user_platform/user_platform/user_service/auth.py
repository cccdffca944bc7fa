from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
import logging

import jwt
from fastapi import Depends, Header, HTTPException, status

from .config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Caller identity taken from a verified access token."""
    user_id: str
    email: Optional[str] = None
    username: Optional[str] = None


class InvalidToken(Exception):
    pass


class TokenVerifier:
    """
    Verify identity provider access tokens.

    Signing keys come from the realm JWKS endpoint. The issuer is checked
    against KEYCLOAK_EXTERNAL_ISSUER because tokens carry the public URL
    while the JWKS is fetched over the internal one.
    """

    def __init__(self, config: Settings = None, jwks_client=None):
        self.config = config or default_settings
        self.jwks_client = jwks_client or jwt.PyJWKClient(self.config.jwks_url)

    def verify(self, token: str) -> AuthenticatedIdentity:
        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(token)
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=self.config.JWT_ALGORITHMS,
                issuer=self.config.KEYCLOAK_EXTERNAL_ISSUER,
                options={"require": ["exp", "iss", "sub"], "verify_aud": False},
            )
        except jwt.PyJWTError as e:
            raise InvalidToken(str(e)) from e

        return AuthenticatedIdentity(
            user_id=claims["sub"],
            email=claims.get("email"),
            username=claims.get("preferred_username"),
        )


@lru_cache(maxsize=1)
def get_token_verifier() -> TokenVerifier:
    return TokenVerifier()


def get_current_identity(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> AuthenticatedIdentity:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    token = authorization.split(" ", 1)[1].strip()
    try:
        return verifier.verify(token)
    except InvalidToken as exc:
        logger.info("Rejected access token: %s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
