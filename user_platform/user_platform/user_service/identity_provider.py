"""
Keycloak admin API client.

Wraps the handful of admin REST calls the service needs: account creation,
lookup, existence check by email and deletion (used to compensate a failed
local write). Also forwards password-grant token requests to the realm
token endpoint.
"""
import logging
from typing import Any, Dict, Optional, Tuple

import requests

from .config import Settings, settings as default_settings
from .exceptions import IdentityProviderError

logger = logging.getLogger(__name__)

TOKEN_FORM_FIELDS = ("grant_type", "username", "password", "client_id")


class KeycloakAdminClient:
    """
    Thin client for the Keycloak admin REST API.

    An admin access token is obtained with the client credentials grant for
    every operation, so instances hold no per-request state.
    """

    def __init__(self, config: Settings = None, http=None):
        self.config = config or default_settings
        # Anything exposing requests' get/post/delete; the module by default
        self.http = http or requests
        self.timeout = self.config.KEYCLOAK_TIMEOUT_SECONDS

    def _admin_token(self) -> str:
        try:
            response = self.http.post(
                self.config.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.config.KEYCLOAK_ADMIN_CLIENT_ID,
                    "client_secret": self.config.KEYCLOAK_ADMIN_CLIENT_SECRET,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Keycloak admin token request failed: %s", e)
            raise IdentityProviderError("Could not obtain admin token") from e

        if response.status_code != 200:
            logger.error(
                "Keycloak admin token rejected. Status: %s, Error: %s",
                response.status_code, response.text
            )
            raise IdentityProviderError("Could not obtain admin token", status=response.status_code)

        try:
            return response.json()["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Keycloak admin token response unusable: %s", response.text)
            raise IdentityProviderError("Could not obtain admin token", status=200) from e

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._admin_token()}"}

    def create_account(self, email: str, password: str, first_name: str, last_name: str) -> str:
        """
        Create an enabled account with a permanent password.

        Args:
            email: Used as both username and email
            password: Initial password
            first_name: Given name
            last_name: Family name

        Returns:
            The Keycloak user id

        Raises:
            IdentityProviderError: On any failure. ``outcome_unknown`` is
                set when the request timed out.
        """
        logger.info("Creating user in Keycloak: %s", email)
        representation = {
            "username": email,
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
            "enabled": True,
            "emailVerified": False,
            "attributes": {"source": ["backend-api"]},
            "credentials": [
                {"type": "password", "value": password, "temporary": False}
            ],
        }

        headers = self._headers()
        try:
            response = self.http.post(
                f"{self.config.admin_realm_url}/users",
                json=representation,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.warning(
                "Keycloak create timed out for %s; account may exist, check before retrying", email
            )
            raise IdentityProviderError(
                "Timed out creating user in Keycloak", outcome_unknown=True
            ) from e
        except requests.RequestException as e:
            logger.error("Error creating user in Keycloak: %s", e)
            raise IdentityProviderError("Failed to create user in Keycloak") from e

        if response.status_code != 201:
            logger.error(
                "Failed to create user in Keycloak. Status: %s, Error: %s",
                response.status_code, response.text
            )
            raise IdentityProviderError(
                "Failed to create user in Keycloak", status=response.status_code
            )

        location = response.headers.get("Location")
        if not location:
            raise IdentityProviderError("Keycloak response carried no Location header", status=201)

        user_id = location.rstrip("/").rsplit("/", 1)[-1]
        logger.info("User created successfully in Keycloak with ID: %s", user_id)
        return user_id

    def find_by_id(self, user_id: str) -> Dict[str, Any]:
        """Return the Keycloak user representation for ``user_id``."""
        logger.debug("Retrieving user from Keycloak: %s", user_id)
        try:
            response = self.http.get(
                f"{self.config.admin_realm_url}/users/{user_id}",
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Error retrieving user from Keycloak: %s", e)
            raise IdentityProviderError("Failed to retrieve user from Keycloak") from e

        if response.status_code != 200:
            logger.error(
                "Failed to retrieve user %s from Keycloak. Status: %s",
                user_id, response.status_code
            )
            raise IdentityProviderError(
                "Failed to retrieve user from Keycloak", status=response.status_code
            )
        return response.json()

    def exists_by_email(self, email: str) -> bool:
        """
        Check whether an account with ``email`` exists.

        Provider errors are logged and reported as ``False``.
        """
        logger.debug("Checking if user exists in Keycloak: %s", email)
        try:
            response = self.http.get(
                f"{self.config.admin_realm_url}/users",
                params={"email": email, "exact": "true"},
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            return len(response.json()) > 0
        except (requests.RequestException, IdentityProviderError, ValueError) as e:
            logger.error("Error checking user existence in Keycloak: %s", e)
            return False

    def delete_account(self, user_id: str) -> None:
        """Delete an account. A missing account counts as deleted."""
        logger.info("Deleting user from Keycloak: %s", user_id)
        try:
            response = self.http.delete(
                f"{self.config.admin_realm_url}/users/{user_id}",
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Error deleting user %s from Keycloak: %s", user_id, e)
            raise IdentityProviderError("Failed to delete user from Keycloak") from e

        if response.status_code not in (200, 204, 404):
            logger.error(
                "Failed to delete user %s from Keycloak. Status: %s, Error: %s",
                user_id, response.status_code, response.text
            )
            raise IdentityProviderError(
                "Failed to delete user from Keycloak", status=response.status_code
            )

    def request_token(self, form: Dict[str, str]) -> Tuple[int, Dict[str, Any]]:
        """
        Forward a token request to the realm token endpoint.

        Only the password-grant fields and an optional ``scope`` are passed on.

        Returns:
            Tuple of (status_code, json_body) as returned by Keycloak

        Raises:
            IdentityProviderError: If Keycloak could not be reached or
                answered with a non-JSON body
        """
        data = {field: form.get(field) for field in TOKEN_FORM_FIELDS}
        scope: Optional[str] = form.get("scope")
        if scope:
            data["scope"] = scope

        try:
            response = self.http.post(
                self.config.token_url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
            return response.status_code, response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Error during token request: %s", e)
            raise IdentityProviderError("Token request failed") from e


def get_identity_provider() -> KeycloakAdminClient:
    """FastAPI dependency returning the identity provider client."""
    return KeycloakAdminClient()
