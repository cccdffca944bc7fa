"""
Configuration management for the User Service
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """User Service configuration loaded from environment variables"""

    # Server Configuration
    SERVICE_NAME: str = "user-service"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "/app/logs"

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./users.db"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # Keycloak (identity provider) Integration
    KEYCLOAK_URL: str = "http://keycloak:8080"
    KEYCLOAK_REALM: str = "visionboard-backend"
    KEYCLOAK_ADMIN_CLIENT_ID: str = "user-service-admin"
    KEYCLOAK_ADMIN_CLIENT_SECRET: str = "change-me"
    KEYCLOAK_WEB_CLIENT_ID: str = "visionboard-web"
    KEYCLOAK_TIMEOUT_SECONDS: float = 10.0

    # Token verification
    # Issuer embedded in tokens (public URL), may differ from KEYCLOAK_URL
    KEYCLOAK_EXTERNAL_ISSUER: str = "http://localhost:8090/realms/visionboard-backend"
    # Defaults to the realm certs endpoint on KEYCLOAK_URL when unset
    KEYCLOAK_JWKS_URL: Optional[str] = None
    JWT_ALGORITHMS: List[str] = ["RS256"]

    # Registration consistency policy
    COMPENSATE_ON_PERSISTENCE_FAILURE: bool = True

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "https://visionboard.com",
        "https://www.visionboard.com",
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @property
    def realm_url(self) -> str:
        return f"{self.KEYCLOAK_URL.rstrip('/')}/realms/{self.KEYCLOAK_REALM}"

    @property
    def admin_realm_url(self) -> str:
        return f"{self.KEYCLOAK_URL.rstrip('/')}/admin/realms/{self.KEYCLOAK_REALM}"

    @property
    def token_url(self) -> str:
        return f"{self.realm_url}/protocol/openid-connect/token"

    @property
    def jwks_url(self) -> str:
        return self.KEYCLOAK_JWKS_URL or f"{self.realm_url}/protocol/openid-connect/certs"


# Global settings instance
settings = Settings()
