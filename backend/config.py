"""
Configuration management for the Laundry Orders API.

Loads settings from .env via pydantic-settings.

Notes:
    - STATUS_FLOW picks the pipeline variant (extended 8-stage or basic 5-stage)
    - LENIENT_PRICING prices garments missing from a service at 0 instead of rejecting
    - IDP_JWT_KEY verifies identity-provider ID tokens presented at register/login
    - validate_production_settings() enforces a JWT secret, an IdP key and strict CORS in production
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/laundry.db"
    database_echo: bool = False

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"
    seed_catalog: bool = True  # insert the default services when the table is empty

    # ── Order Lifecycle ─────────────────────────────────────────────
    status_flow: str = "extended"   # "extended" (8 stages) | "basic" (5 stages)
    lenient_pricing: bool = False

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "laundry-api"
    jwt_access_ttl_minutes: int = 60

    # Comma-separated; registrations with these emails get the admin role
    admin_emails: str = ""

    # ── Identity provider ───────────────────────────────────────────
    # Register/login exchange an ID token from the hosting identity provider
    # for an API access token. The key is a PEM public key (RS256) or a
    # shared secret (HS256).
    idp_jwt_key: str = ""
    idp_jwt_algorithm: str = "RS256"
    idp_issuer: str = ""
    idp_audience: str = ""

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def admin_emails_list(self) -> List[str]:
        """Lower-cased admin emails from the comma-separated setting."""
        return [e.strip().lower() for e in self.admin_emails.split(",") if e.strip()]

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup.
        """
        if self.status_flow not in ("extended", "basic"):
            raise ValueError(
                f"STATUS_FLOW must be 'extended' or 'basic', got '{self.status_flow}'"
            )

        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to sign access tokens for clients and admins."
                )
            if not self.idp_jwt_key:
                raise ValueError(
                    "IDP_JWT_KEY must be set in production. "
                    "Without it nobody can register or log in."
                )
            logger.info("✅ Production settings validated")
        else:
            warnings = []
            if self.lenient_pricing:
                warnings.append("LENIENT_PRICING=true (missing garment prices count as 0)")
            if not self.idp_jwt_key:
                warnings.append("IDP_JWT_KEY is empty (register and login are disabled)")
            if not self.admin_emails_list:
                warnings.append("ADMIN_EMAILS is empty (nobody can register as admin)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            for w in warnings:
                logger.warning(f"⚠️  {w}")


# Global settings instance
settings = Settings()
