# core/config.py

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "HotelOS Back-Office API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    FRONTEND_DOMAINS: List[str] = []

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Store backend: "supabase" or "memory"
    # -------------------------------------------------
    STORE_BACKEND: str = "supabase"

    # -------------------------------------------------
    # Supabase (Document store & Auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    SUPABASE_DOCUMENTS_TABLE: str = "documents"

    # -------------------------------------------------
    # Live projections
    # -------------------------------------------------
    STORE_REFRESH_SECONDS: int = Field(
        15,
        description="Polling interval for remote change-feed refresh (0 disables)",
    )

    # -------------------------------------------------
    # User deletion
    # -------------------------------------------------
    REVOKE_CREDENTIALS_ON_DELETE: bool = Field(
        False,
        description="Also revoke the identity-provider credential when an admin deletes a user",
    )

    # -------------------------------------------------
    # Rate limiting
    # -------------------------------------------------
    TRUSTED_PROXIES: List[str] = Field(
        [],
        description="Reverse proxy IPs whose X-Forwarded-For header identifies the client",
    )

    model_config = SettingsConfigDict(case_sensitive=True)


def build_cors_origins(domains: List[str]) -> List[str]:
    origins = []
    for domain in domains:
        if not domain:
            continue
        if not domain.startswith("http"):
            domain = f"https://{domain}"
        origins.append(domain.rstrip("/"))

    # remove duplicates
    return sorted(set(origins))


# Instantiate settings
settings = Settings()
settings.BACKEND_CORS_ORIGINS = build_cors_origins(settings.FRONTEND_DOMAINS)
