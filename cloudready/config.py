"""Application settings for cloud-ready-web.

Settings are read from the process environment (optionally seeded from a
`.env` file) and validated once at startup. Invalid values raise pydantic's
`ValidationError` so a misconfigured deploy fails fast.
"""

import os
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

load_dotenv()


def _split_csv(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def _as_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


class CorsSettings(BaseModel):
    """Cross-origin resource sharing policy."""

    allowed_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:8080"],
        min_length=1,
    )
    allowed_methods: List[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        min_length=1,
    )
    allowed_headers: List[str] = Field(default_factory=lambda: ["*"], min_length=1)
    allow_credentials: bool = True
    max_age: int = Field(3600, gt=0)


class JwtSettings(BaseModel):
    """Bearer token verification settings."""

    secret_key: str = Field("change-me-in-production", min_length=1)
    algorithm: str = Field("HS256", min_length=1)
    header: str = Field("Authorization", min_length=1)
    prefix: str = Field("Bearer ", min_length=1)
    expiration_seconds: int = Field(86400, gt=0)
    roles_claim: str = Field("roles", min_length=1)
    authority_prefix: str = "ROLE_"


class PasswordSettings(BaseModel):
    """Password hashing policy (work factor)."""

    strength: int = Field(8, gt=0)


class SecuritySettings(BaseModel):
    jwt: JwtSettings = Field(default_factory=JwtSettings)
    password: PasswordSettings = Field(default_factory=PasswordSettings)


class PaginationSettings(BaseModel):
    """Page size defaults and bounds."""

    default_page_size: int = Field(20, gt=0)
    max_page_size: int = Field(100, gt=0)

    @model_validator(mode="after")
    def _default_within_max(self):
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size must not exceed max_page_size")
        return self


class CacheSettings(BaseModel):
    ttl_seconds: int = Field(600, gt=0)


class Settings(BaseModel):
    """Root settings object."""

    name: str = Field("cloud-ready-web", min_length=1)
    version: str = Field("0.1.0", min_length=1)
    description: str = Field("Cloud-ready REST backend for user management", min_length=1)
    base_path: str = "/api"
    cors: CorsSettings = Field(default_factory=CorsSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    @field_validator("name", "version", "description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("base_path")
    @classmethod
    def _normalize_base_path(cls, value: str) -> str:
        value = value.strip()
        if value in ("", "/"):
            return ""
        if not value.startswith("/"):
            raise ValueError("base_path must start with '/'")
        return value.rstrip("/")


def _prune(data: dict) -> dict:
    """Drop unset (None) entries so model defaults apply."""
    pruned = {}
    for key, value in data.items():
        if isinstance(value, dict):
            value = _prune(value)
            if not value:
                continue
        if value is not None:
            pruned[key] = value
    return pruned


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build `Settings` from environment variables.

    Args:
        environ: Mapping to read from (defaults to `os.environ`)

    Returns:
        Validated Settings instance
    """
    env = os.environ if environ is None else environ
    raw = {
        "name": env.get("APP_NAME"),
        "version": env.get("APP_VERSION"),
        "description": env.get("APP_DESCRIPTION"),
        "base_path": env.get("API_BASE_PATH"),
        "cors": {
            "allowed_origins": _split_csv(env.get("CORS_ALLOWED_ORIGINS")),
            "allowed_methods": _split_csv(env.get("CORS_ALLOWED_METHODS")),
            "allowed_headers": _split_csv(env.get("CORS_ALLOWED_HEADERS")),
            "allow_credentials": _as_bool(env.get("CORS_ALLOW_CREDENTIALS")),
            "max_age": env.get("CORS_MAX_AGE"),
        },
        "security": {
            "jwt": {
                "secret_key": env.get("JWT_SECRET_KEY"),
                "algorithm": env.get("JWT_ALGORITHM"),
                "header": env.get("JWT_HEADER"),
                "prefix": env.get("JWT_PREFIX"),
                "expiration_seconds": env.get("JWT_EXPIRATION_SECONDS"),
            },
            "password": {
                "strength": env.get("PASSWORD_STRENGTH"),
            },
        },
        "pagination": {
            "default_page_size": env.get("DEFAULT_PAGE_SIZE"),
            "max_page_size": env.get("MAX_PAGE_SIZE"),
        },
        "cache": {
            "ttl_seconds": env.get("USER_CACHE_TTL_SECONDS"),
        },
    }
    return Settings.model_validate(_prune(raw))


# Module-level settings, validated at import time
settings = load_settings()


def get_settings() -> Settings:
    """Return the process settings (dependency for FastAPI)."""
    return settings
