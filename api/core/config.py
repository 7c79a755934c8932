"""
Environment-driven settings.

Everything is read once into a frozen `Settings` value that the app factory
passes down. Nothing here is a process-wide mutable global.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from fastapi import Request

DEFAULT_DATABASE_URL = "sqlite:///./data/reciclaje.db"


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def backend_for_url(url: str) -> str:
    scheme = urlsplit(url).scheme.lower()
    if scheme in ("postgres", "postgresql"):
        return "postgres"
    if scheme == "sqlite":
        return "sqlite"
    raise ValueError(f"Unsupported DATABASE_URL scheme: {scheme!r}")


def sqlite_path(url: str) -> str:
    """
    sqlite:///relative.db -> relative.db, sqlite:////abs.db -> /abs.db,
    sqlite:// or sqlite:///:memory: -> :memory:
    """
    path = url.split("://", 1)[1] if "://" in url else url
    if path.startswith("/"):
        path = path[1:]
    return path or ":memory:"


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    db_pool_min: int = 1
    db_pool_max: int = 5
    db_acquire_timeout: float = 10.0
    db_command_timeout: float = 30.0

    jwt_secret: str = "dev-change-this-secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60
    refresh_token_expire_days: int = 7
    bcrypt_rounds: int = 12

    cors_origins: tuple[str, ...] = field(
        default=("http://localhost:3000", "http://127.0.0.1:3000"),
    )

    admin_email: str = "admin@reciclaje.com"
    admin_password: str = "admin123"
    admin_name: str = "Administrador"

    default_page_size: int = 100
    max_page_size: int = 500

    log_level: str = "INFO"

    @property
    def backend(self) -> str:
        return backend_for_url(self.database_url)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=_sanitize_database_url(_env_str("DATABASE_URL", DEFAULT_DATABASE_URL)),
            db_pool_min=_env_int("DB_POOL_MIN", 1),
            db_pool_max=_env_int("DB_POOL_MAX", 5),
            db_acquire_timeout=_env_float("DB_ACQUIRE_TIMEOUT", 10.0),
            db_command_timeout=_env_float("DB_COMMAND_TIMEOUT", 30.0),
            # Local default keeps development simple.
            # In production, set JWT_SECRET in environment.
            jwt_secret=_env_str("JWT_SECRET", "dev-change-this-secret"),
            jwt_algorithm=_env_str("JWT_ALG", "HS256"),
            access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MIN", 24 * 60),
            refresh_token_expire_days=_env_int("REFRESH_TOKEN_EXPIRE_DAYS", 7),
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", 12),
            cors_origins=_env_list(
                "CORS_ORIGINS",
                ("http://localhost:3000", "http://127.0.0.1:3000"),
            ),
            admin_email=_env_str("ADMIN_EMAIL", "admin@reciclaje.com").lower(),
            admin_password=_env_str("ADMIN_PASSWORD", "admin123"),
            admin_name=_env_str("ADMIN_NAME", "Administrador"),
            default_page_size=_env_int("DEFAULT_PAGE_SIZE", 100),
            max_page_size=_env_int("MAX_PAGE_SIZE", 500),
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
