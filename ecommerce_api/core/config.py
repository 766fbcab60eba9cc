"""
Environment-driven settings.

Every value is read lazily so tests can monkeypatch the environment.
"""

from __future__ import annotations

import os
from urllib.parse import quote


def env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def database_url_from_parts() -> str:
    host = env_str("DB_HOST", "localhost")
    port = env_int("DB_PORT", 5432)
    name = env_str("DB_NAME", "eCommerceDs")
    user = env_str("DB_USERNAME", "postgres")
    password = env_str("DB_PASSWORD", "root")
    return f"postgresql://{quote(user, safe='')}:{quote(password, safe='')}@{host}:{port}/{name}"


def db_pool_min_size() -> int:
    return env_int("DB_POOL_MIN", 1)


def db_pool_max_size() -> int:
    return env_int("DB_POOL_MAX", 5)


def cors_origins() -> list[str]:
    raw = env_str("CORS_ORIGINS", "http://localhost:4200")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def img_dir() -> str:
    return env_str("IMG_DIR", "img")


def max_image_bytes() -> int:
    return env_int("MAX_IMAGE_BYTES", 5 * 1024 * 1024)


def log_level() -> str:
    return env_str("LOG_LEVEL", "INFO").upper()


def server_host() -> str:
    return env_str("HOST", "0.0.0.0")


def server_port() -> int:
    return env_int("PORT", 3000)
