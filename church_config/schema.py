"""
Application settings schema.

The human-authored YAML settings file is parsed by the loader into
``AppSettings``, the only configuration object the rest of the
application sees.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings passed to ``init_engine_from_url``."""

    url: str
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 10


@dataclass(frozen=True)
class WebSettings:
    """Flask session and cookie settings."""

    secret_key: str
    session_cookie_samesite: str = "Strict"
    session_cookie_secure: bool = True


@dataclass(frozen=True)
class AppSettings:
    """Complete runtime settings."""

    database: DatabaseSettings
    web: WebSettings
    log_level: str = "INFO"
