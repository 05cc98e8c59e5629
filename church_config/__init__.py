"""
church_config -- single public entrypoint for application settings.

Responsibility:
    ``get_app_settings()`` is the one place that reads the settings file
    and the environment.  The Flask factory and the CLI receive an
    ``AppSettings`` object and never look at files or variables
    themselves.

Resolution order:
    1. ``path`` argument, else ``CHURCH_LEDGER_CONFIG``, else the bundled
       ``sets/default.yaml``.
    2. ``DATABASE_URL`` and ``SECRET_KEY`` environment variables override
       the file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from church_config.loader import load_yaml_file, parse_settings
from church_config.schema import AppSettings, DatabaseSettings, WebSettings

_logger = logging.getLogger("church_kernel.config")

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "sets" / "default.yaml"

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "WebSettings",
    "get_app_settings",
]


def get_app_settings(path: Path | str | None = None) -> AppSettings:
    """Load, validate and return the application settings."""
    if path is None:
        path = os.environ.get("CHURCH_LEDGER_CONFIG") or _DEFAULT_CONFIG_FILE
    path = Path(path)

    settings = parse_settings(
        load_yaml_file(path),
        overrides={
            "database_url": os.environ.get("DATABASE_URL", ""),
            "secret_key": os.environ.get("SECRET_KEY", ""),
        },
    )

    _logger.info(
        "settings_loaded",
        extra={
            "config_file": str(path),
            "log_level": settings.log_level,
            "database_dialect": settings.database.url.split(":", 1)[0],
        },
    )
    return settings
