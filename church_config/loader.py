"""
Settings loader (``church_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the typed
``church_config.schema`` dataclasses.  Callers go through
``church_config.get_app_settings()``; this module is its implementation.

Invariants enforced
-------------------
* Missing required keys raise ``KeyError``; unknown keys raise
  ``ValueError``.  There are no silent defaults for required fields.
* Every parsed object is a frozen dataclass from ``schema.py``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from church_config.schema import AppSettings, DatabaseSettings, WebSettings

_SAMESITE_VALUES = ("Strict", "Lax", "None")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _reject_unknown(section: str, data: dict[str, Any], cls: type) -> None:
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValueError(f"Unknown keys in {section!r} settings: {', '.join(unknown)}")


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    _reject_unknown("database", data, DatabaseSettings)
    return DatabaseSettings(
        url=data["url"],
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 10)),
        max_overflow=int(data.get("max_overflow", 10)),
    )


def parse_web(data: dict[str, Any]) -> WebSettings:
    _reject_unknown("web", data, WebSettings)
    samesite = data.get("session_cookie_samesite", "Strict")
    if samesite not in _SAMESITE_VALUES:
        raise ValueError(
            f"session_cookie_samesite must be one of {_SAMESITE_VALUES}, got {samesite!r}"
        )
    return WebSettings(
        secret_key=data["secret_key"],
        session_cookie_samesite=samesite,
        session_cookie_secure=bool(data.get("session_cookie_secure", True)),
    )


def parse_settings(
    data: dict[str, Any], overrides: dict[str, str] | None = None
) -> AppSettings:
    """
    Parse the settings document.

    ``overrides`` carries values taken from the environment
    (``database_url``, ``secret_key``); they replace the file values.
    """
    _reject_unknown("root", data, AppSettings)
    overrides = overrides or {}

    database = dict(data.get("database") or {})
    if overrides.get("database_url"):
        database["url"] = overrides["database_url"]

    web = dict(data.get("web") or {})
    if overrides.get("secret_key"):
        web["secret_key"] = overrides["secret_key"]

    return AppSettings(
        database=parse_database(database),
        web=parse_web(web),
        log_level=str(data.get("log_level", "INFO")).upper(),
    )
