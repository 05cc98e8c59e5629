"""Helpers shared by the API blueprints."""

from __future__ import annotations

from uuid import UUID

from flask import current_app

from church_kernel.domain.clock import Clock


def parse_id(raw: str, not_found: type[Exception]) -> UUID:
    """Parse a path id; an id that is not a UUID cannot name a row."""
    try:
        return UUID(raw)
    except ValueError:
        raise not_found(raw) from None


def app_clock() -> Clock:
    return current_app.config["CLOCK"]
