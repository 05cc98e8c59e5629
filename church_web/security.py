"""
Request guards for the JSON API.

Two checks run before any route touches state:

* ``require_same_site()`` -- the Origin / Referer headers of a mutating
  request must name this host.  Session cookies are ``SameSite=Strict``;
  this is the second line against cross-site form posts.
* ``current_actor()`` -- resolves the signed Flask session into an
  ``Actor``.  Login itself happens elsewhere; this module only reads the
  ``user_id`` and ``role`` claims it left behind.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from flask import request, session

from church_kernel.domain.roles import Actor
from church_kernel.exceptions import OriginRejectedError
from church_kernel.logging_config import get_logger

logger = get_logger("web.security")


def _host_of(url: str) -> str | None:
    """Return ``host[:port]`` of an absolute URL, or None when unparseable."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return parts.netloc.rsplit("@", 1)[-1].lower()


def is_same_site(origin: str | None, referer: str | None, host: str | None) -> bool:
    """
    Decide whether a request came from this site.

    Rejects when both headers are missing.  Each header that is present
    must parse and its host (port included) must equal ``host``.
    """
    if not origin and not referer:
        return False
    if not host:
        return False
    host = host.lower()
    for header in (origin, referer):
        if header and _host_of(header) != host:
            return False
    return True


def require_same_site() -> None:
    """
    Raise ``OriginRejectedError`` unless the current request is same-site.
    """
    origin = request.headers.get("Origin")
    referer = request.headers.get("Referer")
    host = request.headers.get("Host")
    if not is_same_site(origin, referer, host):
        logger.warning(
            "request_origin_rejected",
            extra={
                "origin": origin,
                "referer": referer,
                "host": host,
                "path": request.path,
            },
        )
        if not origin and not referer:
            raise OriginRejectedError("missing Origin and Referer")
        raise OriginRejectedError("cross-site request")


def current_actor() -> Actor | None:
    """The signed-in user, or None when the session carries no usable claims."""
    user_id = session.get("user_id")
    role = session.get("role")
    if not user_id or not role:
        return None
    try:
        return Actor.from_claims(user_id, role)
    except ValueError:
        logger.warning("session_claims_malformed", extra={"role": str(role)})
        return None
