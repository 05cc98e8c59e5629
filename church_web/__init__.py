"""
church_web -- Flask application for the financial-year and upload API.

Usage:
    from church_web import create_app
    app = create_app()          # settings from church_config
    app.run()
"""

from __future__ import annotations

import uuid

from flask import Flask, g, request

from church_config import AppSettings, get_app_settings
from church_kernel.db import init_engine_from_url
from church_kernel.domain.clock import Clock, SystemClock
from church_kernel.logging_config import LogContext, configure_logging, get_logger
from church_web.errors import register_error_handlers
from church_web.security import current_actor
from church_web.views import financial_years_bp, uploads_bp

logger = get_logger("web.app")


def create_app(
    settings: AppSettings | None = None,
    clock: Clock | None = None,
) -> Flask:
    """
    Build the Flask application.

    Initializes logging and the database engine from ``settings``; the
    schema itself is created by ``scripts/financial_year.py init-db``.
    """
    if settings is None:
        settings = get_app_settings()

    configure_logging(level=settings.log_level)
    init_engine_from_url(
        settings.database.url,
        echo=settings.database.echo,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
    )

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=settings.web.secret_key,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE=settings.web.session_cookie_samesite,
        SESSION_COOKIE_SECURE=settings.web.session_cookie_secure,
        CLOCK=clock or SystemClock(),
    )

    app.register_blueprint(financial_years_bp)
    app.register_blueprint(uploads_bp)
    register_error_handlers(app)

    @app.before_request
    def bind_request_context():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        actor = current_actor()
        LogContext.set(
            request_id=g.request_id,
            actor_id=str(actor.user_id) if actor else None,
        )

    @app.after_request
    def echo_request_id(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers["X-Request-ID"] = request_id
        return response

    @app.teardown_request
    def clear_request_context(exc):
        LogContext.clear()

    logger.info("app_created", extra={"blueprints": sorted(app.blueprints)})
    return app
