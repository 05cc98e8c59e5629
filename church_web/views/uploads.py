"""Upload history routes."""

from flask import Blueprint, jsonify, request

from church_kernel.db import session_scope
from church_kernel.domain.roles import require_admin, require_authenticated
from church_kernel.exceptions import UploadNotFoundError
from church_kernel.logging_config import LogContext
from church_kernel.selectors.upload_selector import UploadSelector
from church_kernel.services.upload_history_service import UploadHistoryService
from church_web.security import current_actor, require_same_site
from church_web.views.common import app_clock, parse_id

uploads_bp = Blueprint("uploads", __name__, url_prefix="/api/uploads")

_MAX_LIMIT = 200


@uploads_bp.get("")
def list_uploads():
    require_authenticated(current_actor())
    limit = min(max(request.args.get("limit", 50, type=int), 1), _MAX_LIMIT)
    with session_scope() as session:
        uploads = UploadSelector(session).list_recent(limit=limit)
    return jsonify({"uploads": [u.to_dict() for u in uploads]})


@uploads_bp.post("/<upload_id>/rollback")
def rollback(upload_id: str):
    """Delete every record the batch created and mark it ROLLED_BACK."""
    require_same_site()
    actor = require_admin(current_actor(), "roll back upload")
    parsed = parse_id(upload_id, UploadNotFoundError)
    with LogContext.bind(upload_id=str(parsed)):
        with session_scope() as session:
            result = UploadHistoryService(session, clock=app_clock()).rollback_upload(
                parsed, actor
            )
    return jsonify(result.to_dict())
