from flask import Blueprint, current_app, g, jsonify, request

from security.rbac import require_roles
from utils.audit import clear_logs, log_stats, query_logs, record_event, serialize
from utils.parsing import parse_limit, parse_optional_datetime
from utils.roles import ROLE_ADMIN

audit_bp = Blueprint("audit", __name__, url_prefix="/admin/logs")


@audit_bp.get("")
@require_roles(ROLE_ADMIN)
def list_audit_logs():
    limit = parse_limit(
        request.args.get("limit"),
        current_app.config.get("AUDIT_LOG_DEFAULT_LIMIT", 100),
        current_app.config.get("AUDIT_LOG_MAX_LIMIT", 500),
    )
    rows = query_logs(
        action=request.args.get("action"),
        entity_type=request.args.get("entityType"),
        actor_id=request.args.get("actorId", type=int),
        start=parse_optional_datetime(request.args.get("startDate"), "startDate"),
        end=parse_optional_datetime(request.args.get("endDate"), "endDate"),
        limit=limit,
    )
    return jsonify(logs=[serialize(r) for r in rows]), 200


@audit_bp.get("/stats")
@require_roles(ROLE_ADMIN)
def audit_log_stats():
    return jsonify(stats=log_stats()), 200


@audit_bp.delete("")
@require_roles(ROLE_ADMIN)
def clear_audit_logs():
    removed = clear_logs()
    # the clear itself is the first entry of the fresh log
    record_event("logs_cleared", actor_id=g.user.id, details={"removed": removed})
    return jsonify(message="All logs cleared successfully", removed=removed), 200
