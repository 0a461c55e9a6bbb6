import json
import logging
from datetime import datetime, time

from flask import has_request_context, request
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.audit_log import AuditLog
from utils.clock import now

logger = logging.getLogger(__name__)


def log_event(action: str, actor_id=None, entity_type=None, entity_id=None, details=None):
    ip = None
    user_agent = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        action=action,
        actor_id=actor_id,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        details_json=json.dumps(details, default=str) if details else None,
        timestamp=now(),
    )
    db.session.add(row)
    db.session.commit()
    logger.info("AUDIT %s actor=%s %s=%s", action, actor_id, entity_type, entity_id)
    return row


def record_event(action: str, actor_id=None, entity_type=None, entity_id=None, details=None):
    """Write an audit row without ever failing the caller's request."""
    try:
        return log_event(action, actor_id=actor_id, entity_type=entity_type, entity_id=entity_id, details=details)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Could not write audit event %s", action)
        return None


class DatabaseAuditSink:
    """Audit sink handed to the booking core; never raises."""

    def record(self, action, actor_id, entity_type, entity_id, details=None):
        record_event(action, actor_id=actor_id, entity_type=entity_type, entity_id=entity_id, details=details)


def serialize(row: AuditLog):
    return {
        "id": row.id,
        "action": row.action,
        "actor_id": row.actor_id,
        "entity_type": row.entity_type,
        "entity_id": row.entity_id,
        "ip": row.ip,
        "user_agent": row.user_agent,
        "details": json.loads(row.details_json) if row.details_json else {},
        "timestamp": row.timestamp.isoformat(),
    }


def query_logs(action=None, entity_type=None, actor_id=None, start=None, end=None, limit=100):
    q = AuditLog.query
    if action:
        q = q.filter(func.lower(AuditLog.action).contains(action.lower()))
    if entity_type:
        q = q.filter(AuditLog.entity_type == entity_type)
    if actor_id is not None:
        q = q.filter(AuditLog.actor_id == actor_id)
    if start is not None:
        q = q.filter(AuditLog.timestamp >= start)
    if end is not None:
        q = q.filter(AuditLog.timestamp <= end)
    return q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()


def log_stats():
    today = datetime.combine(now().date(), time.min)
    counts = (
        db.session.query(AuditLog.action, func.count(AuditLog.id))
        .group_by(AuditLog.action)
        .all()
    )
    recent = AuditLog.query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(10).all()
    return {
        "totalLogs": AuditLog.query.count(),
        "todayLogs": AuditLog.query.filter(AuditLog.timestamp >= today).count(),
        "actionCounts": {action: count for action, count in counts},
        "recentActions": [serialize(r) for r in recent],
    }


def clear_logs() -> int:
    deleted = AuditLog.query.delete()
    db.session.commit()
    logger.info("Audit log cleared (%d rows)", deleted)
    return deleted
