from datetime import datetime

from flask import Blueprint, jsonify, g, request

from models import db
from models.audit_log import AuditLog
from models.security_event import SecurityEvent, SEVERITIES
from models.user import User
from security.rbac import Permission, Scope, require_permission, scope_for
from security.session import cleanup_expired_sessions
from utils.errors import ValidationError
from utils.validation import paginate

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


def _parse_ts(name):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError("Invalid timestamp. Use ISO 8601", details={name: raw})


def _time_window(q, column):
    since = _parse_ts("since")
    until = _parse_ts("until")
    if since:
        q = q.filter(column >= since)
    if until:
        q = q.filter(column < until)
    return q


@admin_bp.get("/audit-logs")
@require_permission(Permission.VIEW_AUDIT_LOGS)
def list_audit_logs():
    q = AuditLog.query

    # college admins only see what their own college's users did
    if scope_for(g.user.role) != Scope.GLOBAL:
        college_users = db.select(User.id).where(User.college_id == g.user.college_id)
        q = q.filter(AuditLog.user_id.in_(college_users))

    action = request.args.get("action")
    if action:
        q = q.filter(AuditLog.action == action)
    status = request.args.get("status")
    if status:
        q = q.filter(AuditLog.status == status.upper())
    user_id = request.args.get("user_id", type=int)
    if user_id is not None:
        q = q.filter(AuditLog.user_id == user_id)
    q = _time_window(q, AuditLog.timestamp)

    return jsonify(paginate(q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()))), 200


@admin_bp.get("/security-events")
@require_permission(Permission.VIEW_SECURITY_EVENTS)
def list_security_events():
    q = SecurityEvent.query

    severity = (request.args.get("severity") or "").upper()
    if severity:
        if severity not in SEVERITIES:
            raise ValidationError("Invalid severity", details={"allowed": list(SEVERITIES)})
        q = q.filter(SecurityEvent.severity == severity)
    event_type = request.args.get("event_type")
    if event_type:
        q = q.filter(SecurityEvent.event_type == event_type)
    user_id = request.args.get("user_id", type=int)
    if user_id is not None:
        q = q.filter(SecurityEvent.user_id == user_id)
    q = _time_window(q, SecurityEvent.timestamp)

    return jsonify(paginate(q.order_by(SecurityEvent.timestamp.desc(), SecurityEvent.id.desc()))), 200


@admin_bp.post("/session-cleanup")
@require_permission(Permission.MANAGE_SESSIONS)
def session_cleanup():
    cleared = cleanup_expired_sessions(actor_id=g.user.id)
    return jsonify(cleared=cleared), 200
