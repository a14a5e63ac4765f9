import json

import structlog
from flask import request, has_request_context

from models import db
from models.audit_log import AuditLog
from models.security_event import SecurityEvent, SEVERITIES

log = structlog.getLogger()


def client_ip() -> str:
    if not has_request_context():
        return "unknown"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def client_user_agent():
    if not has_request_context():
        return None
    user_agent = request.headers.get("User-Agent", "")
    return user_agent[:255] if user_agent else None


def log_event(action: str, user_id=None, entity=None, entity_id=None, metadata=None,
              status="SUCCESS", user_email=None):
    row = AuditLog(
        user_id=user_id,
        user_email=user_email,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        status=status,
        ip=client_ip(),
        user_agent=client_user_agent(),
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    db.session.add(row)
    db.session.commit()
    log.info("audit", action=action, status=status, user_id=user_id, entity=entity, entity_id=entity_id)


def log_security_event(event_type: str, severity="LOW", user_id=None, user_email=None, details=None):
    if severity not in SEVERITIES:
        raise ValueError(f"Unknown severity {severity}")

    row = SecurityEvent(
        event_type=event_type,
        severity=severity,
        user_id=user_id,
        user_email=user_email,
        ip=client_ip(),
        user_agent=client_user_agent(),
        details=json.dumps(details, default=str) if details else None,
    )
    db.session.add(row)
    db.session.commit()
    log.warning("security_event", event_type=event_type, severity=severity, user_id=user_id)
