from flask import Blueprint, request, jsonify, g

from models import db
from models.infrastructure import Infrastructure
from security.rbac import Permission, Scope, can_access, require_permission, scope_for, scope_query
from utils.audit import log_event
from utils.errors import AuthorizationError, NotFoundError
from utils.storage import delete_object, presigned_url
from utils.uploads import accept_upload
from utils.validation import clean_str, parse_int, require_fields

infrastructures_bp = Blueprint("infrastructures", __name__, url_prefix="/infrastructures")


def _with_url(row: Infrastructure) -> dict:
    out = row.to_dict()
    out["document_url"] = presigned_url(row.document_key)
    return out


@infrastructures_bp.get("")
@require_permission(Permission.VIEW_INFRASTRUCTURE)
def list_infrastructures():
    q = scope_query(Infrastructure.query, Infrastructure, g.user)
    college_id = request.args.get("college_id", type=int)
    if college_id and scope_for(g.user.role) == Scope.GLOBAL:
        q = q.filter(Infrastructure.college_id == college_id)
    rows = q.order_by(Infrastructure.created_at.desc()).all()
    return jsonify([_with_url(r) for r in rows]), 200


@infrastructures_bp.post("")
@require_permission(Permission.MANAGE_INFRASTRUCTURE)
def create_infrastructure():
    # multipart: title, description, college_id (global admins), file
    data = request.form.to_dict()
    require_fields(data, "title")

    if scope_for(g.user.role) == Scope.GLOBAL:
        require_fields(data, "college_id")
        college_id = parse_int(data.get("college_id"), "college_id")
    else:
        college_id = g.user.college_id
    if not college_id:
        raise AuthorizationError("No college assigned")

    key = accept_upload(request.files.get("file"), "infrastructure", g.user)
    row = Infrastructure(
        college_id=college_id,
        title=clean_str(data.get("title"), 160),
        description=clean_str(data.get("description"), 2000),
        document_key=key,
        uploaded_by=g.user.id,
    )
    db.session.add(row)
    db.session.commit()

    log_event("INFRASTRUCTURE_CREATE", user_id=g.user.id, entity="infrastructure", entity_id=row.id)
    return jsonify(_with_url(row)), 201


@infrastructures_bp.delete("/<int:infra_id>")
@require_permission(Permission.MANAGE_INFRASTRUCTURE)
def delete_infrastructure(infra_id):
    row = db.session.get(Infrastructure, infra_id)
    if not row:
        raise NotFoundError("Infrastructure record not found")
    if not can_access(g.user, row.college_id):
        raise AuthorizationError()

    key = row.document_key
    db.session.delete(row)
    db.session.commit()
    delete_object(key)

    log_event("INFRASTRUCTURE_DELETE", user_id=g.user.id, entity="infrastructure", entity_id=infra_id)
    return jsonify(message="Deleted"), 200
