from security.file_scan import UploadRejected, validate_upload
from utils.audit import log_event, log_security_event
from utils.errors import ValidationError
from utils.storage import build_key, put_object


def accept_upload(file_storage, purpose: str, user) -> str:
    """
    Screens a werkzeug FileStorage and stores it. Returns the object key.
    Rejections are recorded as security events before being raised.
    """
    if file_storage is None:
        raise ValidationError("No file provided", details={"file": "required"})

    filename = file_storage.filename
    content_type = file_storage.mimetype
    data = file_storage.read()

    try:
        ext = validate_upload(filename, content_type, data, purpose)
    except UploadRejected as rejected:
        log_security_event(
            rejected.event_type,
            severity=rejected.severity,
            user_id=user.id,
            user_email=user.email,
            details={"filename": filename, "content_type": content_type, "reason": rejected.message},
        )
        raise

    key = build_key(purpose, user.id, ext)
    put_object(key, data, content_type)
    log_event("FILE_UPLOAD", user_id=user.id, entity="file", entity_id=key,
              metadata={"purpose": purpose, "size": len(data), "content_type": content_type})
    return key
