import secrets

import boto3
import structlog
from botocore.exceptions import ClientError
from flask import current_app

from utils.errors import UpstreamError

log = structlog.getLogger()


class StorageError(UpstreamError):
    default_message = "Storage unavailable"


def _client():
    return boto3.client("s3", region_name=current_app.config.get("S3_REGION"))


def build_key(purpose: str, user_id: int, ext: str) -> str:
    """<purpose>/<user_id>/<random>.<ext>; the client filename is never used."""
    return f"{purpose}/{user_id}/{secrets.token_hex(8)}{ext}"


def key_owner(key: str):
    """User id embedded in a key built by build_key, or None."""
    parts = (key or "").split("/")
    if len(parts) != 3 or not parts[1].isdigit():
        return None
    return int(parts[1])


def put_object(key: str, data: bytes, content_type: str) -> None:
    bucket = current_app.config["S3_BUCKET"]
    try:
        _client().put_object(
            Bucket=bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            ServerSideEncryption="AES256",
        )
    except ClientError as exc:
        log.error("s3_upload_failed", key=key, error=str(exc))
        raise StorageError("Upload failed") from exc


def presigned_url(key: str, expires_in=None) -> str:
    bucket = current_app.config["S3_BUCKET"]
    expires_in = expires_in or current_app.config.get("S3_URL_EXPIRY_SECONDS", 3600)
    try:
        return _client().generate_presigned_url(
            "get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=expires_in,
        )
    except ClientError as exc:
        log.error("s3_presign_failed", key=key, error=str(exc))
        raise StorageError("Could not sign URL") from exc


def delete_object(key: str) -> None:
    try:
        _client().delete_object(Bucket=current_app.config["S3_BUCKET"], Key=key)
    except ClientError as exc:
        log.error("s3_delete_failed", key=key, error=str(exc))
        raise StorageError("Delete failed") from exc
