"""
Upload screening: allow-list of types, per-type size limits, filename
rules, magic-number check and a byte-pattern malware heuristic.
"""
import os
import re

from utils.errors import ValidationError

MB = 1024 * 1024

UPLOAD_PURPOSES = ("profile", "document", "certificate", "notification", "infrastructure")

# mime -> (extensions, max bytes, signature name)
ALLOWED_FILE_TYPES = {
    "image/jpeg": ((".jpg", ".jpeg"), 5 * MB, "JPEG"),
    "image/png": ((".png",), 5 * MB, "PNG"),
    "image/gif": ((".gif",), 2 * MB, "GIF"),
    "application/pdf": ((".pdf",), 10 * MB, "PDF"),
    "application/msword": ((".doc",), 5 * MB, "OLE"),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ((".docx",), 5 * MB, "ZIP"),
    "application/vnd.ms-excel": ((".xls",), 5 * MB, "OLE"),
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ((".xlsx",), 5 * MB, "ZIP"),
}

FILE_SIGNATURES = {
    "PDF": b"%PDF",
    "JPEG": b"\xff\xd8\xff",
    "PNG": b"\x89PNG",
    "GIF": b"GIF8",
    "OLE": b"\xd0\xcf\x11\xe0",
    "ZIP": b"PK\x03\x04",
}

# only checked at the start of the file; too short to search binary content for
LEADING_MARKERS = (b"MZ", b"\x7fELF", b"<%")

MALWARE_PATTERNS = (
    b"<script",
    b"javascript:",
    b"vbscript:",
    b"onload=",
    b"onerror=",
    b"onclick=",
    b"eval(",
    b"document.write",
    b"window.location",
    b"<?php",
    b"#!/bin/",
)

# active content inside PDFs
PDF_ACTIVE_CONTENT = (b"/JavaScript", b"/JS", b"/Launch", b"/SubmitForm", b"/RichMedia")

FILENAME_RE = re.compile(r"^[a-zA-Z0-9._-]+$")
MAX_FILENAME_LEN = 255


class UploadRejected(ValidationError):
    """Carries the security event to record for the rejected upload."""

    def __init__(self, message, event_type="MALICIOUS_FILE_UPLOAD_ATTEMPT", severity="MEDIUM"):
        super().__init__(message)
        self.event_type = event_type
        self.severity = severity


def extension_of(filename: str) -> str:
    return os.path.splitext(filename)[1].lower()


def validate_filename(filename) -> None:
    if not filename or not isinstance(filename, str):
        raise UploadRejected("Missing filename")
    if len(filename) > MAX_FILENAME_LEN:
        raise UploadRejected("Filename too long")
    if not FILENAME_RE.match(filename) or ".." in filename:
        raise UploadRejected("Filename contains invalid characters")


def scan_for_malware(data: bytes):
    """Returns the first matching pattern, or None."""
    for header in LEADING_MARKERS:
        if data.startswith(header):
            return header.decode("latin-1")
    lowered = data.lower()
    for pattern in MALWARE_PATTERNS:
        if pattern in lowered:
            return pattern.decode("latin-1")
    return None


def validate_upload(filename, content_type, data: bytes, purpose) -> str:
    """
    Raises UploadRejected (a ValidationError) on any failure.
    Returns the normalized file extension.
    """
    if purpose not in UPLOAD_PURPOSES:
        raise ValidationError("Invalid upload purpose", details={"allowed": list(UPLOAD_PURPOSES)})

    validate_filename(filename)

    allowed = ALLOWED_FILE_TYPES.get((content_type or "").split(";")[0].strip().lower())
    if allowed is None:
        raise UploadRejected("File type not allowed")
    extensions, max_bytes, signature = allowed

    ext = extension_of(filename)
    if ext not in extensions:
        raise UploadRejected("File extension does not match the content type")

    if not data:
        raise UploadRejected("Empty file")
    if len(data) > max_bytes:
        raise ValidationError(f"File size must be less than {max_bytes // MB}MB")

    hit = scan_for_malware(data)
    if hit is not None:
        raise UploadRejected(
            "File rejected by content scan",
            event_type="MALWARE_UPLOAD_ATTEMPT",
            severity="HIGH",
        )

    if not data.startswith(FILE_SIGNATURES[signature]):
        raise UploadRejected("File content does not match the expected format")

    if signature == "PDF" and any(marker in data for marker in PDF_ACTIVE_CONTENT):
        raise UploadRejected(
            "PDF contains active content",
            event_type="MALWARE_UPLOAD_ATTEMPT",
            severity="HIGH",
        )

    return ext
