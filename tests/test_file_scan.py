import pytest

from security.file_scan import UploadRejected, scan_for_malware, validate_filename, validate_upload
from utils.errors import ValidationError

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PDF = b"%PDF-1.7\n1 0 obj << /Type /Catalog >> endobj\n%%EOF"


def test_clean_png_is_accepted():
    assert validate_upload("photo.png", "image/png", PNG, "profile") == ".png"


def test_extension_must_match_content_type():
    with pytest.raises(UploadRejected):
        validate_upload("photo.jpg", "image/png", PNG, "profile")


def test_unknown_type_rejected():
    with pytest.raises(UploadRejected):
        validate_upload("run.exe", "application/x-msdownload", b"MZ....", "document")


def test_signature_mismatch_rejected():
    with pytest.raises(UploadRejected) as exc:
        validate_upload("photo.png", "image/png", b"GIF89a" + b"\x00" * 10, "profile")
    assert exc.value.event_type == "MALICIOUS_FILE_UPLOAD_ATTEMPT"


def test_disguised_executable_is_high_severity():
    with pytest.raises(UploadRejected) as exc:
        validate_upload("invoice.pdf", "application/pdf", b"MZ\x90\x00" + b"\x00" * 32, "document")
    assert exc.value.event_type == "MALWARE_UPLOAD_ATTEMPT"
    assert exc.value.severity == "HIGH"


def test_script_inside_file_is_found():
    with pytest.raises(UploadRejected) as exc:
        validate_upload("photo.png", "image/png", PNG + b"<SCRIPT>alert(1)</script>", "profile")
    assert exc.value.severity == "HIGH"


def test_short_markers_only_match_at_start():
    # "MZ" appears in plenty of legitimate binary content
    assert scan_for_malware(PNG + b"MZ" + b"<%") is None
    assert scan_for_malware(b"\x7fELF\x02\x01") == "\x7fELF"


def test_pdf_with_javascript_rejected():
    with pytest.raises(UploadRejected):
        validate_upload("form.pdf", "application/pdf", PDF + b"/OpenAction << /JavaScript >>", "document")


def test_clean_pdf_accepted():
    assert validate_upload("form.pdf", "application/pdf", PDF, "certificate") == ".pdf"


def test_size_limit_per_type():
    big_gif = b"GIF89a" + b"\x00" * (2 * 1024 * 1024)
    with pytest.raises(ValidationError, match="2MB"):
        validate_upload("anim.gif", "image/gif", big_gif, "notification")


def test_empty_file_rejected():
    with pytest.raises(UploadRejected):
        validate_upload("photo.png", "image/png", b"", "profile")


def test_unknown_purpose():
    with pytest.raises(ValidationError):
        validate_upload("photo.png", "image/png", PNG, "avatar-ish")


@pytest.mark.parametrize("name", ["../etc/passwd", "my photo.png", "a" * 256 + ".png", "", "x..png"])
def test_bad_filenames(name):
    with pytest.raises(UploadRejected):
        validate_filename(name)
