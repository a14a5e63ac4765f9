import io
from unittest import mock

import pytest

from models import Role, SecurityEvent, AuditLog, Infrastructure

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PDF = b"%PDF-1.4\n%%EOF"


@pytest.fixture
def s3(monkeypatch):
    client = mock.Mock()
    client.generate_presigned_url.return_value = "https://s3.test/signed"
    monkeypatch.setattr("utils.storage._client", lambda: client)
    return client


def _file(data, name, content_type):
    return (io.BytesIO(data), name, content_type)


def test_upload_stores_object_under_user_prefix(client, make_user, login_as, s3):
    user = make_user()
    login_as(user)

    resp = client.post("/uploads", data={"purpose": "profile", "file": _file(PNG, "me.png", "image/png")},
                       content_type="multipart/form-data")
    assert resp.status_code == 201
    key = resp.get_json()["key"]
    assert key.startswith(f"profile/{user.id}/") and key.endswith(".png")

    kwargs = s3.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "test-bucket"
    assert kwargs["Body"] == PNG
    assert AuditLog.query.filter_by(action="FILE_UPLOAD").count() == 1


def test_malicious_upload_logged_and_not_stored(client, make_user, login_as, s3):
    login_as(make_user())
    resp = client.post(
        "/uploads",
        data={"purpose": "document", "file": _file(b"MZ\x90\x00payload", "cv.pdf", "application/pdf")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 400
    s3.put_object.assert_not_called()

    event = SecurityEvent.query.filter_by(event_type="MALWARE_UPLOAD_ATTEMPT").one()
    assert event.severity == "HIGH"


def test_signed_url_only_for_own_keys(client, make_user, login_as, s3):
    user = make_user()
    login_as(user)

    assert client.get(f"/uploads/url?key=profile/{user.id}/abc.png").status_code == 200
    assert client.get(f"/uploads/url?key=profile/{user.id + 1}/abc.png").status_code == 403
    assert client.get("/uploads/url?key=../secret").status_code == 400
    assert SecurityEvent.query.filter_by(event_type="UNAUTHORIZED_FILE_ACCESS").count() == 1


def test_store_admin_can_sign_any_key(client, make_user, login_as, s3):
    login_as(make_user("store@example.com", role=Role.STORE_ADMIN))
    assert client.get("/uploads/url?key=profile/999/abc.png").status_code == 200


def test_infrastructure_document(client, make_user, login_as, college, s3):
    login_as(make_user("adm@college.example.com", role=Role.ADM, college_id=college.id))
    resp = client.post(
        "/infrastructures",
        data={"title": "Library block", "file": _file(PDF, "library.pdf", "application/pdf")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 201
    assert resp.get_json()["document_url"] == "https://s3.test/signed"
    assert Infrastructure.query.one().college_id == college.id

    listed = client.get("/infrastructures").get_json()
    assert len(listed) == 1
