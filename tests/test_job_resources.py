from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mywork.core.config import settings
from mywork.main import app
from mywork.models.photo import Photo
from mywork.services import notification_service
from mywork.services.sms_provider import SmsSendResult
from mywork.storage.local_provider import LocalStorageProvider, get_storage_provider


class _RecordingSmsProvider:
    name = "recording"

    def __init__(self, *, configured: bool = True, fail: bool = False):
        self.configured = configured
        self.fail = fail
        self.sent = []

    def is_configured(self) -> bool:
        return self.configured

    def send_message(self, request):
        if self.fail:
            raise RuntimeError("carrier unavailable")
        self.sent.append(request)
        return SmsSendResult(provider=self.name, message_id="sms-1", status="queued")


@pytest.fixture()
def crew_job(make_user, make_job):
    admin = make_user(email="admin@example.com", name="Admin", role="admin")
    worker = make_user(email="john@example.com", name="John Smith", phone="+14125550123")
    job = make_job(assignee=worker, creator=admin, title="Kitchen Repaint", duration=2)
    return admin, worker, job


def test_notes_create_and_list_newest_first(test_context, crew_job):
    client, _ = test_context
    _admin, worker, job = crew_job

    first = client.post(
        f"/jobs/{job['id']}/notes",
        json={"userEmail": "john@example.com", "content": "Primer done"},
    )
    assert first.status_code == 201, first.text
    note = first.json()
    assert note["isPrivate"] is False
    assert note["user"] == {"id": worker["id"], "name": "John Smith", "email": "john@example.com"}

    second = client.post(
        f"/jobs/{job['id']}/notes",
        json={"userId": worker["id"], "content": "Second coat", "isPrivate": True},
    )
    assert second.status_code == 201

    listed = client.get(f"/jobs/{job['id']}/notes").json()
    assert [item["content"] for item in listed] == ["Second coat", "Primer done"]

    detail = client.get(f"/jobs/{job['id']}").json()
    assert len(detail["notes"]) == 2
    assert detail["notes"][0]["user"]["email"] == "john@example.com"


def test_notes_reject_unknown_author_and_missing_job(test_context, crew_job):
    client, _ = test_context
    _admin, _worker, job = crew_job

    res = client.post(
        f"/jobs/{job['id']}/notes",
        json={"userEmail": "ghost@example.com", "content": "Hello"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "User not found for note"

    res = client.post("/jobs/missing/notes", json={"userEmail": "john@example.com", "content": "x"})
    assert res.status_code == 404
    assert res.json()["error"]["message"] == "Job not found"

    res = client.post(f"/jobs/{job['id']}/notes", json={"userEmail": "john@example.com", "content": "  "})
    assert res.status_code == 400


def test_photo_upload_stores_file_and_serves_it(test_context, crew_job):
    client, _ = test_context
    _admin, worker, job = crew_job

    res = client.post(
        f"/jobs/{job['id']}/photos",
        files={"file": ("before shot.jpg", b"fake-jpeg", "image/jpeg")},
        data={"userEmail": "john@example.com", "caption": "Before"},
    )
    assert res.status_code == 201, res.text
    photo = res.json()
    assert photo["url"].startswith("/uploads/")
    assert photo["url"].endswith("_before_shot.jpg")
    assert photo["caption"] == "Before"
    assert photo["user"]["id"] == worker["id"]

    filename = photo["url"].rsplit("/", 1)[1]
    prefix = filename.split("_", 1)[0]
    assert prefix.isdigit()
    assert (Path(settings.upload_dir) / filename).read_bytes() == b"fake-jpeg"

    served = client.get(photo["url"])
    assert served.status_code == 200
    assert served.content == b"fake-jpeg"

    listed = client.get(f"/jobs/{job['id']}/photos").json()
    assert [item["id"] for item in listed] == [photo["id"]]


def test_photo_upload_requires_file_and_user(test_context, crew_job):
    client, _ = test_context
    _admin, worker, job = crew_job

    no_file = client.post(f"/jobs/{job['id']}/photos", data={"userId": worker["id"]})
    assert no_file.status_code == 400
    assert no_file.json()["error"]["message"] == "Missing file or user context"

    no_user = client.post(
        f"/jobs/{job['id']}/photos",
        files={"file": ("a.jpg", b"x", "image/jpeg")},
        data={"userEmail": "ghost@example.com"},
    )
    assert no_user.status_code == 400
    assert no_user.json()["error"]["message"] == "Missing file or user context"


def test_photo_upload_removes_file_when_insert_fails(test_context, crew_job, tmp_path, monkeypatch):
    _client, session_local = test_context
    _admin, worker, job = crew_job

    storage = LocalStorageProvider(base_dir=str(tmp_path), url_prefix="/uploads")
    app.dependency_overrides[get_storage_provider] = lambda: storage

    def failing_commit(self):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(Session, "commit", failing_commit)
    failing_client = TestClient(app, raise_server_exceptions=False)
    res = failing_client.post(
        f"/jobs/{job['id']}/photos",
        files={"file": ("after.jpg", b"fake-jpeg", "image/jpeg")},
        data={"userId": worker["id"]},
    )
    assert res.status_code == 500
    assert list(tmp_path.iterdir()) == []

    monkeypatch.undo()
    with session_local() as db:
        assert db.execute(select(func.count(Photo.id))).scalar_one() == 0


def test_alert_sends_sms_to_assignee(test_context, crew_job, monkeypatch):
    client, _ = test_context
    _admin, _worker, job = crew_job
    provider = _RecordingSmsProvider()
    monkeypatch.setattr(notification_service, "get_sms_provider", lambda name=None: provider)

    res = client.post(
        f"/jobs/{job['id']}/alerts",
        json={"title": "Water damage", "description": "Behind the vanity", "severity": "urgent"},
    )
    assert res.status_code == 201, res.text
    assert res.json()["severity"] == "urgent"

    assert len(provider.sent) == 1
    assert provider.sent[0].recipient == "+14125550123"
    assert provider.sent[0].body == (
        "MyWork Alert: Water damage\n"
        "Job: Kitchen Repaint\n"
        "Severity: urgent\n"
        "Details: Behind the vanity"
    )


def test_alert_uses_configured_recipient_and_tolerates_failures(test_context, crew_job, monkeypatch):
    client, _ = test_context
    _admin, _worker, job = crew_job
    provider = _RecordingSmsProvider()
    monkeypatch.setattr(notification_service, "get_sms_provider", lambda name=None: provider)
    monkeypatch.setattr(settings, "alert_recipient_phone", "+14125559999")

    res = client.post(f"/jobs/{job['id']}/alerts", json={"title": "Gate locked"})
    assert res.status_code == 201
    assert res.json()["severity"] == "normal"
    assert provider.sent[0].recipient == "+14125559999"
    assert provider.sent[0].body.endswith("Details: N/A")

    failing = _RecordingSmsProvider(fail=True)
    monkeypatch.setattr(notification_service, "get_sms_provider", lambda name=None: failing)
    res = client.post(f"/jobs/{job['id']}/alerts", json={"title": "Ladder missing"})
    assert res.status_code == 201

    unconfigured = _RecordingSmsProvider(configured=False)
    monkeypatch.setattr(notification_service, "get_sms_provider", lambda name=None: unconfigured)
    res = client.post(f"/jobs/{job['id']}/alerts", json={"title": "Paint short"})
    assert res.status_code == 201
    assert unconfigured.sent == []

    listed = client.get(f"/jobs/{job['id']}/alerts").json()
    assert [alert["title"] for alert in listed] == ["Paint short", "Ladder missing", "Gate locked"]


def test_alert_without_assignee_phone_skips_sms(test_context, make_user, make_job, monkeypatch):
    client, _ = test_context
    admin = make_user(email="admin@example.com", name="Admin", role="admin")
    worker = make_user(email="nophone@example.com", name="No Phone")
    job = make_job(assignee=worker, creator=admin)
    provider = _RecordingSmsProvider()
    monkeypatch.setattr(notification_service, "get_sms_provider", lambda name=None: provider)

    res = client.post(f"/jobs/{job['id']}/alerts", json={"title": "Heads up"})
    assert res.status_code == 201
    assert provider.sent == []

    bad = client.post(f"/jobs/{job['id']}/alerts", json={"title": "x", "severity": "critical"})
    assert bad.status_code == 400


def _bearer(client, email: str, password: str) -> dict[str, str]:
    res = client.post("/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['accessToken']}"}


def test_duration_request_review_flow(test_context, make_user, make_job):
    client, _ = test_context
    admin = make_user(email="admin@example.com", name="Admin", role="admin", password="admin12345")
    worker = make_user(email="john@example.com", name="John Smith", password="worker12345")
    job = make_job(assignee=worker, creator=admin, title="Kitchen Repaint", duration=2)
    admin_headers = _bearer(client, "admin@example.com", "admin12345")
    worker_headers = _bearer(client, "john@example.com", "worker12345")

    res = client.post(
        f"/jobs/{job['id']}/duration-requests",
        json={"requestedByEmail": "john@example.com", "requestedDuration": 4, "reason": "Siding prep"},
    )
    assert res.status_code == 201, res.text
    request = res.json()
    assert request["status"] == "pending"
    assert request["currentDuration"] == 2
    assert request["requestedBy"]["id"] == worker["id"]

    assert client.get(f"/jobs/{job['id']}").json()["hasPendingDurationRequest"] is True
    listed = client.get("/jobs").json()
    assert listed[0]["hasPendingDurationRequest"] is True

    review_url = f"/jobs/{job['id']}/duration-requests/{request['id']}"
    anonymous = client.patch(review_url, json={"status": "approved"})
    assert anonymous.status_code == 401

    forbidden = client.patch(review_url, json={"status": "approved"}, headers=worker_headers)
    assert forbidden.status_code == 403

    still_pending = client.patch(review_url, json={"status": "pending"}, headers=admin_headers)
    assert still_pending.status_code == 400
    assert client.get(f"/jobs/{job['id']}").json()["duration"] == 2

    approved = client.patch(review_url, json={"status": "approved"}, headers=admin_headers)
    assert approved.status_code == 200, approved.text
    assert approved.json()["status"] == "approved"
    assert approved.json()["reviewedById"] == admin["id"]

    detail = client.get(f"/jobs/{job['id']}").json()
    assert detail["duration"] == 4
    assert detail["hasPendingDurationRequest"] is False

    again = client.patch(review_url, json={"status": "rejected"}, headers=admin_headers)
    assert again.status_code == 400

    missing = client.patch(
        f"/jobs/{job['id']}/duration-requests/unknown",
        json={"status": "rejected"},
        headers=admin_headers,
    )
    assert missing.status_code == 404


def test_duration_request_rejects_invalid_input(test_context, crew_job):
    client, _ = test_context
    _admin, worker, job = crew_job

    zero = client.post(
        f"/jobs/{job['id']}/duration-requests",
        json={"requestedById": worker["id"], "requestedDuration": 0},
    )
    assert zero.status_code == 400
    assert zero.json()["error"]["code"] == "validation_error"

    ghost = client.post(
        f"/jobs/{job['id']}/duration-requests",
        json={"requestedByEmail": "ghost@example.com", "requestedDuration": 3},
    )
    assert ghost.status_code == 400
