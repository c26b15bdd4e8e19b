import os
import tempfile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="mywork-uploads-"))

import mywork.models  # noqa: F401
from mywork.core.config import settings
from mywork.core.deps import get_db
from mywork.db.base import Base
from mywork.db.session import enable_sqlite_foreign_keys
from mywork.main import app
from mywork.routers.auth import login_rate_limiter


@pytest.fixture()
def test_context():
    original_secret = settings.secret_key
    original_recipient = settings.alert_recipient_phone
    settings.secret_key = "test-secret-key"
    settings.alert_recipient_phone = None

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client, session_local

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)
    settings.secret_key = original_secret
    settings.alert_recipient_phone = original_recipient
    login_rate_limiter.clear()


@pytest.fixture()
def make_user(test_context):
    client, _ = test_context

    def _make_user(*, email: str, name: str, role: str = "user", **extra) -> dict:
        res = client.post("/users", json={"email": email, "name": name, "role": role, **extra})
        assert res.status_code in {200, 201}, res.text
        return res.json()

    return _make_user


@pytest.fixture()
def make_job(test_context):
    client, _ = test_context

    def _make_job(*, assignee: dict, creator: dict, **overrides) -> dict:
        body = {
            "title": "Interior Painting - Kitchen",
            "scheduledDate": "2026-10-20T09:00:00Z",
            "assignedToId": assignee["id"],
            "createdById": creator["id"],
        }
        body.update(overrides)
        res = client.post("/jobs", json=body)
        assert res.status_code == 201, res.text
        return res.json()

    return _make_job
