from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from mywork.main import app
from mywork.models.job import LineItem
from mywork.models.note import Note
from mywork.models.photo import Photo
from mywork.models.service_alert import ServiceAlert
from mywork.routers import jobs


def _crew(make_user):
    admin = make_user(email="admin@example.com", name="Admin", role="admin")
    worker = make_user(email="john@example.com", name="John Smith", phone="(412) 555-0123")
    return admin, worker


def test_create_job_computes_line_item_totals_and_defaults(test_context, make_user):
    client, _ = test_context
    admin, worker = _crew(make_user)

    res = client.post(
        "/jobs",
        json={
            "title": "  Exterior Painting  ",
            "scheduledDate": "2026-10-21T08:00:00Z",
            "customerName": "Mike Anderson",
            "assignedToEmail": "JOHN@example.com",
            "createdByEmail": "admin@example.com",
            "lineItems": [
                {"title": "Crown Molding", "quantity": 40, "rate": 1.87},
                {"title": "Wall Prep", "quantity": 3, "rate": "12.5", "status": "in-progress"},
            ],
        },
    )
    assert res.status_code == 201, res.text
    job = res.json()

    assert job["title"] == "Exterior Painting"
    assert job["status"] == "pending"
    assert job["duration"] == 1
    assert job["assignedTo"] == {"id": worker["id"], "name": "John Smith", "email": "john@example.com"}
    assert job["createdBy"]["id"] == admin["id"]
    assert job["hasPendingDurationRequest"] is False
    assert [item["title"] for item in job["lineItems"]] == ["Crown Molding", "Wall Prep"]
    assert job["lineItems"][0]["total"] == 74.8
    assert job["lineItems"][1]["total"] == 37.5
    assert job["lineItems"][1]["status"] == "in-progress"
    assert job["notes"] == [] and job["photos"] == [] and job["serviceAlerts"] == []


def test_create_job_rejects_unresolved_assignee(test_context, make_user):
    client, _ = test_context
    admin, _worker = _crew(make_user)

    res = client.post(
        "/jobs",
        json={
            "title": "Deck Stain",
            "scheduledDate": "2026-10-21T08:00:00Z",
            "assignedToEmail": "nobody@example.com",
            "createdById": admin["id"],
        },
    )
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "bad_request"
    assert error["message"] == "Missing assignedTo or createdBy user"
    assert error["path"] == "/jobs"
    assert error["request_id"] == res.headers["X-Request-ID"]


def test_create_job_validation_errors_return_400(test_context, make_user):
    client, _ = test_context
    admin, worker = _crew(make_user)

    missing_title = client.post(
        "/jobs",
        json={
            "scheduledDate": "2026-10-21T08:00:00Z",
            "assignedToId": worker["id"],
            "createdById": admin["id"],
        },
    )
    assert missing_title.status_code == 400
    assert missing_title.json()["error"]["code"] == "validation_error"
    assert missing_title.json()["error"]["details"][0]["field"] == "title"

    negative_rate = client.post(
        "/jobs",
        json={
            "title": "Trim",
            "scheduledDate": "2026-10-21T08:00:00Z",
            "assignedToId": worker["id"],
            "createdById": admin["id"],
            "lineItems": [{"title": "Trim", "quantity": 1, "rate": -5}],
        },
    )
    assert negative_rate.status_code == 400


def test_duration_is_clamped_on_create_and_update(test_context, make_user, make_job):
    client, _ = test_context
    admin, worker = _crew(make_user)

    job = make_job(assignee=worker, creator=admin, duration=0)
    assert job["duration"] == 1

    res = client.put(f"/jobs/{job['id']}", json={"duration": -3})
    assert res.status_code == 200, res.text
    assert res.json()["duration"] == 1

    res = client.put(f"/jobs/{job['id']}", json={"duration": 4})
    assert res.json()["duration"] == 4


def test_list_jobs_orders_by_date_and_filters(test_context, make_user, make_job):
    client, _ = test_context
    admin, worker = _crew(make_user)
    other = make_user(email="sara@example.com", name="Sara")

    late = make_job(assignee=worker, creator=admin, title="Late", scheduledDate="2026-10-25T08:00:00Z")
    early = make_job(assignee=worker, creator=admin, title="Early", scheduledDate="2026-10-19T08:00:00Z")
    others = make_job(assignee=other, creator=admin, title="Other", scheduledDate="2026-10-22T08:00:00Z")
    client.put(f"/jobs/{late['id']}", json={"status": "completed"})

    all_jobs = client.get("/jobs").json()
    assert [job["id"] for job in all_jobs] == [early["id"], others["id"], late["id"]]

    mine = client.get("/jobs", params={"userId": worker["id"]}).json()
    assert [job["id"] for job in mine] == [early["id"], late["id"]]

    completed = client.get("/jobs", params={"userId": worker["id"], "status": "completed"}).json()
    assert [job["id"] for job in completed] == [late["id"]]

    bad_status = client.get("/jobs", params={"status": "archived"})
    assert bad_status.status_code == 400
    assert bad_status.json()["error"]["code"] == "validation_error"


def test_get_job_not_found(test_context):
    client, _ = test_context
    res = client.get("/jobs/missing-job")
    assert res.status_code == 404
    assert res.json()["error"]["message"] == "Job not found"


def test_update_job_only_changes_present_fields(test_context, make_user, make_job):
    client, _ = test_context
    admin, worker = _crew(make_user)
    job = make_job(
        assignee=worker,
        creator=admin,
        description="Two coats",
        customerPhone="(412) 555-7890",
        lineItems=[{"title": "Walls", "quantity": 1, "rate": 750}],
    )

    res = client.put(f"/jobs/{job['id']}", json={"description": "", "status": "in-progress"})
    assert res.status_code == 200, res.text
    updated = res.json()
    assert updated["description"] == ""
    assert updated["status"] == "in-progress"
    assert updated["title"] == job["title"]
    assert updated["customerPhone"] == "(412) 555-7890"
    assert len(updated["lineItems"]) == 1

    res = client.put(f"/jobs/{job['id']}", json={"title": None})
    assert res.status_code == 400


def test_update_replaces_line_items_including_empty_list(test_context, make_user, make_job):
    client, session_local = test_context
    admin, worker = _crew(make_user)
    job = make_job(
        assignee=worker,
        creator=admin,
        lineItems=[
            {"title": "A", "quantity": 1, "rate": 10},
            {"title": "B", "quantity": 2, "rate": 10},
            {"title": "C", "quantity": 3, "rate": 10},
        ],
    )
    assert len(job["lineItems"]) == 3

    res = client.put(f"/jobs/{job['id']}", json={"lineItems": []})
    assert res.status_code == 200, res.text
    assert res.json()["lineItems"] == []

    with session_local() as db:
        remaining = db.execute(
            select(func.count(LineItem.id)).where(LineItem.job_id == job["id"])
        ).scalar_one()
    assert remaining == 0

    res = client.put(
        f"/jobs/{job['id']}",
        json={"lineItems": [{"quantity": 0}, {"title": "Ceiling", "quantity": 2, "rate": 0.8}]},
    )
    items = res.json()["lineItems"]
    assert len(items) == 2
    assert items[0]["title"] == "Line item"
    assert items[0]["quantity"] == 1
    assert items[0]["rate"] == 0
    assert items[0]["total"] == 0
    assert items[0]["description"] == ""
    assert items[0]["status"] == "pending"
    assert items[1]["total"] == 1.6


def test_update_is_atomic_when_a_field_is_rejected(test_context, make_user, make_job):
    client, _ = test_context
    admin, worker = _crew(make_user)
    job = make_job(assignee=worker, creator=admin, lineItems=[{"title": "Keep me", "rate": 5}])

    res = client.put(
        f"/jobs/{job['id']}",
        json={"assignedToId": "no-such-user", "lineItems": [], "title": "Changed"},
    )
    assert res.status_code == 400

    current = client.get(f"/jobs/{job['id']}").json()
    assert current["title"] == job["title"]
    assert [item["title"] for item in current["lineItems"]] == ["Keep me"]


def test_update_missing_job_returns_404(test_context):
    client, _ = test_context
    res = client.put("/jobs/missing-job", json={"title": "x"})
    assert res.status_code == 404


def test_delete_job_cascades_to_owned_rows(test_context, make_user, make_job):
    client, session_local = test_context
    admin, worker = _crew(make_user)
    job = make_job(assignee=worker, creator=admin, lineItems=[{"title": "Walls", "rate": 100}])

    assert client.post(
        f"/jobs/{job['id']}/notes", json={"userId": worker["id"], "content": "On site"}
    ).status_code == 201
    assert client.post(
        f"/jobs/{job['id']}/photos",
        files={"file": ("wall.jpg", b"jpeg-bytes", "image/jpeg")},
        data={"userId": worker["id"]},
    ).status_code == 201
    assert client.post(f"/jobs/{job['id']}/alerts", json={"title": "Leak"}).status_code == 201

    res = client.delete(f"/jobs/{job['id']}")
    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert client.get(f"/jobs/{job['id']}").status_code == 404

    with session_local() as db:
        for model in (LineItem, Note, Photo, ServiceAlert):
            count = db.execute(select(func.count(model.id)).where(model.job_id == job["id"])).scalar_one()
            assert count == 0

    assert client.delete(f"/jobs/{job['id']}").status_code == 404


def test_update_with_null_line_items_keeps_existing_set(test_context, make_user, make_job):
    client, _ = test_context
    admin, worker = _crew(make_user)
    job = make_job(
        assignee=worker,
        creator=admin,
        lineItems=[{"title": "Walls", "rate": 100}, {"title": "Trim", "rate": 20}],
    )

    res = client.put(f"/jobs/{job['id']}", json={"status": "completed", "lineItems": None})
    assert res.status_code == 200, res.text
    assert res.json()["status"] == "completed"
    assert [item["title"] for item in res.json()["lineItems"]] == ["Walls", "Trim"]


def test_update_rolls_back_line_item_delete_when_insert_fails(
    test_context, make_user, make_job, monkeypatch
):
    client, _ = test_context
    admin, worker = _crew(make_user)
    job = make_job(assignee=worker, creator=admin, lineItems=[{"title": "Keep", "rate": 5}])

    def failing_build(_items):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(jobs, "build_line_items", failing_build)
    failing_client = TestClient(app, raise_server_exceptions=False)
    res = failing_client.put(
        f"/jobs/{job['id']}",
        json={"title": "Changed", "lineItems": [{"title": "New", "rate": 1}]},
    )
    assert res.status_code == 500

    current = client.get(f"/jobs/{job['id']}").json()
    assert current["title"] == job["title"]
    assert [item["title"] for item in current["lineItems"]] == ["Keep"]


def test_create_job_treats_null_line_items_as_empty(test_context, make_user):
    client, _ = test_context
    admin, worker = _crew(make_user)

    res = client.post(
        "/jobs",
        json={
            "title": "Fence",
            "scheduledDate": "2026-10-21T08:00:00Z",
            "assignedToId": worker["id"],
            "createdById": admin["id"],
            "lineItems": None,
        },
    )
    assert res.status_code == 201, res.text
    assert res.json()["lineItems"] == []
