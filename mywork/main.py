from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from mywork.core.observability import (
    http_exception_handler,
    request_logging_middleware,
    configure_logging,
    unhandled_exception_handler,
    validation_exception_handler,
)
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from mywork.core.config import Settings, settings
from mywork.db.session import engine
from mywork.routers import alerts, auth, duration_requests, invites, jobs, notes, photos, rates, users

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description=(
        "Backend API for the MyWork job scheduler.\n\n"
        "Quick test flow:\n"
        "1. Create an admin and a worker with `POST /users`.\n"
        "2. Schedule work with `POST /jobs` (assign by `assignedToEmail`).\n"
        "3. Add notes, photos, alerts and duration requests under `/jobs/{jobId}`.\n"
        "4. Invite new workers with `POST /invites` and `POST /invites/accept`."
    ),
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "defaultModelsExpandDepth": 1,
    },
    openapi_tags=[
        {"name": "health", "description": "Service status and quick links."},
        {"name": "auth", "description": "Session tokens and password management."},
        {"name": "jobs", "description": "Scheduled jobs and their line items."},
        {"name": "notes", "description": "Append-only job notes."},
        {"name": "photos", "description": "Job photo uploads."},
        {"name": "alerts", "description": "Service alerts with SMS notification."},
        {"name": "duration-requests", "description": "Worker requests to change a job's duration."},
        {"name": "invites", "description": "Single-use invites for new workers."},
        {"name": "users", "description": "User lookup and find-or-create."},
        {"name": "rates", "description": "Line item rate card presets."},
    ],
)

configure_logging()
app.middleware("http")(request_logging_middleware)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

cors_origins = settings.cors_origins or ["http://localhost:3000"]
allow_all_origins = "*" in cors_origins
env_value = settings.env.lower().strip()
allow_origin_regex = settings.cors_origin_regex

if (
    not allow_origin_regex
    and env_value in {"dev", "development", "staging", "stage"}
):
    # Local frontends run on dynamic localhost ports.
    allow_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else cors_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=not allow_all_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(jobs.router)
app.include_router(notes.router)
app.include_router(photos.router)
app.include_router(alerts.router)
app.include_router(duration_requests.router)
app.include_router(invites.router)
app.include_router(users.router)
app.include_router(rates.router)

Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount(
    settings.uploads_url_prefix,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)


def configured_database_url(current: Settings) -> str | None:
    # The SQLite fallback is a local convenience, not a configured database.
    if "database_url" not in current.model_fields_set:
        return None
    return current.database_url


def describe_database_url(database_url: str | None) -> dict:
    if not database_url:
        return {"configured": False, "hostPort": "NOT SET", "preview": "NOT SET"}
    try:
        url = make_url(database_url)
    except ArgumentError:
        return {"configured": True, "hostPort": "PARSE_ERROR", "preview": "PARSE_ERROR"}

    preview = url.render_as_string(hide_password=True)
    if len(preview) > 120:
        preview = preview[:120] + "..."
    return {
        "configured": True,
        "hostPort": f"{url.host or ''}:{url.port or 'default'}",
        "preview": preview,
    }


@app.get("/", tags=["health"])
def root():
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
        "ready": "/ready",
    }


@app.get("/health", tags=["health"])
def health():
    return {
        "status": "ok",
        "database": describe_database_url(configured_database_url(settings)),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/ready", tags=["health"])
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        return {"ok": False}
    return {"ok": True}
