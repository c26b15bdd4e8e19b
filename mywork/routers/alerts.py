from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from mywork.core.api_docs import error_responses
from mywork.core.deps import get_db
from mywork.core.observability import log_event
from mywork.models.service_alert import ServiceAlert
from mywork.schemas.alert import ServiceAlertCreateIn, ServiceAlertOut
from mywork.services.job_service import get_job_or_404
from mywork.services.notification_service import dispatch_alert_sms

router = APIRouter(prefix="/jobs/{job_id}/alerts", tags=["alerts"])


@router.get(
    "",
    response_model=list[ServiceAlertOut],
    summary="List service alerts",
    responses=error_responses(404, 500),
)
def list_alerts(job_id: str, db: Session = Depends(get_db)):
    get_job_or_404(db, job_id)
    return db.execute(
        select(ServiceAlert)
        .where(ServiceAlert.job_id == job_id)
        .order_by(ServiceAlert.sent_at.desc(), ServiceAlert.id.desc())
    ).scalars().all()


@router.post(
    "",
    response_model=ServiceAlertOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create service alert",
    description=(
        "Records the alert. When the assignee has a phone number an SMS notification "
        "is sent in the background; delivery problems never fail this request."
    ),
    responses=error_responses(400, 404, 500),
)
def create_alert(
    job_id: str,
    payload: ServiceAlertCreateIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    job = get_job_or_404(db, job_id)
    alert = ServiceAlert(
        job_id=job.id,
        title=payload.title,
        description=payload.description,
        severity=payload.severity.value,
    )
    db.add(alert)
    db.commit()
    db.refresh(alert)

    log_event("alert.created", alert_id=alert.id, job_id=job.id, severity=alert.severity)

    assignee_phone = job.assigned_to.phone
    if assignee_phone:
        background_tasks.add_task(
            dispatch_alert_sms,
            alert_id=alert.id,
            job_id=job.id,
            job_title=job.title,
            assignee_phone=assignee_phone,
            alert_title=alert.title,
            severity=alert.severity,
            description=alert.description,
        )
    else:
        log_event("sms.skipped", alert_id=alert.id, job_id=job.id, reason="assignee has no phone")
    return alert
