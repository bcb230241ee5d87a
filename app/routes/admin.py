# app/routes/admin.py
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.auth.dependencies import get_current_profile
from app.database import get_db
from app.models.application import ApplicationStatus
from app.models.profile import Profile
from app.schemas.admin import (
    AdminOverviewResponse,
    ApplicationListResponse,
    BulkTransitionRequest,
    BulkTransitionResponse,
    TransitionRequest,
)
from app.schemas.application import ApplicationResponse
from app.schemas.profile import ProfileResponse
from app.services import lifecycle, review
from app.services.email_service import send_decision_email

router = APIRouter(
    prefix="/admin",
    tags=["Admin Review"]
)


def _queue_decision_email(background_tasks: BackgroundTasks, db: Session, application_id: str):
    application, owner = review.get_application_detail(db, application_id)
    if owner is not None:
        background_tasks.add_task(send_decision_email, owner.email, owner.display_name, application.status)


@router.get("", response_model=AdminOverviewResponse)
def admin_overview(db: Session = Depends(get_db)):
    """Stats cards plus the first page of the review table."""
    return {
        "stats": review.compute_stats(db),
        "applications": review.list_applications(db),
    }


@router.get("/applications", response_model=ApplicationListResponse)
def list_applications(
    search: Optional[str] = None,
    status: Optional[ApplicationStatus] = None,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db)
):
    filters = review.ApplicationFilter(search=search, status=status)
    return review.list_applications(db, filters, page, page_size)


@router.get("/applications/{application_id}", response_model=dict)
def get_application(application_id: str, db: Session = Depends(get_db)):
    application, owner = review.get_application_detail(db, application_id)
    return {
        "application": ApplicationResponse.model_validate(application).model_dump(),
        "applicant": ProfileResponse.model_validate(owner).model_dump() if owner else None,
    }


@router.post("/applications/bulk-status", response_model=BulkTransitionResponse)
def bulk_update_status(
    data: BulkTransitionRequest,
    background_tasks: BackgroundTasks,
    actor: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    result = lifecycle.bulk_transition(db, data.application_ids, data.status, actor)
    for application_id in sorted(result.succeeded):
        _queue_decision_email(background_tasks, db, application_id)
    return {"succeeded": sorted(result.succeeded), "failed": result.failed}


@router.post("/applications/{application_id}/status", response_model=ApplicationResponse)
def update_status(
    application_id: str,
    data: TransitionRequest,
    background_tasks: BackgroundTasks,
    actor: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    application = lifecycle.transition(db, application_id, data.status, actor)
    _queue_decision_email(background_tasks, db, application.id)
    return application
