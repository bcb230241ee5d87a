# app/routes/dashboard.py
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
from typing import Optional

from app.auth.dependencies import get_current_identity, get_current_profile
from app.auth.identity import Identity
from app.database import get_db
from app.models.application import ApplicationStatus
from app.models.profile import Profile
from app.schemas.application import ApplicationValues, ApplicationResponse
from app.schemas.profile import ProfileResponse
from app.services import lifecycle
from app.services.email_service import send_submission_received_email

router = APIRouter(
    prefix="/dashboard",
    tags=["Applicant Dashboard"]
)


@router.get("", response_model=dict)
def dashboard(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    """Profile summary plus the application status card."""
    application = lifecycle.get_application_for_owner(db, profile.id)
    status = application.status if application else ApplicationStatus.DRAFT.value
    return {
        "profile": ProfileResponse.model_validate(profile).model_dump(),
        "application": {
            "id": application.id if application else None,
            "status": status,
            "submitted_at": application.submitted_at if application else None,
            "can_edit": status == ApplicationStatus.DRAFT.value,
            "action": "Start Application" if status == ApplicationStatus.DRAFT.value else "View Application",
        },
    }


@router.get("/application", response_model=Optional[ApplicationResponse])
def read_application(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    return lifecycle.get_application_for_owner(db, identity.id)


@router.put("/application/draft", response_model=ApplicationResponse)
def save_application_draft(
    values: ApplicationValues,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    return lifecycle.save_draft(db, identity.id, identity.id, values.model_dump(exclude_unset=True))


@router.post("/application", response_model=ApplicationResponse)
def submit_application(
    values: ApplicationValues,
    background_tasks: BackgroundTasks,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    application = lifecycle.submit(db, profile.id, profile.id, values.model_dump(exclude_unset=True))
    background_tasks.add_task(send_submission_received_email, profile.email, profile.display_name)
    return application
