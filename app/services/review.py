# app/services/review.py
"""Admin Review Aggregator: read-only projections over applications for the console."""
from dataclasses import dataclass
from typing import Optional, Dict, Any, Tuple
import logging

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import NotFound, ValidationError
from app.models.application import Application, ApplicationStatus
from app.models.profile import Profile
from app.utils.store import store_errors

logger = logging.getLogger(__name__)


@dataclass
class ApplicationFilter:
    search: Optional[str] = None
    status: Optional[ApplicationStatus] = None


def clamp_page(page: Optional[int], page_size: Optional[int]) -> Tuple[int, int]:
    page = max(1, page or 1)
    page_size = page_size or settings.DEFAULT_PAGE_SIZE
    page_size = min(max(1, page_size), settings.MAX_PAGE_SIZE)
    return page, page_size


def _row(application: Application, profile: Optional[Profile]) -> Dict[str, Any]:
    return {
        "id": application.id,
        "user_id": application.user_id,
        "name": profile.display_name if profile else None,
        "email": profile.email if profile else None,
        "school": (profile.school if profile and profile.school else application.school),
        "status": application.status,
        "submitted_at": application.submitted_at,
        "updated_at": application.updated_at,
    }


def list_applications(
    db: Session,
    filters: Optional[ApplicationFilter] = None,
    page: Optional[int] = 1,
    page_size: Optional[int] = None,
) -> Dict[str, Any]:
    filters = filters or ApplicationFilter()
    page, page_size = clamp_page(page, page_size)

    query = db.query(Application, Profile).outerjoin(Profile, Profile.id == Application.user_id)

    if filters.status is not None:
        try:
            status = ApplicationStatus(filters.status)
        except ValueError:
            raise ValidationError({"status": f"Unknown status: {filters.status}"})
        query = query.filter(Application.status == status.value)
    else:
        # Drafts are not under consideration
        query = query.filter(Application.status != ApplicationStatus.DRAFT.value)

    term = (filters.search or "").strip().lower()
    if term:
        query = query.filter(or_(
            Profile.display_name.icontains(term, autoescape=True),
            Profile.email.icontains(term, autoescape=True),
            Profile.school.icontains(term, autoescape=True),
            Application.school.icontains(term, autoescape=True),
        ))

    with store_errors(db, "list applications"):
        total_count = query.count()
        results = (
            query.order_by(Application.submitted_at.desc(), Application.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

    return {
        "rows": [_row(application, profile) for application, profile in results],
        "total_count": total_count,
        "page": page,
        "page_size": page_size,
    }


def compute_stats(db: Session) -> Dict[str, int]:
    with store_errors(db, "compute application stats"):
        counts = dict(
            db.query(Application.status, func.count(Application.id))
            .group_by(Application.status)
            .all()
        )

    return {
        "total": sum(counts.values()),
        "pending": counts.get(ApplicationStatus.UNDER_REVIEW.value, 0),
        "accepted": counts.get(ApplicationStatus.ACCEPTED.value, 0),
        "rejected": counts.get(ApplicationStatus.REJECTED.value, 0),
    }


def get_application_detail(db: Session, application_id: str) -> Tuple[Application, Optional[Profile]]:
    with store_errors(db, "load application detail"):
        result = (
            db.query(Application, Profile)
            .outerjoin(Profile, Profile.id == Application.user_id)
            .filter(Application.id == application_id)
            .first()
        )
    if result is None:
        raise NotFound("Application not found")
    return result[0], result[1]
