# app/services/lifecycle.py
"""
Application Lifecycle Manager.

    Draft -> Under Review -> Accepted | Rejected
    Accepted | Rejected -> Under Review   (admin re-review only)

Every status change is a single conditional write against the store: the
current-status check lives in the WHERE clause of the upsert or UPDATE, never
in a separate read. Two tabs submitting at once, or two admins acting on the
same row, therefore cannot both win.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Iterable, Set
import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from app.errors import (
    AlreadySubmitted,
    Forbidden,
    InvalidTransition,
    NotFound,
    ProviderError,
    ValidationError,
)
from app.models.application import Application, ApplicationStatus
from app.models.profile import Profile
from app.schemas.application import ApplicationSubmission, ApplicationValues
from app.utils.store import insert_for, store_errors

logger = logging.getLogger(__name__)

# target status -> statuses it may be reached from
ALLOWED_SOURCES = {
    ApplicationStatus.ACCEPTED: (ApplicationStatus.UNDER_REVIEW,),
    ApplicationStatus.REJECTED: (ApplicationStatus.UNDER_REVIEW,),
    ApplicationStatus.UNDER_REVIEW: (ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED),
}

FORM_FIELDS = tuple(ApplicationValues.model_fields.keys())


@dataclass
class BulkResult:
    succeeded: Set[str] = field(default_factory=set)
    failed: Dict[str, str] = field(default_factory=dict)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require_owner(owner_id: str, actor_id: str) -> None:
    if not owner_id or owner_id != actor_id:
        logger.warning(f"Actor {actor_id} tried to write the application of {owner_id}")
        raise Forbidden()


def _require_admin(actor: Profile) -> None:
    if actor is None or not actor.is_admin:
        logger.warning(f"Non-admin {getattr(actor, 'id', None)} attempted a status transition")
        raise Forbidden("Only admins can change application status")


def _field_errors(e: PydanticValidationError) -> Dict[str, str]:
    errors = {}
    for err in e.errors():
        name = ".".join(str(part) for part in err["loc"]) or "form"
        errors.setdefault(name, err["msg"])
    return errors


def validate_submission(values: Dict[str, Any]) -> Dict[str, Any]:
    """Server-side form rules, re-checked whatever the client already validated."""
    cleaned = {k: v for k, v in values.items() if k in FORM_FIELDS and v is not None}
    try:
        submission = ApplicationSubmission.model_validate(cleaned)
    except PydanticValidationError as e:
        raise ValidationError(_field_errors(e))
    return submission.model_dump()


def validate_draft(values: Dict[str, Any]) -> Dict[str, Any]:
    """Drafts may be partial, but every value present must still fit its column."""
    try:
        draft = ApplicationValues.model_validate(values)
    except PydanticValidationError as e:
        raise ValidationError(_field_errors(e))
    return draft.model_dump(exclude_none=True)


def _load(db: Session, application_id: str) -> Application:
    with store_errors(db, "load an application"):
        application = (
            db.query(Application)
            .filter(Application.id == application_id)
            .populate_existing()
            .first()
        )
    if application is None:
        raise NotFound("Application not found")
    return application


def get_application_for_owner(db: Session, owner_id: str) -> Optional[Application]:
    with store_errors(db, "load the applicant's application"):
        return (
            db.query(Application)
            .filter(Application.user_id == owner_id)
            .populate_existing()
            .first()
        )


def _upsert_while_draft(db: Session, owner_id: str, row: Dict[str, Any]) -> Application:
    """
    Insert the owner's application, or update it only if it is still a Draft.

    Returns the written row. Raises AlreadySubmitted when the existing row has
    left Draft (the conditional update touched nothing) or when a racing insert
    trips the owner-unique constraint.
    """
    insert_values = dict(row, id=str(uuid.uuid4()), user_id=owner_id, version=1, created_at=_now())
    update_values = dict(row, version=Application.version + 1)

    stmt = (
        insert_for(db, Application)
        .values(**insert_values)
        .on_conflict_do_update(
            index_elements=[Application.user_id],
            set_=update_values,
            where=(Application.status == ApplicationStatus.DRAFT.value),
        )
        .returning(Application.id)
    )

    with store_errors(db, "write an application"):
        try:
            written = db.execute(stmt).first()
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info(f"Owner-unique conflict for {owner_id}, treating as already submitted")
            raise AlreadySubmitted()

    if written is None:
        raise AlreadySubmitted()
    return _load(db, written[0])


def submit(db: Session, owner_id: str, actor_id: str, values: Dict[str, Any]) -> Application:
    _require_owner(owner_id, actor_id)
    submission = validate_submission(values)

    now = _now()
    row = dict(
        submission,
        status=ApplicationStatus.UNDER_REVIEW.value,
        submitted_at=now,
        updated_at=now,
    )
    application = _upsert_while_draft(db, owner_id, row)
    logger.info(f"✅ Application {application.id} submitted by {owner_id}")
    return application


def save_draft(db: Session, owner_id: str, actor_id: str, values: Dict[str, Any]) -> Application:
    _require_owner(owner_id, actor_id)
    row = validate_draft(values)
    row.update(status=ApplicationStatus.DRAFT.value, updated_at=_now())
    application = _upsert_while_draft(db, owner_id, row)
    logger.info(f"Draft saved for {owner_id}")
    return application


def transition(db: Session, application_id: str, new_status, actor: Profile) -> Application:
    _require_admin(actor)
    return _apply_transition(db, application_id, new_status, actor.id)


def _apply_transition(db: Session, application_id: str, new_status, actor_id: str) -> Application:
    """Conditional status write; the caller has already checked the actor is an admin."""
    try:
        target = ApplicationStatus(new_status)
    except ValueError:
        target = None
    sources = ALLOWED_SOURCES.get(target, ())

    if sources:
        stmt = (
            update(Application)
            .where(
                Application.id == application_id,
                Application.status.in_([s.value for s in sources]),
            )
            .values(status=target.value, updated_at=_now(), version=Application.version + 1)
            .execution_options(synchronize_session=False)
        )
        with store_errors(db, "transition an application"):
            result = db.execute(stmt)
            if result.rowcount == 1:
                db.commit()
                logger.info(f"Application {application_id} -> {target.value} by admin {actor_id}")
                return _load(db, application_id)
            db.rollback()

    with store_errors(db, "read an application status"):
        current = db.query(Application.status).filter(Application.id == application_id).scalar()
    if current is None:
        raise NotFound("Application not found")
    requested = target.value if target else str(new_status)
    logger.info(f"Rejected transition of {application_id}: {current} -> {requested}")
    raise InvalidTransition(current, requested)


def bulk_transition(db: Session, application_ids: Iterable[str], new_status, actor: Profile) -> BulkResult:
    """Apply the transition to each id independently; one failure never aborts the rest."""
    _require_admin(actor)
    # Commits expire `actor`, so its id is read once up front
    actor_id = actor.id

    result = BulkResult()
    for application_id in sorted(set(application_ids)):
        try:
            _apply_transition(db, application_id, new_status, actor_id)
            result.succeeded.add(application_id)
        except InvalidTransition:
            result.failed[application_id] = "InvalidTransition"
        except NotFound:
            result.failed[application_id] = "NotFound"
        except ProviderError:
            result.failed[application_id] = "ProviderError"

    logger.info(
        f"Bulk transition to {new_status}: {len(result.succeeded)} succeeded, "
        f"{len(result.failed)} failed"
    )
    return result
