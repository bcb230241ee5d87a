# app/services/profile_store.py
"""
Profile Store Accessor: read, create-if-absent and complete the profile row
that layers role and completion state onto an identity.
"""
import time
from datetime import date, datetime, timezone
from typing import Optional, Dict, Any
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.config import settings
from app.errors import ProviderError, ValidationError, NotFound
from app.models.profile import Profile, ROLE_APPLICANT
from app.utils.store import insert_for

logger = logging.getLogger(__name__)

# Fields the applicant may write. role, id and is_profile_complete are never taken from input.
EDITABLE_FIELDS = ("display_name", "email", "dob", "school", "phone_number", "pronouns", "country")


def default_display_name(identity) -> str:
    metadata = identity.user_metadata or {}
    for key in ("full_name", "name", "user_name", "username"):
        value = metadata.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    if identity.email and "@" in identity.email:
        return identity.email.split("@")[0]
    return "User"


def get_profile(db: Session, identity_id: str) -> Optional[Profile]:
    try:
        return (
            db.query(Profile)
            .filter(Profile.id == identity_id)
            .populate_existing()
            .first()
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Profile lookup failed for {identity_id}: {str(e)}")
        raise ProviderError("Profile store unavailable")


def ensure_profile(db: Session, identity, defaults: Optional[Dict[str, Any]] = None) -> Profile:
    """
    Create the profile for an identity if it does not exist yet, then return it.

    Concurrent callers for the same identity all end up with the single row
    the store accepted. Conflicts and transient store errors are retried with
    exponential backoff before giving up with ProviderError.
    """
    values = {k: v for k, v in (defaults or {}).items() if k in EDITABLE_FIELDS and v is not None}
    values.setdefault("email", identity.email)
    values.setdefault("display_name", default_display_name(identity))
    values.update(id=identity.id, role=ROLE_APPLICANT, is_profile_complete=False)

    attempts = max(1, settings.PROFILE_RETRY_ATTEMPTS)
    delay = settings.PROFILE_RETRY_BACKOFF_SECONDS

    for attempt in range(1, attempts + 1):
        try:
            profile = get_profile(db, identity.id)
            if profile is not None:
                return profile

            stmt = insert_for(db, Profile).values(**values).on_conflict_do_nothing(
                index_elements=[Profile.id]
            )
            db.execute(stmt)
            db.commit()

            profile = get_profile(db, identity.id)
            if profile is not None:
                logger.info(f"Profile ready for identity {identity.id}")
                return profile
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Profile create conflict for {identity.id} (attempt {attempt}/{attempts}): {str(e)}")
        except ProviderError:
            logger.warning(f"Profile store unavailable for {identity.id} (attempt {attempt}/{attempts})")
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Profile create failed for {identity.id} (attempt {attempt}/{attempts}): {str(e)}")

        if attempt < attempts:
            time.sleep(delay)
            delay *= 2

    logger.error(f"❌ Could not create profile for {identity.id} after {attempts} attempts")
    raise ProviderError("Could not create your profile. Please retry.")


def _age_on(dob: date, today: date) -> int:
    return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))


def completion_errors(values: Dict[str, Any], today: Optional[date] = None) -> Dict[str, str]:
    today = today or date.today()
    errors = {}
    for field in ("display_name", "email", "school"):
        if not values.get(field):
            errors[field] = "This field is required"

    for field in EDITABLE_FIELDS:
        value = values.get(field)
        limit = getattr(Profile.__table__.c[field].type, "length", None)
        if isinstance(value, str) and limit and len(value) > limit and field not in errors:
            errors[field] = f"Must be at most {limit} characters"

    dob = values.get("dob")
    if not dob:
        errors["dob"] = "Date of birth is required"
    else:
        age = _age_on(dob, today)
        if age < settings.MIN_APPLICANT_AGE or age > settings.MAX_APPLICANT_AGE:
            errors["dob"] = (
                f"Age must be between {settings.MIN_APPLICANT_AGE} "
                f"and {settings.MAX_APPLICANT_AGE}"
            )
    return errors


def mark_complete(db: Session, identity_id: str, fields: Dict[str, Any]) -> Profile:
    profile = get_profile(db, identity_id)
    if profile is None:
        raise NotFound("Profile not found")

    merged = {field: getattr(profile, field) for field in EDITABLE_FIELDS}
    for field in EDITABLE_FIELDS:
        if field not in fields:
            continue
        value = fields[field]
        if isinstance(value, str):
            value = value.strip() or None
        merged[field] = value

    errors = completion_errors(merged)
    if errors:
        raise ValidationError(errors)

    try:
        for field, value in merged.items():
            setattr(profile, field, value)
        profile.is_profile_complete = True
        profile.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(profile)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Profile update failed for {identity_id}: {str(e)}")
        raise ProviderError("Profile store unavailable")

    logger.info(f"✅ Profile completed for {identity_id}")
    return profile
