# app/routes/profile.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_identity
from app.auth.identity import Identity
from app.database import get_db
from app.schemas.profile import ProfileUpdate, ProfileResponse
from app.services.profile_store import ensure_profile, mark_complete

router = APIRouter(
    prefix="/profile",
    tags=["Profile"]
)


@router.get("", response_model=ProfileResponse)
def read_profile(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    return ensure_profile(db, identity)


@router.put("", response_model=ProfileResponse)
def complete_profile(
    data: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Save the profile form; a valid save marks the profile complete."""
    ensure_profile(db, identity)
    return mark_complete(db, identity.id, data.model_dump(exclude_unset=True))
