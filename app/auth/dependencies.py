# app/auth/dependencies.py
from typing import Optional
from fastapi import Depends, Request
from sqlalchemy.orm import Session
import logging

from app.auth.identity import Identity
from app.database import get_db
from app.errors import Unauthorized
from app.models.profile import Profile
from app.services.profile_store import get_profile

logger = logging.getLogger(__name__)


def get_optional_identity(request: Request) -> Optional[Identity]:
    """Identity the gateway resolved for this request, if any."""
    return getattr(request.state, "identity", None)


def get_current_identity(identity: Optional[Identity] = Depends(get_optional_identity)) -> Identity:
    if identity is None:
        raise Unauthorized()
    return identity


def get_current_profile(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
) -> Profile:
    """Profile read fresh from the store for this request; role is never taken from a cache."""
    profile = get_profile(db, identity.id)
    if profile is None:
        logger.warning(f"Session {identity.id} has no profile row")
        raise Unauthorized("Profile not found")
    return profile
