# app/auth/gateway.py
"""
Access-Control Gateway.

Every request is classified into one route class, the session is resolved
fresh, and a single ordered decision table maps (route class, session) to
Allow, RedirectTo(path) or Deny. Verification is checked before profile
completion, and completion before admin role, so the table must be evaluated
top to bottom.

`decide` is pure. `evaluate` does the I/O (identity resolution and, only when
the table needs it, the profile lookup) and never raises: any provider or
store fault becomes Deny.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union, Callable
import logging

from sqlalchemy.orm import Session

from app.auth.identity import Identity
from app.errors import ProviderError
from app.models.profile import ROLE_ADMIN
from app.services.profile_store import get_profile

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
VERIFY_EMAIL_PATH = "/auth/verify-email"
PROFILE_PATH = "/profile"
DASHBOARD_PATH = "/dashboard"


class RouteClass(str, Enum):
    PUBLIC = "Public"
    AUTH_ONLY = "AuthOnly"
    PROFILE_GATE = "ProfileGate"
    PROTECTED = "Protected"
    ADMIN_ONLY = "AdminOnly"


# (path prefix, class). Matching is per path segment and the longest prefix wins,
# so "/auth/logout" overrides "/auth".
ROUTE_TABLE: Tuple[Tuple[str, RouteClass], ...] = (
    ("/", RouteClass.PUBLIC),
    ("/schedule", RouteClass.PUBLIC),
    ("/health", RouteClass.PUBLIC),
    ("/api/health", RouteClass.PUBLIC),
    ("/docs", RouteClass.PUBLIC),
    ("/redoc", RouteClass.PUBLIC),
    ("/openapi.json", RouteClass.PUBLIC),
    ("/auth", RouteClass.AUTH_ONLY),
    # Signing out has to work for verified sessions too
    ("/auth/logout", RouteClass.PUBLIC),
    ("/profile", RouteClass.PROFILE_GATE),
    ("/dashboard", RouteClass.PROTECTED),
    ("/admin", RouteClass.ADMIN_ONLY),
)


# ------------------ Decisions ------------------

@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class RedirectTo:
    path: str


@dataclass(frozen=True)
class Deny:
    reason: str


Decision = Union[Allow, RedirectTo, Deny]

DENY_PROVIDER_UNAVAILABLE = "provider_unavailable"
DENY_STORE_UNAVAILABLE = "store_unavailable"
DENY_UNCLASSIFIED_ROUTE = "unclassified_route"
DENY_INTERNAL_ERROR = "internal_error"

# Reasons that mean "retry later" rather than "not for you"
TRANSIENT_DENY_REASONS = {DENY_PROVIDER_UNAVAILABLE, DENY_STORE_UNAVAILABLE, DENY_INTERNAL_ERROR}


@dataclass(frozen=True)
class ProfileState:
    role: str
    is_complete: bool


@dataclass(frozen=True)
class SessionState:
    identity: Optional[Identity] = None
    profile: Optional[ProfileState] = None
    provider_failed: bool = False
    store_failed: bool = False


# ------------------ Classification ------------------

def _normalize(path: str) -> str:
    if not path:
        return "/"
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"
    return path


def classify(path: str) -> Optional[RouteClass]:
    path = _normalize(path)
    best: Optional[Tuple[str, RouteClass]] = None
    for prefix, route_class in ROUTE_TABLE:
        if prefix == "/":
            matched = path == "/"
        else:
            matched = path == prefix or path.startswith(prefix + "/")
        if matched and (best is None or len(prefix) > len(best[0])):
            best = (prefix, route_class)
    return best[1] if best else None


# ------------------ Decision table ------------------

def decide(route_class: Optional[RouteClass], state: SessionState) -> Decision:
    if route_class is None:
        return Deny(DENY_UNCLASSIFIED_ROUTE)

    # 1. provider fault: fail closed
    if state.provider_failed:
        return Deny(DENY_PROVIDER_UNAVAILABLE)

    if route_class is RouteClass.PUBLIC:
        return Allow()

    identity = state.identity

    # 2-3. anonymous
    if identity is None:
        if route_class is RouteClass.AUTH_ONLY:
            return Allow()
        return RedirectTo(LOGIN_PATH)

    # 4-5. signed in, email not verified
    if not identity.email_verified:
        if route_class is RouteClass.AUTH_ONLY:
            return Allow()
        return RedirectTo(VERIFY_EMAIL_PATH)

    # 6. verified users have no reason to re-authenticate
    if route_class is RouteClass.AUTH_ONLY:
        return RedirectTo(DASHBOARD_PATH)

    if route_class in (RouteClass.PROTECTED, RouteClass.ADMIN_ONLY) and state.store_failed:
        return Deny(DENY_STORE_UNAVAILABLE)

    profile = state.profile

    # 7. completion gate
    if route_class is RouteClass.PROTECTED and (profile is None or not profile.is_complete):
        return RedirectTo(PROFILE_PATH)

    # 8. role gate
    if route_class is RouteClass.ADMIN_ONLY and (profile is None or profile.role != ROLE_ADMIN):
        return RedirectTo(DASHBOARD_PATH)

    # 9.
    return Allow()


def needs_profile(route_class: Optional[RouteClass], identity: Optional[Identity]) -> bool:
    return (
        identity is not None
        and identity.email_verified
        and route_class in (RouteClass.PROTECTED, RouteClass.ADMIN_ONLY)
    )


# ------------------ Evaluation ------------------

def evaluate(
    path: str,
    token: Optional[str],
    resolver,
    session_factory: Callable[[], Session],
) -> Tuple[Decision, SessionState]:
    route_class = classify(path)
    if route_class is None or route_class is RouteClass.PUBLIC:
        return decide(route_class, SessionState()), SessionState()

    try:
        identity = resolver.resolve(token)
    except ProviderError as e:
        logger.error(f"❌ [gateway] Identity provider fault on {path}: {e.message}")
        state = SessionState(provider_failed=True)
        return decide(route_class, state), state

    state = SessionState(identity=identity)
    if needs_profile(route_class, identity):
        db = session_factory()
        try:
            profile = get_profile(db, identity.id)
            profile_state = None
            if profile is not None:
                profile_state = ProfileState(role=profile.role, is_complete=bool(profile.is_profile_complete))
            state = SessionState(identity=identity, profile=profile_state)
        except ProviderError as e:
            logger.error(f"❌ [gateway] Profile store fault on {path}: {e.message}")
            state = SessionState(identity=identity, store_failed=True)
        finally:
            db.close()

    decision = decide(route_class, state)
    if not isinstance(decision, Allow):
        user = identity.id if identity else "anonymous"
        logger.info(f"[gateway] {path} ({route_class.value}) user={user} -> {decision}")
    return decision, state
