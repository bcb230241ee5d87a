# app/routes/auth.py
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.auth.dependencies import get_optional_identity
from app.auth.gateway import DASHBOARD_PATH, LOGIN_PATH, PROFILE_PATH, VERIFY_EMAIL_PATH
from app.auth.identity import Identity, extract_access_token
from app.config import settings
from app.database import get_db
from app.errors import NotFound, ProviderError, Unauthorized
from app.schemas.auth import SignupRequest, LoginRequest, ResendVerificationRequest, SessionResponse
from app.services.identity_provider import IdentityProviderClient, generate_code_verifier
from app.services.profile_store import ensure_profile

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)

logger = logging.getLogger(__name__)

PKCE_COOKIE_NAME = "pkce-verifier"


# ------------------ Helpers ------------------

def get_identity_client(request: Request) -> IdentityProviderClient:
    return request.app.state.identity_client


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.SITE_URL.startswith("https"),
        samesite="lax",
    )


def next_path_for(identity: Identity, profile) -> str:
    if not identity.email_verified:
        return VERIFY_EMAIL_PATH
    if not profile.is_profile_complete:
        return PROFILE_PATH
    return DASHBOARD_PATH


def _session_parts(payload: dict):
    token = payload.get("access_token")
    if not token:
        raise ProviderError("Identity provider returned no access token")
    return token, Identity.from_provider_user(payload.get("user") or {})


# ------------------ Endpoints ------------------

@router.post("/signup", response_model=SessionResponse)
def signup(
    data: SignupRequest,
    client: IdentityProviderClient = Depends(get_identity_client),
    db: Session = Depends(get_db)
):
    """Create the provider account and the local profile; the user must verify their email next."""
    normalized_email = data.email.strip().lower()
    logger.info(f"Signup started for: {normalized_email}")

    payload = client.sign_up(normalized_email, data.password, {"display_name": data.display_name})
    # Depending on provider settings the answer is a bare user or a session
    user = payload.get("user") or payload
    identity = Identity.from_provider_user(user)
    ensure_profile(db, identity, {"display_name": data.display_name, "email": normalized_email})

    return SessionResponse(
        status="verification_required",
        message="Check your inbox to verify your email address",
        next=VERIFY_EMAIL_PATH,
    )


@router.get("/login", response_model=dict)
def login_page(error: Optional[str] = None):
    """Sign-in options; `error` carries the reason a previous attempt bounced back here."""
    return {
        "providers": settings.OAUTH_PROVIDERS,
        "oauth_start": {p: f"/auth/oauth/{p}" for p in settings.OAUTH_PROVIDERS},
        "signup": "/auth/signup",
        "error": error,
    }


@router.post("/login", response_model=SessionResponse)
def login(
    data: LoginRequest,
    response: Response,
    client: IdentityProviderClient = Depends(get_identity_client),
    db: Session = Depends(get_db)
):
    normalized_email = data.email.strip().lower()
    token, identity = _session_parts(client.sign_in_with_password(normalized_email, data.password))
    profile = ensure_profile(db, identity)
    set_session_cookie(response, token)

    logger.info(f"Login succeeded for {identity.id}")
    return SessionResponse(
        status="success",
        message="Signed in",
        next=next_path_for(identity, profile),
        access_token=token,
        token_type="bearer",
    )


@router.get("/oauth/{provider}")
def oauth_start(provider: str, client: IdentityProviderClient = Depends(get_identity_client)):
    if provider not in settings.OAUTH_PROVIDERS:
        raise NotFound(f"Unknown sign-in provider: {provider}")

    verifier = generate_code_verifier()
    url = client.authorize_url(provider, f"{settings.SITE_URL}/auth/callback", verifier)
    response = RedirectResponse(url=url, status_code=303)
    response.set_cookie(PKCE_COOKIE_NAME, verifier, httponly=True, max_age=600, samesite="lax")
    return response


@router.get("/callback")
def oauth_callback(
    request: Request,
    code: Optional[str] = None,
    client: IdentityProviderClient = Depends(get_identity_client),
    db: Session = Depends(get_db)
):
    """Exchange the provider code for a session and make sure the profile row exists."""
    if not code:
        return RedirectResponse(url=f"{LOGIN_PATH}?error=missing_code", status_code=303)

    verifier = request.cookies.get(PKCE_COOKIE_NAME, "")
    try:
        token, identity = _session_parts(client.exchange_code_for_session(code, verifier))
        profile = ensure_profile(db, identity)
    except (Unauthorized, ProviderError) as e:
        logger.error(f"❌ OAuth callback failed: {e.message}")
        return RedirectResponse(url=f"{LOGIN_PATH}?error=auth_failed", status_code=303)

    response = RedirectResponse(url=next_path_for(identity, profile), status_code=303)
    set_session_cookie(response, token)
    response.delete_cookie(PKCE_COOKIE_NAME)
    return response


@router.get("/verify-email", response_model=dict)
def verify_email_instructions(identity: Optional[Identity] = Depends(get_optional_identity)):
    return {
        "status": "verification_required",
        "message": "Open the link we emailed you to verify your address, then sign in again.",
        "email": identity.email if identity else None,
    }


@router.post("/verify-email/resend", response_model=dict)
def resend_verification(
    data: ResendVerificationRequest,
    client: IdentityProviderClient = Depends(get_identity_client)
):
    client.resend_verification(data.email.strip().lower())
    # Same answer whether or not the address exists
    return {"status": "success", "message": "If the address is registered, a new link is on its way"}


@router.post("/logout", response_model=dict)
def logout(request: Request, response: Response, client: IdentityProviderClient = Depends(get_identity_client)):
    token = extract_access_token(request)
    if token:
        try:
            client.sign_out(token)
        except ProviderError as e:
            # The local session is cleared regardless; the provider token expires on its own
            logger.warning(f"Provider sign-out failed: {e.message}")
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"status": "success", "message": "Signed out", "next": LOGIN_PATH}
