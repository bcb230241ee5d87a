# app/auth/identity.py
"""
Identity Session Resolver.

Turns the credentials on an incoming request into an Identity, or None for an
anonymous request. "No session" is a normal result; only a provider fault
(unreachable, 5xx, timeout, malformed token) raises ProviderError. Nothing is
cached between requests.
"""
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict
from fastapi import Request
from jose import jwt, JWTError, ExpiredSignatureError
import logging

from app.config import settings
from app.errors import ProviderError
from app.services.identity_provider import IdentityProviderClient

logger = logging.getLogger(__name__)


class Identity(BaseModel):
    id: str
    email: Optional[str] = None
    email_verified: bool = False
    provider: Optional[str] = None
    user_metadata: Dict[str, Any] = {}

    model_config = ConfigDict(frozen=True, title="Identity")

    @classmethod
    def from_provider_user(cls, user: Dict[str, Any]) -> "Identity":
        """Build from a provider user object (GET /user, sign-in and code-exchange payloads)."""
        if not isinstance(user, dict) or not user.get("id"):
            raise ProviderError("Identity provider returned a user without an id")
        metadata = user.get("user_metadata") or {}
        app_metadata = user.get("app_metadata") or {}
        return cls(
            id=str(user["id"]),
            email=user.get("email"),
            email_verified=bool(user.get("email_confirmed_at") or user.get("confirmed_at")),
            provider=app_metadata.get("provider"),
            user_metadata=metadata,
        )

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Identity":
        """Build from verified access-token claims."""
        if not claims.get("sub"):
            raise ProviderError("Access token has no subject")
        metadata = claims.get("user_metadata") or {}
        app_metadata = claims.get("app_metadata") or {}
        verified = bool(
            claims.get("email_confirmed_at")
            or claims.get("email_verified")
            or metadata.get("email_verified")
        )
        return cls(
            id=str(claims["sub"]),
            email=claims.get("email"),
            email_verified=verified,
            provider=app_metadata.get("provider"),
            user_metadata=metadata,
        )


def extract_access_token(request: Request) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    header = request.headers.get("authorization")
    if header:
        scheme, _, token = header.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    return token or None


class JWTSessionResolver:
    """Verifies provider-issued access tokens locally with the shared JWT secret."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", audience: Optional[str] = None):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.audience = audience

    def resolve(self, token: Optional[str]) -> Optional[Identity]:
        if not token:
            return None
        if not self.secret_key:
            raise ProviderError("JWT secret is not configured")

        options = {"verify_aud": bool(self.audience)}
        try:
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                options=options,
            )
        except ExpiredSignatureError:
            logger.info("Access token expired, treating request as anonymous")
            return None
        except JWTError as e:
            logger.error(f"❌ Malformed access token: {str(e)}")
            raise ProviderError("Malformed access token")

        return Identity.from_claims(claims)


class RemoteSessionResolver:
    """Asks the identity provider who owns the token on every request."""

    def __init__(self, client: IdentityProviderClient):
        self.client = client

    def resolve(self, token: Optional[str]) -> Optional[Identity]:
        if not token:
            return None
        user = self.client.get_user(token)
        if user is None:
            return None
        return Identity.from_provider_user(user)


def build_identity_resolver(client: Optional[IdentityProviderClient] = None):
    mode = settings.IDENTITY_MODE.strip().lower()
    if mode == "remote":
        logger.info("Identity resolution: remote provider lookup")
        return RemoteSessionResolver(client or IdentityProviderClient())
    if mode != "jwt":
        raise ValueError(f"Unknown IDENTITY_MODE: {settings.IDENTITY_MODE}")
    logger.info("Identity resolution: local JWT verification")
    return JWTSessionResolver(settings.SECRET_KEY, settings.ALGORITHM, settings.JWT_AUDIENCE or None)
