# app/services/identity_provider.py
"""
HTTP client for the external identity provider (GoTrue-compatible /auth/v1 API).

Transport faults, timeouts and 5xx answers become ProviderError so callers can
fail closed. Credential rejections become Unauthorized.
"""
import base64
import hashlib
import secrets
from typing import Optional, Dict, Any
from urllib.parse import urlencode
import logging

import httpx

from app.config import settings
from app.errors import ProviderError, Unauthorized, ValidationError

logger = logging.getLogger(__name__)


def generate_code_verifier() -> str:
    return secrets.token_urlsafe(48)


def code_challenge_for(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class IdentityProviderClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.IDENTITY_PROVIDER_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.IDENTITY_PROVIDER_ANON_KEY
        self.timeout = timeout if timeout is not None else settings.IDENTITY_TIMEOUT_SECONDS
        self.transport = transport

    def _request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        if not self.base_url:
            raise ProviderError("Identity provider URL is not configured")

        headers = {"apikey": self.api_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.request(
                    method,
                    f"{self.base_url}/auth/v1{path}",
                    headers=headers,
                    params=params,
                    json=json,
                )
        except httpx.TimeoutException:
            logger.error(f"❌ Identity provider timed out: {method} {path}")
            raise ProviderError("Identity provider timed out")
        except httpx.HTTPError as e:
            logger.error(f"❌ Identity provider unreachable: {method} {path}: {str(e)}")
            raise ProviderError("Identity provider unreachable")

        if response.status_code >= 500:
            logger.error(f"❌ Identity provider error {response.status_code}: {method} {path}")
            raise ProviderError(f"Identity provider answered {response.status_code}")
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            raise ProviderError("Identity provider returned a malformed body")
        if not isinstance(body, dict):
            raise ProviderError("Identity provider returned a malformed body")
        return body

    @staticmethod
    def _error_message(response: httpx.Response, fallback: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return fallback
        if isinstance(body, dict):
            return body.get("msg") or body.get("error_description") or body.get("message") or fallback
        return fallback

    def get_user(self, token: str) -> Optional[Dict[str, Any]]:
        """Return the provider's user object, or None when the token is not (or no longer) valid."""
        response = self._request("GET", "/user", token=token)
        if response.status_code in (401, 403):
            return None
        if response.status_code != 200:
            raise ProviderError(f"Unexpected identity provider status {response.status_code}")
        return self._json(response)

    def sign_up(self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": metadata or {}},
        )
        if response.status_code in (400, 409, 422):
            raise ValidationError({"email": self._error_message(response, "Sign-up was rejected")})
        if response.status_code != 200:
            raise ProviderError(f"Unexpected identity provider status {response.status_code}")
        return self._json(response)

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        response = self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.status_code in (400, 401, 403):
            raise Unauthorized(self._error_message(response, "Incorrect email or password"))
        if response.status_code != 200:
            raise ProviderError(f"Unexpected identity provider status {response.status_code}")
        return self._json(response)

    def authorize_url(self, provider: str, redirect_to: str, code_verifier: str) -> str:
        """URL that starts the OAuth flow at the provider (PKCE)."""
        query = urlencode({
            "provider": provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge_for(code_verifier),
            "code_challenge_method": "s256",
        })
        return f"{self.base_url}/auth/v1/authorize?{query}"

    def exchange_code_for_session(self, code: str, code_verifier: str) -> Dict[str, Any]:
        response = self._request(
            "POST",
            "/token",
            params={"grant_type": "pkce"},
            json={"auth_code": code, "code_verifier": code_verifier},
        )
        if response.status_code in (400, 401, 403, 404):
            raise Unauthorized(self._error_message(response, "Sign-in link is invalid or expired"))
        if response.status_code != 200:
            raise ProviderError(f"Unexpected identity provider status {response.status_code}")
        return self._json(response)

    def resend_verification(self, email: str) -> None:
        response = self._request("POST", "/resend", json={"type": "signup", "email": email})
        if response.status_code >= 400:
            logger.warning(f"Verification resend rejected for {email}: {response.status_code}")

    def sign_out(self, token: str) -> None:
        response = self._request("POST", "/logout", token=token)
        # An already-invalid token is a signed-out session
        if response.status_code >= 400 and response.status_code not in (401, 403, 404):
            logger.warning(f"Sign-out returned {response.status_code}")
