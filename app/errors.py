# app/errors.py
"""
Error taxonomy shared by the gateway, the profile store and the lifecycle manager.

Services raise these; the handlers registered in app.main translate them into
responses. Nothing here knows about HTTP.
"""
from typing import Dict, Optional


class PortalError(Exception):
    """Base class for every domain error raised by the portal core."""

    default_message = "Request could not be completed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ProviderError(PortalError):
    """Identity provider or relational store unreachable, timed out or misbehaving."""

    default_message = "A required service is temporarily unavailable. Please retry."


class ValidationError(PortalError):
    """Missing or malformed required field; recoverable by the user."""

    default_message = "Some fields are missing or invalid"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        super().__init__(message)


class AlreadySubmitted(PortalError):
    default_message = "You already have an application"


class InvalidTransition(PortalError):
    default_message = "This status change is not allowed"

    def __init__(self, current: Optional[str] = None, requested: Optional[str] = None):
        self.current = current
        self.requested = requested
        message = None
        if current and requested:
            message = f"Cannot move application from '{current}' to '{requested}'"
        super().__init__(message)


class NotFound(PortalError):
    default_message = "Resource not found"


class Unauthorized(PortalError):
    """No usable session, or the provider rejected the supplied credentials."""

    default_message = "Authentication required"


class Forbidden(PortalError):
    """Role or ownership mismatch."""

    default_message = "You do not have access to this resource"
