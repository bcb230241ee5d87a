# app/schemas/__init__.py
from .profile import ProfileUpdate, ProfileResponse
from .application import ApplicationValues, ApplicationSubmission, ApplicationResponse
from .admin import (
    TransitionRequest,
    BulkTransitionRequest,
    BulkTransitionResponse,
    StatsResponse,
    ApplicationRow,
    ApplicationListResponse,
    AdminOverviewResponse
)
from .auth import SignupRequest, LoginRequest, ResendVerificationRequest, SessionResponse

__all__ = [
    "ProfileUpdate",
    "ProfileResponse",
    "ApplicationValues",
    "ApplicationSubmission",
    "ApplicationResponse",
    "TransitionRequest",
    "BulkTransitionRequest",
    "BulkTransitionResponse",
    "StatsResponse",
    "ApplicationRow",
    "ApplicationListResponse",
    "AdminOverviewResponse",
    "SignupRequest",
    "LoginRequest",
    "ResendVerificationRequest",
    "SessionResponse"
]
