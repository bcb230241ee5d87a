# app/models/__init__.py

from .profile import Profile
from .application import Application, ApplicationStatus

__all__ = ["Profile", "Application", "ApplicationStatus"]
