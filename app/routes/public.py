# app/routes/public.py
from fastapi import APIRouter

from app.config import settings

router = APIRouter(tags=["Public"])


@router.get("/")
def landing():
    return {
        "status": "ok",
        "event": settings.EVENT_NAME,
        "message": f"Welcome to the {settings.EVENT_NAME} application portal",
        "links": {
            "signup": "/auth/signup",
            "login": "/auth/login",
            "schedule": "/schedule",
        },
        "oauth_providers": settings.OAUTH_PROVIDERS,
    }


@router.get("/schedule")
def schedule():
    return {"event": settings.EVENT_NAME, "schedule": settings.EVENT_SCHEDULE}
