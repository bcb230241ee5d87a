# app/routes/health.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
import psutil
import datetime
import sys
import logging

from app.config import settings
from app.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/health",
    tags=["Health Check"]
)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("")
def health_check(db: Session = Depends(get_db)):
    """
    Health check with database connectivity
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.datetime.now().isoformat(),
        "service": f"{settings.EVENT_NAME} Portal API",
        "version": "1.0.0",
    }

    # 1. Database check
    try:
        db.execute(text("SELECT 1"))
        health_status["database"] = {
            "status": "connected",
            "type": db.get_bind().dialect.name
        }
    except Exception as e:
        logger.error(f"Health check database query failed: {e}")
        health_status["database"] = {"status": "disconnected"}
        health_status["status"] = "degraded"

    # 2. Identity provider configuration
    health_status["identity"] = {
        "mode": settings.IDENTITY_MODE,
        "configured": bool(settings.SECRET_KEY or settings.IDENTITY_PROVIDER_URL),
    }

    # 3. System resources
    health_status["system"] = {
        "python_version": sys.version.split()[0],
        "platform": sys.platform,
        "memory_percent": psutil.virtual_memory().percent,
    }

    logger.info(f"Health check completed: {health_status['status']}")
    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code, headers=NO_CACHE_HEADERS)


@router.get("/ping")
def ping():
    """
    Simple ping endpoint for keep-alive
    """
    return JSONResponse(
        content={"status": "pong", "timestamp": datetime.datetime.now().isoformat()},
        headers={"Cache-Control": "no-cache"}
    )
