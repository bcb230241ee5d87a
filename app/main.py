from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
import logging

from app.config import settings
from app.database import SessionLocal
from app.auth.identity import build_identity_resolver
from app.auth.gateway import DASHBOARD_PATH, LOGIN_PATH, DENY_INTERNAL_ERROR
from app.auth.middleware import deny_response, gateway_middleware
from app.errors import (
    AlreadySubmitted,
    Forbidden,
    InvalidTransition,
    NotFound,
    ProviderError,
    Unauthorized,
    ValidationError,
)
from app.services.identity_provider import IdentityProviderClient

# Init app
app = FastAPI(
    title=f"{settings.EVENT_NAME} Portal Backend",
    description="Applicant portal API: access-control gateway, application lifecycle and admin review",
    version="1.0.0",
)

# Enable logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Collaborators used by the gateway; resolved per request, never cached per user
app.state.identity_client = IdentityProviderClient()
app.state.identity_resolver = build_identity_resolver(app.state.identity_client)
app.state.session_factory = SessionLocal

# Gateway runs on every request before any route handler
app.middleware("http")(gateway_middleware)

# CORS is added last so it wraps the gateway and answers preflight requests itself
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600
)

# Route Registrations
from app.routes import (
    public_router,
    auth_router,
    profile_router,
    dashboard_router,
    admin_router,
    health_router,
)

routers = [
    public_router,
    auth_router,
    profile_router,
    dashboard_router,
    admin_router,
    health_router,
]

for router in routers:
    app.include_router(router)
    logger.info(f"Included router: {router.prefix or '/'}")


@app.get("/health", include_in_schema=False)
def liveness():
    return {"status": "healthy"}


# ------------------ Error translation ------------------

@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    logger.error(f"Provider fault on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=503, content={"detail": ProviderError.default_message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message, "errors": exc.errors})


@app.exception_handler(AlreadySubmitted)
async def already_submitted_handler(request: Request, exc: AlreadySubmitted):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(InvalidTransition)
async def invalid_transition_handler(request: Request, exc: InvalidTransition):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(Unauthorized)
async def unauthorized_handler(request: Request, exc: Unauthorized):
    # Sign-in forms show the provider's message inline
    if request.url.path.startswith("/auth/"):
        return JSONResponse(status_code=401, content={"detail": exc.message})
    return RedirectResponse(url=LOGIN_PATH, status_code=303)


@app.exception_handler(Forbidden)
async def forbidden_handler(request: Request, exc: Forbidden):
    logger.warning(f"Forbidden on {request.url.path}: {exc.message}")
    return RedirectResponse(url=DASHBOARD_PATH, status_code=303)


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    # Unexpected faults get the same retry answer the gateway gives
    logger.exception(f"❌ Internal server error on {request.url.path}")
    return deny_response(DENY_INTERNAL_ERROR)


# Startup event
@app.on_event("startup")
async def startup_event():
    logger.info(f"🚀 {settings.EVENT_NAME} portal backend starting up...")
    logger.info(f"🔐 Identity mode: {settings.IDENTITY_MODE}")
    logger.info(f"🌐 CORS enabled for origins: {settings.CORS_ORIGINS}")
    logger.info("✅ Server is ready to handle requests")

# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"🛑 {settings.EVENT_NAME} portal backend shutting down...")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info"
    )
