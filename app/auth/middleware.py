# app/auth/middleware.py
from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool
import logging

from app.auth.gateway import RedirectTo, Deny, SessionState, evaluate, DENY_INTERNAL_ERROR, TRANSIENT_DENY_REASONS
from app.auth.identity import extract_access_token

logger = logging.getLogger(__name__)


def deny_response(reason: str) -> JSONResponse:
    if reason in TRANSIENT_DENY_REASONS:
        return JSONResponse(
            status_code=503,
            content={"detail": "Service temporarily unavailable. Please retry."},
        )
    return JSONResponse(status_code=403, content={"detail": "Access denied"})


async def gateway_middleware(request: Request, call_next):
    """Run the gateway once per request before any route handler."""
    if request.method == "OPTIONS":
        return await call_next(request)

    token = extract_access_token(request)
    try:
        decision, state = await run_in_threadpool(
            evaluate,
            request.url.path,
            token,
            request.app.state.identity_resolver,
            request.app.state.session_factory,
        )
    except Exception:
        logger.exception(f"❌ [gateway] Unexpected failure on {request.url.path}")
        decision, state = Deny(DENY_INTERNAL_ERROR), SessionState()

    if isinstance(decision, RedirectTo):
        return RedirectResponse(url=decision.path, status_code=303)
    if isinstance(decision, Deny):
        return deny_response(decision.reason)

    request.state.identity = state.identity
    request.state.access_token = token
    return await call_next(request)
