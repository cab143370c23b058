# lendtrust/middleware/authentication.py
from typing import Awaitable, Callable, Optional, Set

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.security.utils import get_authorization_scheme_param
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from lendtrust.core.security import decode_username

# Paths reachable without a bearer token
PUBLIC_PATHS: Set[str] = {
    "/",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/api/v1/auth/token",
    "/api/v1/auth/register",
}


def is_public_path(path: str) -> bool:
    if path in PUBLIC_PATHS:
        return True
    return path.startswith("/docs") or path.startswith("/redoc")


def _unauthorized(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": {"error": "unauthenticated", "message": message}},
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """Rejects unauthenticated calls to protected paths and sets `request.state.username`."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        path = request.url.path
        request_id = getattr(request.state, "request_id", "N/A")

        if is_public_path(path):
            return await call_next(request)

        authorization: Optional[str] = request.headers.get("Authorization")
        scheme, token = get_authorization_scheme_param(authorization or "")
        if not authorization or scheme.lower() != "bearer" or not token:
            logger.warning(f"RID:{request_id} Auth failed: no bearer token for {path}.")
            return _unauthorized("Not authenticated")

        username = decode_username(token)
        if not username:
            logger.warning(f"RID:{request_id} Auth failed: invalid token for {path}.")
            return _unauthorized("Invalid token")

        request.state.username = username.lower()
        logger.debug(f"RID:{request_id} '{request.state.username}' accessing {path}.")
        return await call_next(request)
