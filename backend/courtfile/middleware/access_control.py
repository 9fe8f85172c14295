"""
Page access gate
================
Runs before any page route. Resolves the caller from the signed session token
and either lets the request through or redirects it:

  - public paths             -> pass
  - no / invalid token       -> "/"
  - unverified account       -> "/auth/verify-reminder"
  - /admin/* without admin   -> "/unauthorized"

API routes under /api are public here; they authorize through dependencies
and answer 401/403 instead of redirecting.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from courtfile.core.config import settings
from courtfile.core.security import decode_access_token

logger = logging.getLogger(__name__)

PUBLIC_PATHS = frozenset({"/", "/unauthorized", "/health", "/docs", "/redoc", "/openapi.json"})
PUBLIC_PREFIXES = ("/auth/", "/api/", "/uploads/", "/static/", "/docs/")
PROTECTED_PREFIXES = ("/admin", "/user", "/cases")

LOGIN_REDIRECT = "/"
VERIFY_REDIRECT = "/auth/verify-reminder"
UNAUTHORIZED_REDIRECT = "/unauthorized"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    redirect_to: Optional[str] = None


PASS = AccessDecision(allowed=True)


def _matches(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def is_public(path: str) -> bool:
    if path in PUBLIC_PATHS or path == "/auth":
        return True
    return any(path.startswith(p) for p in PUBLIC_PREFIXES)


def is_protected(path: str) -> bool:
    return any(_matches(path, p) for p in PROTECTED_PREFIXES)


def decide_access(path: str, claims: Optional[dict]) -> AccessDecision:
    """Pure decision for a request path and decoded token claims (None = no valid token)."""
    if is_public(path) or not is_protected(path):
        return PASS
    if not claims:
        return AccessDecision(allowed=False, redirect_to=LOGIN_REDIRECT)
    if not claims.get("is_verified", False):
        return AccessDecision(allowed=False, redirect_to=VERIFY_REDIRECT)
    if _matches(path, "/admin") and claims.get("role") != "admin":
        return AccessDecision(allowed=False, redirect_to=UNAUTHORIZED_REDIRECT)
    return PASS


def read_claims(request: Request) -> Optional[dict]:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        auth = request.headers.get("Authorization", "")
        if auth.lower().startswith("bearer "):
            token = auth[7:].strip()
    if not token:
        return None
    try:
        return decode_access_token(token)
    except jwt.PyJWTError:
        return None


class AccessControlMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        decision = decide_access(path, read_claims(request) if is_protected(path) else None)
        if not decision.allowed:
            logger.info("access denied path=%s redirect=%s", path, decision.redirect_to)
            return RedirectResponse(url=decision.redirect_to, status_code=307)
        return await call_next(request)
