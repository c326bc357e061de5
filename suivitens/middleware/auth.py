"""
SuiviTens Backend — Bearer Identity Middleware
================================================

What:  Resolves `Authorization: Bearer <token>` into a user id on every request.
How:   The middleware only annotates `request.state`; it never rejects.
       Protected routes depend on `require_user`, which raises
       AuthenticationError (→ 401) when no identity was attached.
Who:   Registered in main.create_app(); `require_user` is used by the
       measurements router.

request.state after this middleware:
    user_id      resolved user id, or None
    auth_error   None, "missing" (no bearer header) or "invalid" (unknown token)
"""

import logging
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from suivitens.exceptions import AuthenticationError
from suivitens.services.identity import IdentityResolver

logger = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "No token, authorization denied"
INVALID_TOKEN_MESSAGE = "Token is not valid"


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    """Returns the token from a "Bearer <token>" header value, else None."""
    if not header:
        return None
    scheme, _, credentials = header.strip().partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


class BearerIdentityMiddleware(BaseHTTPMiddleware):
    """Attaches the caller's user id (or the reason there is none) to request.state."""

    def __init__(self, app, resolver: IdentityResolver, **kwargs):
        super().__init__(app, **kwargs)
        self.resolver = resolver

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.user_id = None
        request.state.auth_error = None

        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            request.state.auth_error = "missing"
        else:
            user_id = await self.resolver.resolve(token)
            if user_id:
                request.state.user_id = user_id
            else:
                request.state.auth_error = "invalid"
                logger.debug("Rejected bearer token for %s %s", request.method, request.url.path)

        return await call_next(request)


async def require_user(request: Request) -> str:
    """
    FastAPI dependency returning the authenticated user id.

    Raises:
        AuthenticationError: no bearer token, or one the resolver did not recognise
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return user_id
    if getattr(request.state, "auth_error", "missing") == "invalid":
        raise AuthenticationError(message=INVALID_TOKEN_MESSAGE)
    raise AuthenticationError(message=MISSING_TOKEN_MESSAGE)
