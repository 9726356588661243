"""
Session Token Middleware

Resolves the caller's identity from a signed session token
(Authorization: Bearer <jwt>) issued by the auth provider.
Requests without a token proceed anonymously; routes that need a user
reject them through SessionDependency.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from fastapi import HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..core.config import settings
from ..core.context import RequestContext

logger = logging.getLogger(__name__)


class InvalidSessionToken(Exception):
    """Token is malformed, expired or signed with the wrong key"""
    pass


@dataclass
class SessionClaims:
    """Claims carried by a session token"""
    user_id: str
    email: Optional[str] = None


class SessionTokenCodec:
    """
    Issues and decodes HMAC-signed session tokens.

    Usage:
        codec = SessionTokenCodec(secret="...")
        token = codec.issue("user-123")
        claims = codec.decode(token)
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        issuer: Optional[str] = None,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.issuer = issuer

    def issue(
        self,
        user_id: str,
        email: Optional[str] = None,
        expires_in: timedelta = timedelta(hours=1),
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + expires_in,
        }
        if email:
            payload["email"] = email
        if self.issuer:
            payload["iss"] = self.issuer
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> SessionClaims:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidSessionToken(str(e)) from e

        return SessionClaims(
            user_id=str(payload["sub"]),
            email=payload.get("email"),
        )


def _extract_bearer_token(request: Request) -> Optional[str]:
    """Token from the Authorization header, or None"""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


class SessionAuthMiddleware(BaseHTTPMiddleware):
    """
    Decodes the session token, if any, onto request.state.

    An invalid token does not fail the request here; it leaves the request
    anonymous so that SessionDependency rejects it where a user is required.
    """

    def __init__(self, app, codec: SessionTokenCodec):
        super().__init__(app)
        self.codec = codec

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.session_user_id = None
        request.state.session_email = None

        token = _extract_bearer_token(request)
        if token:
            try:
                claims = self.codec.decode(token)
            except InvalidSessionToken as e:
                logger.warning(f"Session token rejected: {e}")
            else:
                request.state.session_user_id = claims.user_id
                request.state.session_email = claims.email
                logger.debug(f"Session resolved: user={claims.user_id}")

        response = await call_next(request)
        return response


class SessionDependency:
    """
    FastAPI dependency that turns the resolved session into a RequestContext.
    """

    def __init__(self, require_user: bool = True):
        """
        Args:
            require_user: If True, reject anonymous requests with 401
        """
        self.require_user = require_user

    async def __call__(self, request: Request) -> Optional[RequestContext]:
        user_id = getattr(request.state, "session_user_id", None)

        if user_id is None:
            if self.require_user:
                raise HTTPException(status_code=401, detail="Unauthorized")
            return None

        return RequestContext(
            user_id=user_id,
            email=getattr(request.state, "session_email", None),
        )


def get_session_codec() -> SessionTokenCodec:
    """Create the session token codec from settings"""
    if settings.session_secret == "dev-session-secret":
        logger.warning("Using the default session secret - set SESSION_SECRET outside development")
    return SessionTokenCodec(
        secret=settings.session_secret,
        algorithm=settings.session_algorithm,
        issuer=settings.session_issuer,
    )


# Dependency instances
require_user = SessionDependency(require_user=True)
optional_user = SessionDependency(require_user=False)
