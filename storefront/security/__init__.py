# Session security

from .session import (
    SessionAuthMiddleware,
    SessionDependency,
    SessionTokenCodec,
    SessionClaims,
    InvalidSessionToken,
    get_session_codec,
    require_user,
    optional_user,
)

__all__ = [
    "SessionAuthMiddleware",
    "SessionDependency",
    "SessionTokenCodec",
    "SessionClaims",
    "InvalidSessionToken",
    "get_session_codec",
    "require_user",
    "optional_user",
]
