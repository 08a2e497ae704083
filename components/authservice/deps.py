from typing import Optional

from fastapi import Depends, Header, Request

from .contracts import AuthContext
from .errors import Unauthenticated
from .service import AuthService, get_auth_service, set_auth_service


def get_authorization_header(authorization: Optional[str] = Header(default=None, alias="Authorization")) -> Optional[str]:
    """
    Extract the Authorization header value (e.g., 'Bearer <token>').
    Using Header() ensures we get a plain string during real FastAPI requests.
    """
    return authorization


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    return request.client.host if request.client else None


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    return authorization.split(" ", 1)[1].strip() or None


def require_auth(
    auth: AuthService = Depends(get_auth_service),
    authorization: Optional[str] = Depends(get_authorization_header),
    ip: Optional[str] = Depends(get_client_ip),
) -> AuthContext:
    """Resolve the bearer token into an explicit AuthContext or fail with 401."""
    token = bearer_token(authorization)
    if token is None:
        raise Unauthenticated()
    return auth.resolve_bearer(token, ip=ip)


__all__ = [
    "get_auth_service",
    "set_auth_service",
    "get_authorization_header",
    "get_client_ip",
    "bearer_token",
    "require_auth",
]
