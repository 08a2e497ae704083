from .service import AuthService, SystemClock, get_auth_service, set_auth_service
from .crypto import PasswordHasher
from .tokens import OpaqueTokenIssuer
from .repository import InMemoryUserStore, InMemoryTokenStore
from .oauth import OAuthBroker, make_broker
from .config import AuthSettings
from .deps import require_auth
from .routes import router as auth_router
from .app import build_service, create_app

__all__ = [
    "AuthService",
    "SystemClock",
    "get_auth_service",
    "set_auth_service",
    "PasswordHasher",
    "OpaqueTokenIssuer",
    "InMemoryUserStore",
    "InMemoryTokenStore",
    "OAuthBroker",
    "make_broker",
    "AuthSettings",
    "require_auth",
    "auth_router",
    "build_service",
    "create_app",
]
