from __future__ import annotations
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from .config import AuthSettings
from .crypto import PasswordHasher
from .errors import AuthServiceException, ValidationFailed
from .oauth import make_broker
from .observability import RequestContextMiddleware
from .repository import InMemoryUserStore
from .routes import error_resource, resource, router as auth_router
from .service import AuthService, get_auth_service, set_auth_service
from .tokens import OpaqueTokenIssuer
from .validation import field_errors

def build_service(settings: Optional[AuthSettings] = None) -> AuthService:
    """Default wiring: in-memory stores, PBKDF2 hasher, providers from settings."""
    settings = settings or AuthSettings()
    return AuthService(
        users=InMemoryUserStore(),
        hasher=PasswordHasher(),
        tokens=OpaqueTokenIssuer(),
        oauth=make_broker(settings),
        cfg=settings,
    )

def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthServiceException)
    async def _auth_error(request: Request, exc: AuthServiceException):
        return error_resource(request, exc)

    @app.exception_handler(RequestValidationError)
    async def _request_error(request: Request, exc: RequestValidationError):
        errors = field_errors(exc, strip=("body", "query", "path", "header"))
        return error_resource(request, ValidationFailed(errors))

def create_app(settings: Optional[AuthSettings] = None, service: Optional[AuthService] = None) -> FastAPI:
    settings = settings or (service.cfg if service else AuthSettings())
    service = service or build_service(settings)
    set_auth_service(service)

    app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)
    app.add_middleware(RequestContextMiddleware)
    # each app resolves its own service instance
    app.dependency_overrides[get_auth_service] = lambda: service
    install_exception_handlers(app)

    # Routers
    app.include_router(auth_router)

    @app.get("/health")
    def health(request: Request):
        return resource(request, {"status": "ok", "version": settings.APP_VERSION})

    return app
