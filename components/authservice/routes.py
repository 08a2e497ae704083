from __future__ import annotations
import logging
from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse
from .contracts import AuthContext, AuthResult, TokenEnvelope
from .deps import get_auth_service, get_client_ip, require_auth
from .errors import AuthServiceException, InvalidProvider
from .service import AuthService

logger = logging.getLogger("authservice.http")

router = APIRouter(prefix="/auth", tags=["auth"])

# ---- Helpers ----

def resource(request: Request, payload: Dict[str, Any], status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Uniform JSON body: the payload fields plus request/trace ids under `meta`."""
    body = dict(payload)
    body["meta"] = {
        "request_id": getattr(request.state, "request_id", None),
        "trace_id": getattr(request.state, "trace_id", None),
    }
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))

def error_resource(request: Request, err: AuthServiceException) -> JSONResponse:
    log = logger.warning if err.status_code >= 500 else logger.info
    log(
        "auth.error",
        extra={"code": err.code, "error_type": err.type, "status": err.status_code, "path": request.url.path},
    )
    return resource(request, err.to_payload(), status_code=err.status_code)

def _user(user) -> Dict[str, Any]:
    return user.model_dump(mode="json")

def _envelope(token: TokenEnvelope) -> Dict[str, Any]:
    return token.model_dump(mode="json")

def _auth_payload(result: AuthResult, message: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"user": _user(result.user)}
    if message:
        payload["message"] = message
    payload.update(_envelope(result.token))
    return payload

# ---- Routes ----

@router.post("/register")
def register(
    request: Request,
    payload: Any = Body(default=None),
    svc: AuthService = Depends(get_auth_service),
    ip: Optional[str] = Depends(get_client_ip),
):
    result = svc.register(payload, ip=ip)
    return resource(request, _auth_payload(result, "User successfully registered"), status.HTTP_201_CREATED)

@router.post("/login")
def login(
    request: Request,
    payload: Any = Body(default=None),
    svc: AuthService = Depends(get_auth_service),
    ip: Optional[str] = Depends(get_client_ip),
):
    result = svc.login(payload, ip=ip)
    return resource(request, _auth_payload(result, "User successfully logged in"))

@router.post("/logout")
def logout(request: Request, ctx: AuthContext = Depends(require_auth), svc: AuthService = Depends(get_auth_service)):
    svc.logout(ctx)
    return resource(request, {"message": "Successfully logged out"})

@router.post("/refresh")
def refresh(request: Request, ctx: AuthContext = Depends(require_auth), svc: AuthService = Depends(get_auth_service)):
    token = svc.refresh(ctx)
    return resource(request, {"message": "Token successfully refreshed", **_envelope(token)})

@router.get("/user")
def current_user(request: Request, ctx: AuthContext = Depends(require_auth), svc: AuthService = Depends(get_auth_service)):
    return resource(request, {"user": _user(svc.current_user(ctx))})

@router.post("/social-login")
def social_login(
    request: Request,
    payload: Any = Body(default=None),
    svc: AuthService = Depends(get_auth_service),
    ip: Optional[str] = Depends(get_client_ip),
):
    result = svc.social_login(payload, ip=ip)
    return resource(request, _auth_payload(result))

@router.get("/social-login-redirect")
def social_login_redirect(provider: Optional[str] = Query(default=None), svc: AuthService = Depends(get_auth_service)):
    return RedirectResponse(svc.social_redirect_url(provider), status_code=status.HTTP_302_FOUND)

@router.get("/social-login-callback/{provider}")
def social_login_callback(
    provider: str,
    request: Request,
    code: Optional[str] = Query(default=None),
    svc: AuthService = Depends(get_auth_service),
    ip: Optional[str] = Depends(get_client_ip),
):
    try:
        url = svc.social_callback_url(provider, code, ip=ip)
    except InvalidProvider:
        # rendered as a plain error body, without the 422 the redirect route uses
        logger.info("auth.callback_invalid_provider", extra={"provider": provider})
        return resource(request, {"error": "Invalid provider"})
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)
