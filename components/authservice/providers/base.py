from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from ..contracts import SocialUser
from ..errors import ExternalProviderError, ProviderNotConfigured

logger = logging.getLogger("authservice.oauth")


class OAuthProvider:
    """
    Contract every social provider implements. The flow is stateless: no
    `state` is persisted between the redirect and the callback.
    """

    name: str = "base"

    def authorization_url(self) -> str:
        raise NotImplementedError

    def access_token_from_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorization code; the result carries `access_token`."""
        raise NotImplementedError

    def user_from_token(self, access_token: str) -> SocialUser:
        raise NotImplementedError


class HttpOAuthProvider(OAuthProvider):
    """
    OAuth 2.0 authorization-code flow over httpx. Subclasses supply endpoints,
    default scopes and the profile mapping.
    """

    authorize_endpoint: str = ""
    token_endpoint: str = ""
    user_endpoint: str = ""
    default_scopes: List[str] = []
    scope_separator: str = " "

    def __init__(
        self,
        *,
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: str,
        scopes: Optional[List[str]] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = list(scopes) if scopes is not None else list(self.default_scopes)
        self.timeout = timeout
        self._transport = transport

    # ---------- OAuthProvider ----------
    def authorization_url(self) -> str:
        self._require_credentials()
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope_separator.join(self.scopes),
        }
        return f"{self.authorize_endpoint}?{urlencode(params)}"

    def access_token_from_code(self, code: str) -> Dict[str, Any]:
        self._require_credentials()
        if not code:
            raise ExternalProviderError(self.name, "missing authorization code")
        payload = self._request(
            "POST",
            self.token_endpoint,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise ExternalProviderError(self.name, "token response has no access_token")
        return payload

    def user_from_token(self, access_token: str) -> SocialUser:
        raw = self._fetch_profile(access_token)
        if not isinstance(raw, dict):
            raise ExternalProviderError(self.name, "profile response is not a JSON object")
        try:
            user = self._map_user(raw)
        except ValueError as exc:
            raise ExternalProviderError(self.name, "profile fields have unexpected types") from exc
        if not user.email:
            raise ExternalProviderError(self.name, "profile has no email address")
        return user

    # ---------- Hooks ----------
    def _fetch_profile(self, access_token: str) -> Dict[str, Any]:
        return self._request("GET", self.user_endpoint, headers=self._auth_headers(access_token))

    def _map_user(self, raw: Dict[str, Any]) -> SocialUser:
        raise NotImplementedError

    def _auth_headers(self, access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    # ---------- Helpers ----------
    def _require_credentials(self) -> None:
        if not self.client_id or not self.client_secret:
            raise ProviderNotConfigured(self.name)

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        headers = {"Accept": "application/json", **kwargs.pop("headers", {})}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.request(method, url, headers=headers, **kwargs)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "oauth.http_error",
                extra={"provider": self.name, "status": exc.response.status_code, "endpoint": url},
            )
            raise ExternalProviderError(self.name, f"HTTP {exc.response.status_code} from {url}") from exc
        except httpx.RequestError as exc:
            logger.warning("oauth.network_error", extra={"provider": self.name, "endpoint": url, "error": str(exc)})
            raise ExternalProviderError(self.name, f"failed to reach {url}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ExternalProviderError(self.name, f"invalid JSON from {url}") from exc
