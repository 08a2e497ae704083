from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

import httpx

from .config import AuthSettings
from .contracts import OAuthBrokerPort, SocialUser
from .errors import InvalidProvider
from .providers import PROVIDER_CLASSES, FakeOAuthProvider, OAuthProvider

logger = logging.getLogger("authservice.oauth")


class OAuthBroker(OAuthBrokerPort):
    """Registry of social providers keyed by name."""

    def __init__(self, providers: Optional[Iterable[OAuthProvider]] = None) -> None:
        self._providers: Dict[str, OAuthProvider] = {}
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: OAuthProvider) -> None:
        self._providers[provider.name] = provider

    def names(self) -> list[str]:
        return list(self._providers)

    def driver(self, name: str) -> OAuthProvider:
        try:
            return self._providers[name]
        except KeyError:
            raise InvalidProvider(name, self.names()) from None

    # ---------- OAuthBrokerPort ----------
    def redirect_url(self, provider: str) -> str:
        return self.driver(provider).authorization_url()

    def access_token_from_code(self, provider: str, code: str) -> Dict[str, Any]:
        return self.driver(provider).access_token_from_code(code)

    def user_from_token(self, provider: str, access_token: str) -> SocialUser:
        return self.driver(provider).user_from_token(access_token)


def make_broker(
    settings: AuthSettings,
    *,
    transport: Optional[httpx.BaseTransport] = None,
    overrides: Optional[Mapping[str, OAuthProvider]] = None,
) -> OAuthBroker:
    """Build one provider per allow-listed name from settings."""
    broker = OAuthBroker()
    backend = settings.OAUTH_PROVIDER_BACKEND.lower()
    for name in settings.SOCIAL_PROVIDERS:
        if overrides and name in overrides:
            broker.register(overrides[name])
            continue
        if backend == "fake":
            broker.register(FakeOAuthProvider(name))
            continue
        cls = PROVIDER_CLASSES.get(name)
        if cls is None:
            raise ValueError(f"Unsupported social provider: {name!r}")
        client_id, client_secret = settings.client_credentials(name)
        if not client_id or not client_secret:
            logger.warning("oauth.provider_unconfigured", extra={"provider": name})
        broker.register(
            cls(
                client_id=client_id,
                client_secret=client_secret,
                redirect_uri=settings.redirect_uri_for(name),
                timeout=settings.OAUTH_HTTP_TIMEOUT,
                transport=transport,
            )
        )
    return broker
