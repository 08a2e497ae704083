from __future__ import annotations

import hashlib
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from ..contracts import SocialUser
from ..errors import ExternalProviderError
from .base import OAuthProvider


class FakeOAuthProvider(OAuthProvider):
    """
    Deterministic provider for tests and local runs:
    - registered tokens/codes resolve to their registered profile;
    - anything starting with 'invalid' is rejected;
    - any other token yields a profile derived from the token itself.
    """

    def __init__(self, name: str = "fake") -> None:
        self.name = name
        self._users: Dict[str, SocialUser] = {}
        self._codes: Dict[str, str] = {}

    def register(self, access_token: str, user: SocialUser, *, code: Optional[str] = None) -> None:
        self._users[access_token] = user
        if code:
            self._codes[code] = access_token

    def authorization_url(self) -> str:
        params = {"client_id": f"{self.name}-client", "response_type": "code"}
        return f"https://{self.name}.oauth.test/authorize?{urlencode(params)}"

    def access_token_from_code(self, code: str) -> Dict[str, Any]:
        if not code or code.startswith("invalid"):
            raise ExternalProviderError(self.name, "authorization code rejected")
        token = self._codes.get(code) or f"{self.name}-token-{code}"
        return {"access_token": token, "token_type": "Bearer", "expires_in": 3600}

    def user_from_token(self, access_token: str) -> SocialUser:
        if access_token in self._users:
            return self._users[access_token]
        if not access_token or access_token.startswith("invalid"):
            raise ExternalProviderError(self.name, "access token rejected")
        digest = hashlib.sha1(f"{self.name}:{access_token}".encode("utf-8")).hexdigest()[:12]
        return SocialUser(
            id=digest,
            name=f"{self.name.title()} User {digest[:4]}",
            email=f"{digest}@{self.name}.oauth.test",
            avatar=f"https://{self.name}.oauth.test/avatars/{digest}.png",
        )
