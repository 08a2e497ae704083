from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..contracts import SocialUser
from ..errors import ExternalProviderError
from .base import HttpOAuthProvider


class GitHubProvider(HttpOAuthProvider):
    name = "github"
    authorize_endpoint = "https://github.com/login/oauth/authorize"
    token_endpoint = "https://github.com/login/oauth/access_token"
    user_endpoint = "https://api.github.com/user"
    emails_endpoint = "https://api.github.com/user/emails"
    default_scopes = ["user:email"]

    def _fetch_profile(self, access_token: str) -> Dict[str, Any]:
        raw = super()._fetch_profile(access_token)
        # Users with a private email only expose it through /user/emails
        if isinstance(raw, dict) and not raw.get("email"):
            raw = {**raw, "email": self._primary_email(access_token)}
        return raw

    def _primary_email(self, access_token: str) -> Optional[str]:
        try:
            emails: List[Dict[str, Any]] = self._request(
                "GET", self.emails_endpoint, headers=self._auth_headers(access_token)
            )
        except ExternalProviderError:
            return None
        if not isinstance(emails, list):
            return None
        for entry in emails:
            if isinstance(entry, dict) and entry.get("primary") and entry.get("verified"):
                return entry.get("email")
        return None

    def _map_user(self, raw: Dict[str, Any]) -> SocialUser:
        return SocialUser(
            id=str(raw.get("id") or ""),
            name=raw.get("name") or raw.get("login"),
            email=raw.get("email") or "",
            avatar=raw.get("avatar_url"),
            raw=raw,
        )
