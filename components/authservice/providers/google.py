from __future__ import annotations

from typing import Any, Dict

from ..contracts import SocialUser
from .base import HttpOAuthProvider


class GoogleProvider(HttpOAuthProvider):
    name = "google"
    authorize_endpoint = "https://accounts.google.com/o/oauth2/v2/auth"
    token_endpoint = "https://oauth2.googleapis.com/token"
    user_endpoint = "https://www.googleapis.com/oauth2/v3/userinfo"
    default_scopes = ["openid", "profile", "email"]

    def _map_user(self, raw: Dict[str, Any]) -> SocialUser:
        return SocialUser(
            id=str(raw.get("sub") or raw.get("id") or ""),
            name=raw.get("name"),
            email=raw.get("email") or "",
            avatar=raw.get("picture"),
            raw=raw,
        )
