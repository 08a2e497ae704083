from __future__ import annotations

from typing import Any, Dict

from ..contracts import SocialUser
from .base import HttpOAuthProvider

GRAPH_URL = "https://graph.facebook.com"
GRAPH_VERSION = "v18.0"


class FacebookProvider(HttpOAuthProvider):
    name = "facebook"
    authorize_endpoint = f"https://www.facebook.com/{GRAPH_VERSION}/dialog/oauth"
    token_endpoint = f"{GRAPH_URL}/{GRAPH_VERSION}/oauth/access_token"
    user_endpoint = f"{GRAPH_URL}/{GRAPH_VERSION}/me"
    default_scopes = ["email"]
    scope_separator = ","

    def _fetch_profile(self, access_token: str) -> Dict[str, Any]:
        return self._request(
            "GET",
            self.user_endpoint,
            params={"access_token": access_token, "fields": "id,name,email"},
        )

    def _map_user(self, raw: Dict[str, Any]) -> SocialUser:
        user_id = str(raw.get("id") or "")
        return SocialUser(
            id=user_id,
            name=raw.get("name"),
            email=raw.get("email") or "",
            avatar=f"{GRAPH_URL}/{GRAPH_VERSION}/{user_id}/picture?type=normal" if user_id else None,
            raw=raw,
        )
