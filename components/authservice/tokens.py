from __future__ import annotations
import hmac
from datetime import datetime
from typing import List, Optional
from .contracts import AccessToken, NewAccessToken, TokenIssuerPort, User
from .crypto import hash_token, random_string, split_plain_text_token
from .repository import InMemoryTokenStore, TimeFn, _utcnow

TOKEN_SECRET_LENGTH = 40

class OpaqueTokenIssuer(TokenIssuerPort):
    """
    Personal-access-token issuer. The plaintext '<id>|<secret>' is handed out
    once; only the SHA-256 of the secret is stored.
    """
    def __init__(self, store: Optional[InMemoryTokenStore] = None, now: Optional[TimeFn] = None):
        self.store = store or InMemoryTokenStore()
        self._now = now or _utcnow

    def issue(
        self,
        user: User,
        *,
        name: str = "authToken",
        abilities: Optional[List[str]] = None,
        expires_at: Optional[datetime] = None,
    ) -> NewAccessToken:
        secret = random_string(TOKEN_SECRET_LENGTH)
        token = AccessToken(
            id=self.store.next_id(),
            user_id=user.id,
            name=name,
            token_hash=hash_token(secret),
            abilities=list(abilities) if abilities is not None else ["*"],
            expires_at=expires_at,
            created_at=self._now(),
        )
        self.store.add(token)
        return NewAccessToken(access_token=token, plain_text_token=f"{token.id}|{secret}")

    def resolve(self, plain_text_token: str) -> Optional[AccessToken]:
        token_id, secret = split_plain_text_token(plain_text_token)
        digest = hash_token(secret)
        if token_id is None:
            token = self.store.find_by_hash(digest)
        else:
            token = self.store.get(token_id)
            if token and not hmac.compare_digest(token.token_hash, digest):
                token = None
        if token is None:
            return None
        now = self._now()
        if token.expires_at is not None and token.expires_at <= now:
            self.store.delete(token.id)
            return None
        token = token.model_copy(update={"last_used_at": now})
        self.store.update(token)
        return token

    def delete(self, token_id: int) -> bool:
        return self.store.delete(token_id)

    def tokens_for(self, user_id: str) -> List[AccessToken]:
        return self.store.for_user(user_id)
