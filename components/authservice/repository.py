from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from .contracts import AccessToken, NewUser, User
from .errors import DuplicateUserError

TimeFn = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryUserStore:
    """
    Process-local user store keyed by id with a case-insensitive email index.
    Email uniqueness is enforced here, the way a DB unique constraint would.
    """

    def __init__(self, now: Optional[TimeFn] = None) -> None:
        self._lock = threading.RLock()
        self._users: Dict[str, User] = {}
        self._ids_by_email: Dict[str, str] = {}
        self._now = now or _utcnow

    @staticmethod
    def _email_key(email: str) -> str:
        return email.strip().lower()

    def create(self, new_user: NewUser) -> User:
        with self._lock:
            key = self._email_key(new_user.email)
            if key in self._ids_by_email:
                raise DuplicateUserError(new_user.email)
            ts = self._now()
            user = User(
                id=str(uuid.uuid4()),
                created_at=ts,
                updated_at=ts,
                **new_user.model_dump(),
            )
            self._users[user.id] = user
            self._ids_by_email[key] = user.id
            return user.model_copy()

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            user_id = self._ids_by_email.get(self._email_key(email))
            return self._users[user_id].model_copy() if user_id else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def save(self, user: User) -> User:
        with self._lock:
            if user.id not in self._users:
                raise KeyError(f"Unknown user id {user.id!r}")
            user = user.model_copy(update={"updated_at": self._now()})
            self._users[user.id] = user
            return user.model_copy()

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)


class InMemoryTokenStore:
    """Access-token records keyed by an auto-increment id."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tokens: Dict[int, AccessToken] = {}
        self._ids_by_hash: Dict[str, int] = {}
        self._next_id = 1

    def next_id(self) -> int:
        with self._lock:
            token_id = self._next_id
            self._next_id += 1
            return token_id

    def add(self, token: AccessToken) -> None:
        with self._lock:
            self._tokens[token.id] = token
            self._ids_by_hash[token.token_hash] = token.id

    def get(self, token_id: int) -> Optional[AccessToken]:
        with self._lock:
            return self._tokens.get(token_id)

    def find_by_hash(self, token_hash: str) -> Optional[AccessToken]:
        with self._lock:
            token_id = self._ids_by_hash.get(token_hash)
            return self._tokens.get(token_id) if token_id is not None else None

    def update(self, token: AccessToken) -> None:
        with self._lock:
            if token.id in self._tokens:
                self._tokens[token.id] = token

    def delete(self, token_id: int) -> bool:
        with self._lock:
            token = self._tokens.pop(token_id, None)
            if token is None:
                return False
            self._ids_by_hash.pop(token.token_hash, None)
            return True

    def for_user(self, user_id: str) -> List[AccessToken]:
        with self._lock:
            return [t for t in self._tokens.values() if t.user_id == user_id]
