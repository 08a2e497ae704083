from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol
from pydantic import BaseModel, ConfigDict, EmailStr, Field, constr, field_validator

# ---------- Domain Models ----------
class User(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: str
    name: str
    email: str
    password: Optional[str] = Field(default=None, exclude=True)
    role: str
    provider: Optional[str] = None
    provider_id: Optional[str] = None
    avatar: Optional[str] = None
    email_verified_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    last_login_ip: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class NewUser(BaseModel):
    name: str
    email: str
    password: str
    role: str
    provider: Optional[str] = None
    provider_id: Optional[str] = None
    avatar: Optional[str] = None
    email_verified_at: Optional[datetime] = None

class AccessToken(BaseModel):
    id: int
    user_id: str
    name: str
    token_hash: str
    abilities: List[str] = Field(default_factory=lambda: ["*"])
    expires_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    created_at: datetime

class NewAccessToken(BaseModel):
    """Token record plus the plaintext, which is only available at issuance."""
    access_token: AccessToken
    plain_text_token: str

class TokenEnvelope(BaseModel):
    access_token: str
    expires_at: Optional[int] = None
    expires_in: Optional[int] = None

class SocialUser(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    avatar: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict, exclude=True)

class AuthContext(BaseModel):
    """Resolved identity of an authenticated request."""
    user: User
    token: AccessToken
    ip: Optional[str] = None

class AuthResult(BaseModel):
    user: User
    token: TokenEnvelope

# ---------- Requests ----------
EMAIL_MAX_LENGTH = 100

def _check_email_length(value: Any) -> Any:
    if isinstance(value, str) and len(value) > EMAIL_MAX_LENGTH:
        raise ValueError(f"may not be greater than {EMAIL_MAX_LENGTH} characters")
    return value

class RegisterRequest(BaseModel):
    name: constr(strip_whitespace=True, min_length=2, max_length=100)
    email: EmailStr
    password: constr(min_length=6)
    password_confirmation: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def email_length(cls, v: Any) -> Any:
        return _check_email_length(v)

class LoginRequest(BaseModel):
    email: EmailStr
    password: constr(min_length=6)

    @field_validator("email", mode="before")
    @classmethod
    def email_length(cls, v: Any) -> Any:
        return _check_email_length(v)

class SocialLoginRequest(BaseModel):
    provider: constr(strip_whitespace=True, min_length=1)
    access_token: constr(strip_whitespace=True, min_length=1)

# ---------- Ports (Contracts) ----------
class UserStorePort(Protocol):
    """
    Contract for user persistence. `create` must raise DuplicateUserError
    when the email is already taken.
    """
    def create(self, new_user: NewUser) -> User: ...
    def find_by_email(self, email: str) -> Optional[User]: ...
    def find_by_id(self, user_id: str) -> Optional[User]: ...
    def save(self, user: User) -> User: ...

class CredentialVerifierPort(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, encoded: str) -> bool: ...

class TokenIssuerPort(Protocol):
    """
    Contract for opaque bearer tokens. Issuing never revokes earlier tokens.
    """
    def issue(self, user: User, *, name: str, abilities: List[str], expires_at: Optional[datetime]) -> NewAccessToken: ...
    def resolve(self, plain_text_token: str) -> Optional[AccessToken]: ...
    def delete(self, token_id: int) -> bool: ...
    def tokens_for(self, user_id: str) -> List[AccessToken]: ...

class OAuthBrokerPort(Protocol):
    def redirect_url(self, provider: str) -> str: ...
    def access_token_from_code(self, provider: str, code: str) -> Dict[str, Any]: ...
    def user_from_token(self, provider: str, access_token: str) -> SocialUser: ...

class ClockPort(Protocol):
    def now(self) -> datetime: ...

# ---------- Errors ----------
class AuthErrorCodes:
    VALIDATION_FAILED = "VALIDATION_FAILED"
    BAD_CREDENTIALS = "BAD_CREDENTIALS"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_PROVIDER = "INVALID_PROVIDER"
    PROVIDER_FAILED = "PROVIDER_FAILED"
    PROVIDER_NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"
