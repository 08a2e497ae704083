from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Sequence
from urllib.parse import urlencode
from .config import AuthSettings
from .contracts import (
    AuthContext, AuthResult, ClockPort, CredentialVerifierPort, LoginRequest,
    NewUser, OAuthBrokerPort, RegisterRequest, SocialLoginRequest, SocialUser,
    TokenEnvelope, TokenIssuerPort, User, UserStorePort,
)
from .crypto import random_string
from .errors import (
    AuthenticationFailed, DuplicateUserError, ExternalProviderError,
    InvalidProvider, Unauthenticated, ValidationFailed,
)
from .validation import confirmed, one_of, unique, validate

logger = logging.getLogger("authservice.service")

TOKEN_NAME = "authToken"
SOCIAL_PLACEHOLDER_PASSWORD_LENGTH = 24

class SystemClock(ClockPort):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

class AuthService:
    def __init__(
        self,
        *,
        users: UserStorePort,
        hasher: CredentialVerifierPort,
        tokens: TokenIssuerPort,
        oauth: OAuthBrokerPort,
        cfg: Optional[AuthSettings] = None,
        clock: Optional[ClockPort] = None,
    ):
        self.users = users
        self.hasher = hasher
        self.tokens = tokens
        self.oauth = oauth
        self.cfg = cfg or AuthSettings()
        self.clock = clock or SystemClock()
        self._dummy_hash: Optional[str] = None

    @property
    def providers(self) -> List[str]:
        return list(self.cfg.SOCIAL_PROVIDERS)

    # --------- Password flows ----------
    def register(self, payload: Any, *, ip: Optional[str] = None) -> AuthResult:
        req = validate(
            RegisterRequest,
            payload,
            checks=[
                confirmed("password"),
                unique("email", lambda email: self.users.find_by_email(email) is not None),
            ],
        )
        try:
            user = self.users.create(NewUser(
                name=req.name,
                email=str(req.email),
                password=self.hasher.hash(req.password),
                role=self.cfg.DEFAULT_ROLE,
            ))
        except DuplicateUserError:
            # lost a race with a concurrent registration for the same email
            raise ValidationFailed({"email": ["The email has already been taken."]})
        logger.info("auth.registered", extra={"user_id": user.id})
        return self._issue_token(user, ip)

    def login(self, payload: Any, *, ip: Optional[str] = None) -> AuthResult:
        req = validate(LoginRequest, payload)
        user = self.users.find_by_email(str(req.email))
        if user is None or not user.password:
            # burn the same hashing cost so response timing does not reveal unknown emails
            self.hasher.verify(req.password, self._dummy_password_hash())
            user = None
        elif not self.hasher.verify(req.password, user.password):
            user = None
        if user is None:
            logger.info("auth.login_failed", extra={"ip": ip})
            raise AuthenticationFailed()
        return self._issue_token(user, ip)

    # --------- Authenticated context ----------
    def resolve_bearer(self, token: Optional[str], *, ip: Optional[str] = None) -> AuthContext:
        if not token:
            raise Unauthenticated()
        record = self.tokens.resolve(token)
        if record is None:
            raise Unauthenticated()
        user = self.users.find_by_id(record.user_id)
        if user is None:
            raise Unauthenticated()
        return AuthContext(user=user, token=record, ip=ip)

    def logout(self, ctx: AuthContext) -> None:
        self.tokens.delete(ctx.token.id)
        logger.info("auth.logout", extra={"user_id": ctx.user.id, "token_id": ctx.token.id})

    def refresh(self, ctx: AuthContext) -> TokenEnvelope:
        return self._issue_token(ctx.user, ctx.ip).token

    def current_user(self, ctx: AuthContext) -> User:
        return ctx.user

    # --------- Social flows ----------
    def ensure_provider(self, provider: Optional[str]) -> str:
        if not provider or provider not in self.providers:
            raise InvalidProvider(provider, self.providers)
        return provider

    def social_login(self, payload: Any, *, ip: Optional[str] = None) -> AuthResult:
        req = validate(SocialLoginRequest, payload, checks=[one_of("provider", self.providers)])
        social_user = self.oauth.user_from_token(req.provider, req.access_token)
        return self.authenticate_social_user(req.provider, social_user, ip=ip)

    def social_redirect_url(self, provider: Optional[str]) -> str:
        return self.oauth.redirect_url(self.ensure_provider(provider))

    def social_callback_url(self, provider: Optional[str], code: Optional[str], *, ip: Optional[str] = None) -> str:
        """
        Complete the authorization-code flow and return the front-end URL to
        redirect to. Provider failures never escape: they yield the error URL.
        """
        provider = self.ensure_provider(provider)
        try:
            token_response = self.oauth.access_token_from_code(provider, code or "")
            social_user = self.oauth.user_from_token(provider, token_response["access_token"])
        except ExternalProviderError as ex:
            logger.error("auth.social_callback_failed", extra={"provider": provider, "error": ex.reason})
            return self.frontend_error_url()
        except Exception:
            # malformed provider payloads and misconfiguration land on the login page too
            logger.exception("auth.social_callback_failed", extra={"provider": provider})
            return self.frontend_error_url()

        result = self.authenticate_social_user(provider, social_user, ip=ip)
        return self.frontend_login_url(result.token)

    def authenticate_social_user(self, provider: str, social_user: SocialUser, *, ip: Optional[str] = None) -> AuthResult:
        """Find-or-create by email, then issue a token. Shared by the JSON and redirect flows."""
        user = self.users.find_by_email(social_user.email)
        if user is None:
            user = self._create_social_user(provider, social_user)
        return self._issue_token(user, ip)

    def frontend_login_url(self, envelope: TokenEnvelope) -> str:
        query = urlencode(envelope.model_dump(exclude_none=True))
        return f"{self.cfg.frontend_login_url()}?{query}"

    def frontend_error_url(self) -> str:
        return f"{self.cfg.frontend_login_url()}?{urlencode({'error': 'Invalid credentials'})}"

    # --------- Helpers ----------
    def _create_social_user(self, provider: str, social_user: SocialUser) -> User:
        new_user = NewUser(
            name=social_user.name or social_user.email.split("@", 1)[0],
            email=social_user.email,
            password=self.hasher.hash(random_string(SOCIAL_PLACEHOLDER_PASSWORD_LENGTH)),
            role=self.cfg.DEFAULT_ROLE,
            provider=provider,
            provider_id=social_user.id,
            avatar=social_user.avatar,
            email_verified_at=self.clock.now(),
        )
        try:
            user = self.users.create(new_user)
        except DuplicateUserError:
            # a concurrent first login created the account; log in as that user
            user = self.users.find_by_email(social_user.email)
            if user is None:
                raise
            logger.info("auth.social_user_conflict", extra={"provider": provider, "user_id": user.id})
            return user
        logger.info("auth.social_user_created", extra={"provider": provider, "user_id": user.id})
        return user

    def _issue_token(self, user: User, ip: Optional[str], abilities: Sequence[str] = ("*",)) -> AuthResult:
        now = self.clock.now()
        user.last_login_at = now
        user.last_login_ip = ip
        user = self.users.save(user)

        minutes = self.cfg.TOKEN_EXPIRATION_MINUTES
        expires_at = now + timedelta(minutes=minutes) if minutes else None
        issued = self.tokens.issue(user, name=TOKEN_NAME, abilities=list(abilities), expires_at=expires_at)

        envelope = TokenEnvelope(
            access_token=issued.plain_text_token,
            expires_at=int(expires_at.timestamp()) if expires_at else None,
            expires_in=int((expires_at - now).total_seconds()) if expires_at else None,
        )
        return AuthResult(user=user, token=envelope)

    def _dummy_password_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self.hasher.hash(random_string(SOCIAL_PLACEHOLDER_PASSWORD_LENGTH))
        return self._dummy_hash


_auth_service: Optional[AuthService] = None

def set_auth_service(svc: Optional[AuthService]) -> None:
    global _auth_service
    _auth_service = svc

def get_auth_service() -> AuthService:
    if _auth_service is None:
        raise RuntimeError("AuthService not configured; call set_auth_service() during app wiring")
    return _auth_service
