from __future__ import annotations
from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class AuthSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    APP_NAME: str = Field(default="lbp3-authservice")
    APP_VERSION: str = Field(default="0.1.0")

    # Tokens; None means tokens never expire
    TOKEN_EXPIRATION_MINUTES: Optional[int] = Field(default=None, ge=1)
    DEFAULT_ROLE: str = Field(default="admin")

    # Social login
    FRONTEND_URL: str = Field(default="http://localhost:3000")
    SOCIAL_PROVIDERS: List[str] = Field(default_factory=lambda: ["google", "github", "facebook"])
    OAUTH_PROVIDER_BACKEND: str = Field(default="http")  # "http" | "fake"
    OAUTH_REDIRECT_BASE_URL: str = Field(default="http://localhost:8000/auth/social-login-callback")
    OAUTH_HTTP_TIMEOUT: float = Field(default=10.0)

    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None
    GITHUB_CLIENT_ID: Optional[str] = None
    GITHUB_CLIENT_SECRET: Optional[str] = None
    FACEBOOK_CLIENT_ID: Optional[str] = None
    FACEBOOK_CLIENT_SECRET: Optional[str] = None

    def frontend_login_url(self) -> str:
        return self.FRONTEND_URL.rstrip("/") + "/login"

    def redirect_uri_for(self, provider: str) -> str:
        return f"{self.OAUTH_REDIRECT_BASE_URL.rstrip('/')}/{provider}"

    def client_credentials(self, provider: str) -> tuple[Optional[str], Optional[str]]:
        key = provider.upper()
        return getattr(self, f"{key}_CLIENT_ID", None), getattr(self, f"{key}_CLIENT_SECRET", None)
