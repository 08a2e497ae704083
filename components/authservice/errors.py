from __future__ import annotations
from typing import Dict, List, Optional, Sequence
from .contracts import AuthErrorCodes

class AuthServiceException(Exception):
    type: str = "INTERNAL"
    code: str = "internal_error"
    message: str = "Internal server error"
    status_code: int = 500

    def __init__(self, message: Optional[str] = None):
        if message:
            self.message = message
        super().__init__(self.message)

    def to_payload(self) -> Dict:
        return {"error": self.message}

class ValidationFailed(AuthServiceException):
    type = "VALIDATION"
    code = AuthErrorCodes.VALIDATION_FAILED
    message = "The given data was invalid."
    status_code = 422

    def __init__(self, errors: Dict[str, List[str]]):
        super().__init__()
        self.errors = errors

    def to_payload(self) -> Dict:
        return {"errors": self.errors}

class AuthenticationFailed(AuthServiceException):
    type = "AUTH_ERROR"
    code = AuthErrorCodes.BAD_CREDENTIALS
    message = "Invalid username or password."
    status_code = 401

class Unauthenticated(AuthServiceException):
    type = "AUTH_ERROR"
    code = AuthErrorCodes.UNAUTHENTICATED
    message = "Unauthenticated."
    status_code = 401

class InvalidProvider(AuthServiceException):
    type = "VALIDATION"
    code = AuthErrorCodes.INVALID_PROVIDER
    message = "Invalid provider"
    status_code = 422

    def __init__(self, provider: Optional[str], providers: Sequence[str]):
        super().__init__(f"Invalid provider, valid providers are: {','.join(providers)}")
        self.provider = provider
        self.providers = list(providers)

class ExternalProviderError(AuthServiceException):
    type = "UPSTREAM"
    code = AuthErrorCodes.PROVIDER_FAILED
    message = "Invalid credentials."
    status_code = 401

    def __init__(self, provider: str, reason: str):
        super().__init__()
        self.provider = provider
        self.reason = reason

class ProviderNotConfigured(AuthServiceException):
    type = "CONFIG"
    code = AuthErrorCodes.PROVIDER_NOT_CONFIGURED
    message = "Social login is temporarily unavailable."
    status_code = 503

    def __init__(self, provider: str):
        super().__init__()
        self.provider = provider

# ---------- Store errors ----------
class UserStoreError(Exception):
    """Base error for user persistence adapters."""

class DuplicateUserError(UserStoreError):
    def __init__(self, email: str):
        super().__init__(f"User with email {email!r} already exists")
        self.email = email
