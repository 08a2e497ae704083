from .base import HttpOAuthProvider, OAuthProvider
from .facebook import FacebookProvider
from .fake import FakeOAuthProvider
from .github import GitHubProvider
from .google import GoogleProvider

PROVIDER_CLASSES = {
    GoogleProvider.name: GoogleProvider,
    GitHubProvider.name: GitHubProvider,
    FacebookProvider.name: FacebookProvider,
}

__all__ = [
    "OAuthProvider",
    "HttpOAuthProvider",
    "GoogleProvider",
    "GitHubProvider",
    "FacebookProvider",
    "FakeOAuthProvider",
    "PROVIDER_CLASSES",
]
