from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from components.authservice.config import AuthSettings
from components.authservice.errors import ExternalProviderError, InvalidProvider, ProviderNotConfigured
from components.authservice.oauth import OAuthBroker, make_broker
from components.authservice.providers import FacebookProvider, FakeOAuthProvider, GitHubProvider, GoogleProvider


def _provider(cls, handler):
    return cls(
        client_id="cid",
        client_secret="csecret",
        redirect_uri=f"https://api.test/auth/social-login-callback/{cls.name}",
        transport=httpx.MockTransport(handler),
    )


def test_google_authorization_url():
    google = _provider(GoogleProvider, lambda request: httpx.Response(500))
    url = urlparse(google.authorization_url())
    query = parse_qs(url.query)
    assert url.netloc == "accounts.google.com"
    assert query["client_id"] == ["cid"]
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["openid profile email"]
    assert query["redirect_uri"] == ["https://api.test/auth/social-login-callback/google"]


def test_google_code_exchange_and_profile():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/token":
            body = parse_qs(request.content.decode())
            assert body["code"] == ["the-code"]
            assert body["grant_type"] == ["authorization_code"]
            return httpx.Response(200, json={"access_token": "ya29", "expires_in": 3599})
        assert request.headers["Authorization"] == "Bearer ya29"
        return httpx.Response(200, json={"sub": "g-42", "name": "Ann", "email": "ann@x.com", "picture": "https://p/ann"})

    google = _provider(GoogleProvider, handler)
    token = google.access_token_from_code("the-code")
    user = google.user_from_token(token["access_token"])
    assert (user.id, user.name, user.email, user.avatar) == ("g-42", "Ann", "ann@x.com", "https://p/ann")
    assert len(seen) == 2


def test_http_errors_become_provider_errors():
    google = _provider(GoogleProvider, lambda request: httpx.Response(401, json={"error": "invalid_token"}))
    with pytest.raises(ExternalProviderError) as exc:
        google.user_from_token("expired")
    assert exc.value.provider == "google"
    assert "401" in exc.value.reason


def test_network_errors_become_provider_errors():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(ExternalProviderError):
        _provider(GoogleProvider, handler).access_token_from_code("code")


def test_token_response_without_access_token_is_rejected():
    google = _provider(GoogleProvider, lambda request: httpx.Response(200, json={"error": "bad_verification_code"}))
    with pytest.raises(ExternalProviderError):
        google.access_token_from_code("code")


def test_missing_credentials_are_rejected_before_any_request():
    google = GoogleProvider(client_id=None, client_secret=None, redirect_uri="https://api.test/cb")
    with pytest.raises(ProviderNotConfigured) as exc:
        google.authorization_url()
    assert exc.value.status_code == 503
    with pytest.raises(ProviderNotConfigured):
        google.access_token_from_code("code")


def test_github_falls_back_to_primary_verified_email():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/user":
            return httpx.Response(200, json={"id": 7, "login": "octo", "name": None, "email": None, "avatar_url": "https://a/7"})
        return httpx.Response(200, json=[
            {"email": "old@x.com", "primary": False, "verified": True},
            {"email": "octo@x.com", "primary": True, "verified": True},
        ])

    user = _provider(GitHubProvider, handler).user_from_token("gho_x")
    assert (user.id, user.name, user.email) == ("7", "octo", "octo@x.com")


def test_profile_without_email_is_rejected():
    def handler(request):
        if request.url.path == "/user":
            return httpx.Response(200, json={"id": 7, "login": "octo"})
        return httpx.Response(200, json=[])

    with pytest.raises(ExternalProviderError):
        _provider(GitHubProvider, handler).user_from_token("gho_x")


@pytest.mark.parametrize("body", [["not", "an", "object"], "oops", 42])
def test_profile_that_is_not_an_object_is_rejected(body):
    google = _provider(GoogleProvider, lambda request: httpx.Response(200, json=body))
    with pytest.raises(ExternalProviderError) as exc:
        google.user_from_token("t")
    assert "not a JSON object" in exc.value.reason


def test_github_ignores_emails_response_that_is_not_a_list():
    def handler(request):
        if request.url.path == "/user":
            return httpx.Response(200, json={"id": 7, "login": "octo", "email": None})
        return httpx.Response(200, json={"message": "Resource not accessible by integration"})

    github = _provider(GitHubProvider, handler)
    assert github._primary_email("gho_x") is None
    with pytest.raises(ExternalProviderError):
        github.user_from_token("gho_x")


def test_github_skips_malformed_email_entries():
    def handler(request):
        if request.url.path == "/user":
            return httpx.Response(200, json={"id": 7, "login": "octo"})
        return httpx.Response(200, json=["junk", None, {"email": "octo@x.com", "primary": True, "verified": True}])

    assert _provider(GitHubProvider, handler).user_from_token("gho_x").email == "octo@x.com"


def test_facebook_passes_token_as_query_and_builds_avatar():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["access_token"] == "fb-token"
        return httpx.Response(200, json={"id": "55", "name": "Fay", "email": "fay@x.com"})

    facebook = _provider(FacebookProvider, handler)
    user = facebook.user_from_token("fb-token")
    assert user.email == "fay@x.com"
    assert user.avatar.endswith("/55/picture?type=normal")
    assert "scope=email" in facebook.authorization_url()


def test_make_broker_builds_allow_listed_providers():
    settings = AuthSettings(
        _env_file=None,
        SOCIAL_PROVIDERS=["google", "github"],
        GOOGLE_CLIENT_ID="gid",
        GOOGLE_CLIENT_SECRET="gsecret",
        OAUTH_REDIRECT_BASE_URL="https://api.test/auth/social-login-callback/",
    )
    broker = make_broker(settings)
    assert broker.names() == ["google", "github"]
    google = broker.driver("google")
    assert isinstance(google, GoogleProvider)
    assert google.redirect_uri == "https://api.test/auth/social-login-callback/google"
    with pytest.raises(InvalidProvider):
        broker.driver("facebook")


def test_make_broker_rejects_unsupported_provider():
    with pytest.raises(ValueError):
        make_broker(AuthSettings(_env_file=None, SOCIAL_PROVIDERS=["myspace"]))


def test_make_broker_fake_backend_and_overrides():
    custom = FakeOAuthProvider("github")
    settings = AuthSettings(_env_file=None, SOCIAL_PROVIDERS=["google", "github"], OAUTH_PROVIDER_BACKEND="fake")
    broker = make_broker(settings, overrides={"github": custom})
    assert isinstance(broker.driver("google"), FakeOAuthProvider)
    assert broker.driver("github") is custom


def test_fake_provider_is_deterministic():
    fake = FakeOAuthProvider("google")
    assert fake.user_from_token("abc") == fake.user_from_token("abc")
    assert fake.user_from_token("abc").email.endswith("@google.oauth.test")
    broker = OAuthBroker([fake])
    token = broker.access_token_from_code("google", "c1")["access_token"]
    assert broker.user_from_token("google", token).email.endswith("@google.oauth.test")
