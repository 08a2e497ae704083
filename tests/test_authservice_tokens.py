from datetime import datetime, timedelta, timezone

from components.authservice.contracts import User
from components.authservice.crypto import PasswordHasher, hash_token, random_string, split_plain_text_token
from components.authservice.repository import InMemoryTokenStore
from components.authservice.tokens import OpaqueTokenIssuer

USER = User(id="u-1", name="Ann", email="ann@x.com", role="admin")


def test_plain_text_token_format_and_storage():
    store = InMemoryTokenStore()
    issuer = OpaqueTokenIssuer(store)
    issued = issuer.issue(USER, name="authToken", abilities=["*"], expires_at=None)

    token_id, secret = issued.plain_text_token.split("|", 1)
    assert int(token_id) == issued.access_token.id
    assert len(secret) == 40
    record = store.get(issued.access_token.id)
    assert record.token_hash == hash_token(secret)
    assert secret not in record.model_dump_json()
    assert record.abilities == ["*"]


def test_resolve_accepts_secret_without_id_prefix():
    issuer = OpaqueTokenIssuer()
    issued = issuer.issue(USER)
    secret = issued.plain_text_token.split("|", 1)[1]
    assert issuer.resolve(secret).id == issued.access_token.id


def test_resolve_rejects_tampered_secret():
    issuer = OpaqueTokenIssuer()
    issued = issuer.issue(USER)
    token_id = issued.access_token.id
    assert issuer.resolve(f"{token_id}|{random_string()}") is None
    assert issuer.resolve("garbage") is None


def test_resolve_stamps_last_used_and_honours_expiry():
    now = {"t": datetime(2026, 3, 1, tzinfo=timezone.utc)}
    issuer = OpaqueTokenIssuer(now=lambda: now["t"])
    issued = issuer.issue(USER, expires_at=now["t"] + timedelta(minutes=5))

    now["t"] += timedelta(minutes=4)
    assert issuer.resolve(issued.plain_text_token).last_used_at == now["t"]

    now["t"] += timedelta(minutes=1)
    assert issuer.resolve(issued.plain_text_token) is None
    assert issuer.tokens_for(USER.id) == []


def test_issue_never_revokes_and_delete_is_scoped():
    issuer = OpaqueTokenIssuer()
    a = issuer.issue(USER)
    b = issuer.issue(USER)
    assert a.plain_text_token != b.plain_text_token
    assert issuer.delete(a.access_token.id) is True
    assert issuer.delete(a.access_token.id) is False
    assert [t.id for t in issuer.tokens_for(USER.id)] == [b.access_token.id]


def test_split_plain_text_token():
    assert split_plain_text_token("12|abc") == (12, "abc")
    assert split_plain_text_token("abc") == (None, "abc")
    assert split_plain_text_token("x|abc") == (None, "x|abc")


def test_password_hasher_salts_and_verifies():
    hasher = PasswordHasher(iterations=1_000)
    h1 = hasher.hash("secret1")
    h2 = hasher.hash("secret1")
    assert h1 != h2
    assert h1.startswith("pbkdf2_sha256$1000$")
    assert hasher.verify("secret1", h1)
    assert not hasher.verify("secret2", h1)
    assert not hasher.verify("secret1", "not-a-hash")
    assert not hasher.verify("secret1", "md5$x$y$z")


def test_hash_index_follows_add_and_delete():
    store = InMemoryTokenStore()
    issuer = OpaqueTokenIssuer(store)
    issued = issuer.issue(USER)
    secret = issued.plain_text_token.split("|", 1)[1]
    assert store.find_by_hash(hash_token(secret)).id == issued.access_token.id

    issuer.delete(issued.access_token.id)
    assert store.find_by_hash(hash_token(secret)) is None
    assert issuer.resolve(secret) is None
