from __future__ import annotations
import hashlib, hmac, secrets, string
from typing import Optional, Tuple
from .contracts import CredentialVerifierPort

_ALPHABET = string.ascii_letters + string.digits

def random_string(length: int = 40) -> str:
    """Cryptographically random alphanumeric string."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))

def hash_token(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()

def split_plain_text_token(token: str) -> Tuple[Optional[int], str]:
    """
    Split '<id>|<secret>' into its parts. Tokens without an id prefix are
    returned as (None, token) and must be looked up by hash alone.
    """
    if "|" not in token:
        return None, token
    token_id, secret = token.split("|", 1)
    try:
        return int(token_id), secret
    except ValueError:
        return None, token

class PasswordHasher(CredentialVerifierPort):
    """
    PBKDF2-SHA256 hasher with a random per-password salt.
    Encoded form: pbkdf2_sha256$<iterations>$<salt>$<hex digest>
    """
    algorithm = "pbkdf2_sha256"

    def __init__(self, iterations: int = 100_000):
        self.iterations = iterations

    def hash(self, password: str, salt: Optional[str] = None) -> str:
        salt = salt or secrets.token_hex(16)
        dk = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), self.iterations, dklen=32)
        return f"{self.algorithm}${self.iterations}${salt}${dk.hex()}"

    def verify(self, password: str, encoded: str) -> bool:
        try:
            algorithm, iters_s, salt, hex_dk = encoded.split("$")
            iterations = int(iters_s)
        except (AttributeError, ValueError):
            return False
        if algorithm != self.algorithm:
            return False
        dk = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations, dklen=32).hex()
        return hmac.compare_digest(dk, hex_dk)
