"""Salt generation, PBKDF2 password hashing and hash comparison."""

import base64
import hashlib
import hmac
import secrets
from collections.abc import Callable
from typing import TYPE_CHECKING

from proxyusers.core.config import get_settings
from proxyusers.core.exceptions import InvalidInputError

if TYPE_CHECKING:
    from proxyusers.core.config import Settings

RandomBytes = Callable[[int], bytes]


def hash_password(plaintext: str, salt: str | None, settings: "Settings | None" = None) -> str:
    """
    Derive the stored form of a password from its plaintext and salt.

    Digest, iterations and key length come from settings (the process
    settings by default); stored hashes are only comparable while they are
    unchanged. With no salt the plaintext is returned unchanged. Raises
    InvalidInputError for an empty plaintext when a salt is present.
    """
    if not salt:
        return plaintext
    if not plaintext:
        raise InvalidInputError("Cannot hash an empty password")
    cfg = settings or get_settings()
    derived = hashlib.pbkdf2_hmac(
        cfg.PASSWORD_HASH_DIGEST,
        plaintext.encode("utf-8"),
        salt.encode("utf-8"),
        cfg.PASSWORD_HASH_ITERATIONS,
        dklen=cfg.PASSWORD_HASH_KEY_LENGTH,
    )
    return base64.b64encode(derived).decode("ascii")


def generate_salt(
    random_bytes: RandomBytes = secrets.token_bytes,
    settings: "Settings | None" = None,
) -> str:
    """Draw SALT_BYTES from the randomness source and return them base64-encoded."""
    cfg = settings or get_settings()
    return base64.b64encode(random_bytes(cfg.SALT_BYTES)).decode("ascii")


def hashes_match(expected: str, candidate: str) -> bool:
    """Constant-time comparison of two stored-form hashes."""
    return hmac.compare_digest(expected.encode("utf-8"), candidate.encode("utf-8"))
