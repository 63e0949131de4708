"""Password salts and hashing."""

from __future__ import annotations

import hashlib
import secrets
import string

_LETTERS = string.ascii_lowercase + string.ascii_uppercase
DEFAULT_SALT_LENGTH = 50


def gen_salt(length: int) -> str:
    """Return a random string of ASCII letters; a negative length means the default."""
    if length < 0:
        length = DEFAULT_SALT_LENGTH
    return "".join(secrets.choice(_LETTERS) for _ in range(length))


class Md5Hasher:
    """Hex MD5 digests of text."""

    def hash(self, data: str) -> str:
        return hashlib.md5(data.encode("utf-8")).hexdigest()