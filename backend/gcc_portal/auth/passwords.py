from __future__ import annotations

import bcrypt

# bcrypt only looks at the first 72 bytes of the secret.
_BCRYPT_MAX_BYTES = 72


def _encode(plain_text: str) -> bytes:
    return str(plain_text or "").encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Credential store: hash(plaintext) -> digest, verify(plaintext, digest) -> bool."""

    def __init__(self, *, rounds: int = 10):
        self.rounds = int(rounds)

    def hash(self, plain_text: str) -> str:
        return bcrypt.hashpw(_encode(plain_text), bcrypt.gensalt(rounds=self.rounds)).decode("ascii")

    def verify(self, plain_text: str, digest: str | None) -> bool:
        if not digest:
            return False
        try:
            return bcrypt.checkpw(_encode(plain_text), str(digest).encode("ascii"))
        except ValueError:
            # Malformed stored hash.
            return False
