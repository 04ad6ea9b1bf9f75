"""
auth/passwords.py -- bcrypt password hashing.

bcrypt is used directly rather than through passlib: passlib's wrap-bug
detection feeds bcrypt a password longer than 72 bytes, which bcrypt 4.x
rejects. Direct usage has no compatibility shim and is actively maintained.

The digest is bcrypt's modular-crypt string ($2b$<rounds>$<salt><hash>), so
the cost factor and the salt travel with the hash and verify() needs no
other state.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import bcrypt

# bcrypt only reads the first 72 bytes of its input, and bcrypt >= 5 raises
# instead of truncating. Truncate explicitly, identically on hash and verify.
_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Hash and verify passwords with a fixed bcrypt cost factor.

    Usage:
        hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
        digest = hasher.hash("Abc12345")
        hasher.verify("Abc12345", digest)  # True
    """

    def __init__(self, rounds: int = 10) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be between 4 and 31, got {rounds}")
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        """Return a salted bcrypt digest of plain. Two calls never return the same string."""
        return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, digest: str) -> bool:
        """Return True if plain matches digest.

        Never raises: a mismatch or an unparseable digest both return False.
        The comparison itself is bcrypt's constant-time check.
        """
        try:
            return bcrypt.checkpw(_encode(plain), digest.encode("utf-8"))
        except (ValueError, TypeError):
            return False
