"""
lib/password_hasher.py — bcrypt password hashing.

The raw password is never stored, never logged, never returned.
bcrypt only looks at the first 72 bytes of its input and current releases
reject anything longer with ValueError; the signup, reset and change
schemas cap new passwords at 72 UTF-8 bytes before they reach this module.
"""

from __future__ import annotations

import bcrypt


class BcryptPasswordHasher:

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        return bcrypt.hashpw(
            plain.encode("utf-8"),
            bcrypt.gensalt(rounds=self.rounds),
        ).decode("utf-8")

    def compare(self, plain: str, password_hash: str) -> bool:
        # bcrypt.checkpw compares in constant time.
        try:
            return bcrypt.checkpw(
                plain.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except ValueError:
            # Malformed stored hash or over-long input: treat as a mismatch.
            return False
