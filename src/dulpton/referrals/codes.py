"""Referral code generation.

Codes are 8 characters from a URL-safe alphabet, generated server-side with
a cryptographic random source. Lookup is exact-match.
"""

from __future__ import annotations

import secrets
import string

from dulpton.storage.base import EntityStore

REFERRAL_CHARSET = string.ascii_letters + string.digits + "_-"
REFERRAL_CODE_LENGTH = 8


def generate_referral_code() -> str:
    """Generate a cryptographically random 8-character referral code."""
    return "".join(secrets.choice(REFERRAL_CHARSET) for _ in range(REFERRAL_CODE_LENGTH))


async def generate_unique_referral_code(store: EntityStore) -> str:
    """Generate a referral code that no existing user holds."""
    for _ in range(10):
        code = generate_referral_code()
        if await store.get_user_by_referral_code(code) is None:
            return code
    raise RuntimeError("Failed to generate unique referral code after 10 attempts")
