"""bcrypt password hashing.

Hashes carry the ``$2a$`` prefix. A value that already has it is treated as a
hash and passed through untouched, so saving an aggregate twice never hashes
a hash.
"""

import bcrypt

from orderease.shared.errors import ValidationFailed

HASH_PREFIX = "$2a$"
MIN_LENGTH = 6
MAX_BYTES = 72


def is_hashed(value: str | None) -> bool:
    return bool(value) and value.startswith(HASH_PREFIX)


def validate_password(raw: str | None, field: str = "password") -> str:
    if not raw or len(raw) < MIN_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_LENGTH} characters", field=field)
    if len(raw.encode("utf-8")) > MAX_BYTES:
        raise ValidationFailed(f"Password must be at most {MAX_BYTES} bytes", field=field)
    return raw


def hash_password(raw: str) -> str:
    if is_hashed(raw):
        return raw
    return bcrypt.hashpw(raw.encode("utf-8"), bcrypt.gensalt(prefix=b"2a")).decode("ascii")


def check_password(hashed: str | None, raw: str | None) -> bool:
    if not hashed or not raw:
        return False
    try:
        return bcrypt.checkpw(raw.encode("utf-8"), hashed.encode("ascii"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
