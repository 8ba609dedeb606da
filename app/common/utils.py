# app/common/utils.py
import hashlib
import secrets
import string
from datetime import datetime, timezone

TOKEN_LENGTH = 7
TOKEN_ALPHABET = string.ascii_letters + string.digits
TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"


def timestamp() -> str:
    """UTC capture time for message headers, e.g. 19/10/2026 20:31:05."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def gen_token(length: int = TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()
