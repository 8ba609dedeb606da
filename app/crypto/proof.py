# app/crypto/proof.py
from cryptography.hazmat.primitives import constant_time

from app.common.utils import sha256_hex


def compute_proof(client_token: str, server_token: str, secret: str) -> str:
    """
    proof = hex(SHA256(client_token || server_token || secret))

    Computed independently by client (secret = typed password) and server
    (secret = stored credential); the login succeeds only if both agree.
    """
    return sha256_hex((client_token + server_token + secret).encode("utf-8"))


def proofs_match(expected: str, received: str) -> bool:
    return constant_time.bytes_eq(expected.encode("utf-8"), received.encode("utf-8"))
