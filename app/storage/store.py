# app/storage/store.py
from typing import Dict, Optional

from app.common.errors import StoreLookupFailure


class SecretStore:
    """Resolves a username to the secret both sides feed into the proof."""

    def lookup(self, username: str) -> str:
        """Return the stored secret or raise StoreLookupFailure."""
        raise NotImplementedError


class MemorySecretStore(SecretStore):
    def __init__(self, secrets: Optional[Dict[str, str]] = None):
        self._secrets = dict(secrets or {})

    def lookup(self, username: str) -> str:
        try:
            return self._secrets[username]
        except KeyError:
            raise StoreLookupFailure(f"unknown user {username!r}") from None
