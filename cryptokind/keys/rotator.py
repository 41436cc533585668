"""
Key Rotator: least-used-first selection over the stored credentials.

Usage counts are load-spreading hints, not quotas. Each credential's
``rate_limit`` is recorded and reported, and crossing it is logged, but
nothing refuses a key for being over its limit.
"""

from __future__ import annotations

import logging
import threading

from cryptokind.errors import KeyStoreError, NoCredentialsError
from cryptokind.keys.store import DEFAULT_RATE_LIMIT, Credential, CredentialSet, KeyStore, utc_now_iso

logger = logging.getLogger(__name__)


def mask_key(secret: str) -> str:
    """Show the first and last five characters only.

    Secrets too short to elide anything are masked entirely.
    """
    if len(secret) <= 10:
        return "*****"
    return f"{secret[:5]}...{secret[-5:]}"


class KeyRotator:
    """Selects, counts and manages credentials held by a KeyStore."""

    def __init__(self, store: KeyStore) -> None:
        self.store = store
        self._lock = threading.Lock()

    def select_key(self) -> str:
        """Return the least-used secret and bump its counter.

        Ties go to the credential listed first. Raises NoCredentialsError when
        the store holds no keys.
        """
        with self._lock:
            keys = self.store.load()
            if not keys.keys:
                logger.error("No API keys available")
                raise NoCredentialsError()

            # min() keeps the first of equal elements
            selected = min(keys.keys, key=lambda c: c.used)
            selected.used += 1
            if selected.used == selected.rate_limit + 1:
                logger.warning(
                    "API key %s exceeded its advisory limit of %d uses",
                    mask_key(selected.key),
                    selected.rate_limit,
                )

            try:
                self.store.save(keys)
            except KeyStoreError as e:
                logger.warning("Could not persist key usage (non-fatal): %s", e)
            return selected.key

    def reset_usage(self) -> CredentialSet:
        """Zero every usage counter and stamp the rotation time."""
        with self._lock:
            keys = self.store.load()
            for cred in keys.keys:
                cred.used = 0
            keys.last_rotation = utc_now_iso()
            self.store.save(keys)
        logger.info("Reset API key usage counts (%d keys)", len(keys.keys))
        return keys

    def add_key(self, secret: str, rate_limit: int = DEFAULT_RATE_LIMIT) -> bool:
        """Append a new credential. Returns False if it is empty or already known."""
        if not secret:
            return False
        with self._lock:
            keys = self.store.load()
            if keys.find(secret) is not None:
                logger.warning("API key %s already exists", mask_key(secret))
                return False
            keys.keys.append(Credential(key=secret, rate_limit=rate_limit, used=0))
            self.store.save(keys)
        logger.info("Added new API key %s", mask_key(secret))
        return True

    def remove_key(self, secret: str) -> bool:
        """Delete a credential. Returns False if it is not known."""
        with self._lock:
            keys = self.store.load()
            remaining = [c for c in keys.keys if c.key != secret]
            if len(remaining) == len(keys.keys):
                logger.warning("API key %s not found", mask_key(secret))
                return False
            keys.keys = remaining
            self.store.save(keys)
        logger.info("Removed API key %s", mask_key(secret))
        return True

    def list_keys(self) -> list[dict]:
        """Credentials with masked secrets, in stored order."""
        keys = self.store.load()
        return [
            {"key": mask_key(c.key), "rateLimit": c.rate_limit, "used": c.used}
            for c in keys.keys
        ]

    def last_rotation(self) -> str:
        return self.store.load().last_rotation
