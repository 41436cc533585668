"""
Key Store: persistence for the market-data API credentials.

The credential set lives in a small JSON file:

    {
      "keys": [{"key": "...", "rateLimit": 30, "used": 0}],
      "lastRotation": "2026-01-01T00:00:00+00:00"
    }

The file has a single writer (this process). Writes go through a temp file
and ``os.replace`` so a crash never leaves a half-written file behind.

Usage:
    from cryptokind.keys.store import JsonFileKeyStore

    store = JsonFileKeyStore(Path("config/apiKeys/coinmarketcap.json"), default_key="...")
    keys = store.load()
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from cryptokind.errors import KeyStoreError

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT = 30


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Credential:
    """A single API key and its usage counter for the current rotation period."""

    key: str
    rate_limit: int = DEFAULT_RATE_LIMIT
    used: int = 0

    def to_dict(self) -> dict:
        return {"key": self.key, "rateLimit": self.rate_limit, "used": self.used}

    @classmethod
    def from_dict(cls, data: dict) -> Credential:
        return cls(
            key=str(data["key"]),
            rate_limit=int(data.get("rateLimit", DEFAULT_RATE_LIMIT)),
            used=int(data.get("used", 0)),
        )


@dataclass
class CredentialSet:
    """Ordered credentials plus the time of the last usage reset."""

    keys: list[Credential] = field(default_factory=list)
    last_rotation: str = field(default_factory=utc_now_iso)

    def find(self, secret: str) -> Credential | None:
        for cred in self.keys:
            if cred.key == secret:
                return cred
        return None

    def to_dict(self) -> dict:
        return {
            "keys": [c.to_dict() for c in self.keys],
            "lastRotation": self.last_rotation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CredentialSet:
        return cls(
            keys=[Credential.from_dict(k) for k in data.get("keys", [])],
            last_rotation=data.get("lastRotation") or utc_now_iso(),
        )


class KeyStore(Protocol):
    """Load/save interface the rotator depends on."""

    def load(self) -> CredentialSet: ...

    def save(self, keys: CredentialSet) -> None: ...


class JsonFileKeyStore:
    """Credential set persisted as JSON on the local filesystem."""

    def __init__(self, path: Path, default_key: str = "") -> None:
        self.path = Path(path)
        self.default_key = default_key

    def load(self) -> CredentialSet:
        """Read the credential set.

        A missing file is bootstrapped from ``default_key`` and written out.
        Unreadable or malformed files yield an empty set so callers fail with
        "no keys" instead of crashing.
        """
        try:
            if not self.path.exists():
                keys = CredentialSet()
                if self.default_key:
                    keys.keys.append(Credential(key=self.default_key))
                try:
                    self.save(keys)
                    logger.info("Created default API keys file at %s", self.path)
                except KeyStoreError as e:
                    logger.warning("Default API keys not persisted: %s", e)
                return keys

            data = json.loads(self.path.read_text(encoding="utf-8"))
            return CredentialSet.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("Error loading API keys from %s: %s", self.path, e)
            return CredentialSet()

    def save(self, keys: CredentialSet) -> None:
        """Atomically replace the key file."""
        content = json.dumps(keys.to_dict(), indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=".apikeys-",
                suffix=".tmp",
            )
        except OSError as e:
            raise KeyStoreError(f"Cannot write API keys file {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                fp.write(content)
            os.replace(tmp, self.path)
        except OSError as e:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise KeyStoreError(f"Cannot write API keys file {self.path}: {e}") from e
        logger.debug("Updated API keys file %s", self.path)


class MemoryKeyStore:
    """In-memory store with the same contract, for tests and dry runs."""

    def __init__(self, keys: CredentialSet | None = None) -> None:
        self._keys = copy.deepcopy(keys) if keys is not None else CredentialSet()
        self.saves = 0

    def load(self) -> CredentialSet:
        return copy.deepcopy(self._keys)

    def save(self, keys: CredentialSet) -> None:
        self._keys = copy.deepcopy(keys)
        self.saves += 1
