"""API key storage and rotation."""

from cryptokind.keys.rotator import KeyRotator, mask_key
from cryptokind.keys.store import (
    Credential,
    CredentialSet,
    JsonFileKeyStore,
    KeyStore,
    MemoryKeyStore,
)

__all__ = [
    "Credential",
    "CredentialSet",
    "JsonFileKeyStore",
    "KeyRotator",
    "KeyStore",
    "MemoryKeyStore",
    "mask_key",
]
