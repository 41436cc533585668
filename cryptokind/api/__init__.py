"""HTTP API for CryptoKind."""
