"""CryptoKind: caching proxy for cryptocurrency market data."""

__version__ = "0.1.0"
