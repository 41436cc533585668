"""Tests for cryptokind.keys.rotator — least-used selection and key management."""

from unittest.mock import MagicMock

import pytest

from cryptokind.errors import KeyStoreError, NoCredentialsError
from cryptokind.keys.rotator import KeyRotator, mask_key
from cryptokind.keys.store import Credential, CredentialSet, MemoryKeyStore


def _rotator(*secrets, used=None, rate_limit=30):
    used = used or [0] * len(secrets)
    keys = CredentialSet(
        [Credential(s, rate_limit, u) for s, u in zip(secrets, used, strict=True)],
        "2026-01-01T00:00:00+00:00",
    )
    store = MemoryKeyStore(keys)
    return KeyRotator(store), store


class TestMaskKey:
    def test_long_key(self):
        assert mask_key("abcdefghijklmnopqrstuvwxyz") == "abcde...vwxyz"

    def test_short_key_fully_masked(self):
        assert mask_key("0123456789") == "*****"
        assert mask_key("abc") == "*****"

    def test_eleven_chars(self):
        assert mask_key("0123456789A") == "01234...6789A"


class TestSelectKey:
    def test_no_keys_raises(self):
        rotator, _ = _rotator()
        with pytest.raises(NoCredentialsError, match="No API keys available"):
            rotator.select_key()

    def test_picks_least_used(self):
        rotator, store = _rotator("k1", "k2", "k3", used=[5, 2, 9])
        assert rotator.select_key() == "k2"
        assert [c.used for c in store.load().keys] == [5, 3, 9]

    def test_ties_go_to_first(self):
        rotator, _ = _rotator("k1", "k2", "k3")
        assert rotator.select_key() == "k1"
        assert rotator.select_key() == "k2"
        assert rotator.select_key() == "k3"
        assert rotator.select_key() == "k1"

    def test_counts_stay_balanced(self):
        rotator, store = _rotator("a", "b", "c", "d")
        for _ in range(4 * 7 + 3):
            rotator.select_key()
            counts = [c.used for c in store.load().keys]
            assert max(counts) - min(counts) <= 1
        assert sum(c.used for c in store.load().keys) == 31

    def test_over_limit_is_advisory(self, caplog):
        rotator, store = _rotator("k1", rate_limit=2)
        for _ in range(4):
            assert rotator.select_key() == "k1"
        assert store.load().keys[0].used == 4
        warnings = [r for r in caplog.records if "advisory limit" in r.getMessage()]
        assert len(warnings) == 1

    def test_save_failure_is_not_fatal(self):
        store = MagicMock()
        store.load.return_value = CredentialSet([Credential("k1")])
        store.save.side_effect = KeyStoreError("disk full")
        assert KeyRotator(store).select_key() == "k1"


class TestResetUsage:
    def test_zeroes_counts_and_stamps_time(self):
        rotator, store = _rotator("k1", "k2", used=[4, 7])
        keys = rotator.reset_usage()
        assert [c.used for c in keys.keys] == [0, 0]
        assert keys.last_rotation != "2026-01-01T00:00:00+00:00"
        assert store.load().to_dict() == keys.to_dict()

    def test_restores_original_order(self):
        rotator, _ = _rotator("k1", "k2", "k3", used=[3, 1, 2])
        rotator.reset_usage()
        assert [rotator.select_key() for _ in range(3)] == ["k1", "k2", "k3"]

    def test_save_failure_propagates(self):
        store = MagicMock()
        store.load.return_value = CredentialSet([Credential("k1", used=2)])
        store.save.side_effect = KeyStoreError("read-only")
        with pytest.raises(KeyStoreError):
            KeyRotator(store).reset_usage()


class TestAddRemove:
    def test_add_appends_unused(self):
        rotator, store = _rotator("k1", used=[9])
        assert rotator.add_key("k2", rate_limit=50) is True
        keys = store.load().keys
        assert [(c.key, c.rate_limit, c.used) for c in keys] == [("k1", 30, 9), ("k2", 50, 0)]

    def test_add_duplicate_leaves_store_unchanged(self):
        rotator, store = _rotator("k1", used=[3])
        before = store.load().to_dict()
        saves = store.saves
        assert rotator.add_key("k1") is False
        assert store.load().to_dict() == before
        assert store.saves == saves

    def test_add_empty_rejected(self):
        rotator, store = _rotator()
        assert rotator.add_key("") is False
        assert store.load().keys == []

    def test_remove_known(self):
        rotator, store = _rotator("k1", "k2", "k3")
        assert rotator.remove_key("k2") is True
        assert [c.key for c in store.load().keys] == ["k1", "k3"]

    def test_remove_unknown_leaves_store_unchanged(self):
        rotator, store = _rotator("k1")
        before = store.load().to_dict()
        assert rotator.remove_key("nope") is False
        assert store.load().to_dict() == before


class TestListKeys:
    def test_masked(self):
        rotator, _ = _rotator("abcdefghijklmnop", "short", used=[2, 0])
        assert rotator.list_keys() == [
            {"key": "abcde...lmnop", "rateLimit": 30, "used": 2},
            {"key": "*****", "rateLimit": 30, "used": 0},
        ]

    def test_last_rotation(self):
        rotator, _ = _rotator("k1")
        assert rotator.last_rotation() == "2026-01-01T00:00:00+00:00"
