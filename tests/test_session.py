"""Tests for the key session (derivation memoisation and error wrapping)."""

from __future__ import annotations

import pytest

from spool_inventory.exceptions import DecryptionError, InitializationError, NotInitializedError
from spool_inventory.session import KeySession


class TestKeySession:
    def test_not_initialized(self, fake_cipher):
        keys = KeySession(fake_cipher)
        assert not keys.is_initialized
        with pytest.raises(NotInitializedError, match="API client not initialized"):
            keys.encrypt("x")
        with pytest.raises(NotInitializedError):
            keys.decrypt("x")

    def test_same_passphrase_derives_once(self, fake_cipher):
        keys = KeySession(fake_cipher)
        first = keys.derive("abc")
        second = keys.derive("abc")
        assert first == second
        assert fake_cipher.derive_calls == 1

    def test_new_passphrase_replaces_key(self, fake_cipher):
        keys = KeySession(fake_cipher)
        keys.derive("abc")
        keys.derive("xyz")
        assert fake_cipher.derive_calls == 2
        assert keys.passphrase == "xyz"
        assert keys.decrypt(keys.encrypt("hello")) == "hello"

    def test_failed_derivation_keeps_previous_key(self, fake_cipher):
        keys = KeySession(fake_cipher)
        keys.derive("abc")
        with pytest.raises(InitializationError):
            keys.derive("")
        assert keys.is_initialized
        assert keys.passphrase == "abc"

    def test_decrypt_failure_is_wrapped(self, fake_cipher):
        keys = KeySession(fake_cipher)
        keys.derive("abc")
        with pytest.raises(DecryptionError):
            keys.decrypt("other|aGVsbG8=")
