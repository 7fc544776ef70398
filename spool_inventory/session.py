"""Key material for one inventory session."""

from __future__ import annotations

import logging

from .cipher import DEFAULT_SALT, Cipher
from .exceptions import DecryptionError, InitializationError, NotInitializedError

logger = logging.getLogger(__name__)


class KeySession:
    """Holds the derived key and memoises it by passphrase.

    Deriving again with the same passphrase returns the cached key; a new
    passphrase replaces it. The cache lives as long as the session object.
    """

    def __init__(self, cipher: Cipher, salt: str = DEFAULT_SALT) -> None:
        self._cipher = cipher
        self._salt = salt
        self._key: bytes | None = None
        self._passphrase: str | None = None

    @property
    def is_initialized(self) -> bool:
        return self._key is not None

    @property
    def passphrase(self) -> str | None:
        return self._passphrase

    def derive(self, passphrase: str) -> bytes:
        if self._key is not None and self._passphrase == passphrase:
            return self._key
        try:
            key = self._cipher.derive_key(passphrase, self._salt)
        except Exception as e:
            logger.error("Key derivation failed: %s", e)
            raise InitializationError("Failed to derive encryption key") from e
        self._key = key
        self._passphrase = passphrase
        logger.debug("Derived new session key")
        return key

    def _require_key(self) -> bytes:
        if self._key is None:
            raise NotInitializedError("API client not initialized")
        return self._key

    def encrypt(self, plaintext: str) -> str:
        return self._cipher.encrypt(self._require_key(), plaintext)

    def decrypt(self, envelope: str) -> str:
        key = self._require_key()
        try:
            return self._cipher.decrypt(key, envelope)
        except Exception as e:
            raise DecryptionError("Failed to decrypt device response") from e
