"""AES-256-GCM envelope used by SpoolEase devices, plus the pluggable cipher seam.

The module-level functions replicate the device framework's scheme:
PBKDF2-HMAC-SHA256 key derivation and an envelope of
base64_no_pad(12-byte nonce) + base64_no_pad(ciphertext + 16-byte auth tag).

The inventory client never calls them directly. It talks to a ``Cipher``,
normally a ``ModuleCipher`` wrapping whichever module ``load_cipher`` imported
(this one by default).
"""

from __future__ import annotations

import base64
import hashlib
import importlib
import logging
import os
from types import ModuleType
from typing import Protocol

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import InitializationError

logger = logging.getLogger(__name__)

DEFAULT_SALT = "example_salt"
DEFAULT_ITERATIONS = 10_000
NONCE_B64_LEN = 16  # 12 bytes -> 16 base64 chars without padding

REQUIRED_FUNCTIONS = ("derive_key", "encrypt", "decrypt")


class Cipher(Protocol):
    def derive_key(self, passphrase: str, salt: str) -> bytes: ...

    def encrypt(self, key: bytes, plaintext: str) -> str: ...

    def decrypt(self, key: bytes, envelope: str) -> str: ...


def derive_key(security_key: str, salt: str = DEFAULT_SALT, iterations: int = DEFAULT_ITERATIONS) -> bytes:
    """Derive a 32-byte AES key from the security key using PBKDF2-HMAC-SHA256."""
    return hashlib.pbkdf2_hmac(
        "sha256",
        security_key.encode("utf-8"),
        salt.encode("utf-8"),
        iterations,
        dklen=32,
    )


def _b64_encode_no_pad(data: bytes) -> str:
    return base64.b64encode(data).rstrip(b"=").decode("ascii")


def _b64_decode_no_pad(s: str) -> bytes:
    padded = s + "=" * (-len(s) % 4)
    return base64.b64decode(padded)


def encrypt(key: bytes, plaintext: str) -> str:
    """Encrypt a string, returning nonce and ciphertext as one base64 string."""
    nonce = os.urandom(12)
    ciphertext_with_tag = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), None)
    return _b64_encode_no_pad(nonce) + _b64_encode_no_pad(ciphertext_with_tag)


def decrypt(key: bytes, encrypted: str) -> str:
    """Decrypt an envelope produced by ``encrypt`` (or by the device).

    Raises ``cryptography.exceptions.InvalidTag`` on a wrong key and
    ``ValueError`` on a malformed envelope.
    """
    encrypted = encrypted.strip()
    nonce = _b64_decode_no_pad(encrypted[:NONCE_B64_LEN])
    ciphertext_with_tag = _b64_decode_no_pad(encrypted[NONCE_B64_LEN:])
    plaintext = AESGCM(key).decrypt(nonce, ciphertext_with_tag, None)
    return plaintext.decode("utf-8")


class ModuleCipher:
    """Binds a module exposing derive_key/encrypt/decrypt to the ``Cipher`` interface."""

    def __init__(self, module: ModuleType) -> None:
        missing = [name for name in REQUIRED_FUNCTIONS if not callable(getattr(module, name, None))]
        if missing:
            raise InitializationError(
                f"Cipher module {module.__name__} is missing: {', '.join(missing)}"
            )
        self._module = module

    @property
    def name(self) -> str:
        return self._module.__name__

    def derive_key(self, passphrase: str, salt: str) -> bytes:
        return self._module.derive_key(passphrase, salt)

    def encrypt(self, key: bytes, plaintext: str) -> str:
        return self._module.encrypt(key, plaintext)

    def decrypt(self, key: bytes, envelope: str) -> str:
        return self._module.decrypt(key, envelope)


def load_cipher(module_name: str = __name__) -> ModuleCipher:
    """Import ``module_name`` and wrap it as a cipher."""
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        logger.error("Failed to load cipher module %s: %s", module_name, e)
        raise InitializationError(f"Failed to load encryption module {module_name}") from e
    cipher = ModuleCipher(module)
    logger.debug("Cipher module %s loaded", module_name)
    return cipher
