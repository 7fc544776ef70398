"""Shared test fixtures."""

from __future__ import annotations

import base64

import pytest

from spool_inventory.config import InventoryConfig
from spool_inventory.models import Spool


@pytest.fixture
def config(tmp_path) -> InventoryConfig:
    return InventoryConfig(
        device_host="192.168.1.50",
        device_port=80,
        security_key="TESTKEY",
        request_timeout=5.0,
        preferences_dir=str(tmp_path / "prefs"),
    )


class FakeCipher:
    """Reversible stand-in: the "key" is the passphrase, the envelope is key|base64(text)."""

    def __init__(self) -> None:
        self.derive_calls = 0

    def derive_key(self, passphrase: str, salt: str) -> bytes:
        self.derive_calls += 1
        if not passphrase:
            raise ValueError("empty passphrase")
        return passphrase.encode()

    def encrypt(self, key: bytes, plaintext: str) -> str:
        return key.decode() + "|" + base64.b64encode(plaintext.encode()).decode()

    def decrypt(self, key: bytes, envelope: str) -> str:
        prefix, _, body = envelope.partition("|")
        if prefix != key.decode():
            raise ValueError("wrong key")
        return base64.b64decode(body).decode()


@pytest.fixture
def fake_cipher() -> FakeCipher:
    return FakeCipher()


@pytest.fixture
def make_spool():
    def _make_spool(
        id: str = "1",
        material: str = "PLA",
        brand: str = "Bambu",
        color_name: str = "Black",
        label_weight: int = 1000,
        core_weight: int = 250,
        consumed: float = 0.0,
        **kwargs,
    ) -> Spool:
        return Spool(
            id=id,
            material=material,
            brand=brand,
            color_name=color_name,
            label_weight=label_weight,
            core_weight=core_weight,
            consumed_since_add=consumed,
            **kwargs,
        )

    return _make_spool
