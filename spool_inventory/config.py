"""Inventory client configuration loaded from environment variables."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass


@dataclass
class InventoryConfig:
    # Device connection (required)
    device_host: str
    device_port: int = 80
    device_use_https: bool = False

    # Session passphrase; empty means "use the persisted session location"
    security_key: str = ""

    # Encryption collaborator (must match the device's key derivation salt)
    cipher_module: str = "spool_inventory.cipher"
    salt: str = "example_salt"

    request_timeout: float = 10.0  # the device can be slow

    # Local preferences (column layout, page size, sorting, theme, session)
    preferences_dir: str = "~/.config/spool-inventory"

    # Derived statistics
    low_stock_threshold: float = 20.0  # percent of label weight remaining
    weight_tolerance: float = 50.0  # grams between scale and calculated weight

    # Logging
    log_level: str = "WARNING"

    @property
    def device_base_url(self) -> str:
        scheme = "https" if self.device_use_https else "http"
        return f"{scheme}://{self.device_host}:{self.device_port}"

    @property
    def preferences_path(self) -> str:
        return os.path.expanduser(self.preferences_dir)


def _env(key: str, default: str | None = None) -> str:
    val = os.environ.get(key)
    if val is not None:
        return val
    if default is not None:
        return default
    print(f"Error: required environment variable {key} is not set.", file=sys.stderr)
    sys.exit(1)


def _env_bool(key: str, default: bool) -> bool:
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int) -> int:
    val = os.environ.get(key)
    if val is None:
        return default
    return int(val)


def _env_float(key: str, default: float) -> float:
    val = os.environ.get(key)
    if val is None:
        return default
    return float(val)


def load_config() -> InventoryConfig:
    return InventoryConfig(
        device_host=_env("INVENTORY_DEVICE_HOST"),
        device_port=_env_int("INVENTORY_DEVICE_PORT", 80),
        device_use_https=_env_bool("INVENTORY_DEVICE_USE_HTTPS", False),
        security_key=_env("INVENTORY_SECURITY_KEY", ""),
        cipher_module=_env("INVENTORY_CIPHER_MODULE", "spool_inventory.cipher"),
        salt=_env("INVENTORY_SALT", "example_salt"),
        request_timeout=_env_float("INVENTORY_REQUEST_TIMEOUT", 10.0),
        preferences_dir=_env("INVENTORY_PREFERENCES_DIR", "~/.config/spool-inventory"),
        low_stock_threshold=_env_float("INVENTORY_LOW_STOCK_THRESHOLD", 20.0),
        weight_tolerance=_env_float("INVENTORY_WEIGHT_TOLERANCE", 50.0),
        log_level=_env("INVENTORY_LOG_LEVEL", "WARNING"),
    )
