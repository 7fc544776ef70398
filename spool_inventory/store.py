"""Application state: authentication, the spool collection and occupancy.

Every mutation replaces the spool collection wholesale with the snapshot the
device returns; the client never patches records locally.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote, unquote

from .device_client import DeviceClient
from .models import KInfo, PrintersFilamentPa, Spool, SpoolDraft, SpoolsInPrinters
from .preferences import PreferenceStore

logger = logging.getLogger(__name__)

_SESSION_KEY_RE = re.compile(r"sk=([^&]+)")

AUTH_FAILED = "Invalid security key or connection failed"
FETCH_FAILED = "Failed to fetch spools"


def passphrase_from_location(location: Optional[str]) -> Optional[str]:
    """Extract the passphrase from a "sk=<passphrase>" location fragment."""
    if not location:
        return None
    match = _SESSION_KEY_RE.search(location)
    return unquote(match.group(1)) if match else None


@dataclass
class AppState:
    is_loading: bool = True
    is_authenticated: bool = False
    error: Optional[str] = None
    spools: list[Spool] = field(default_factory=list)
    spools_in_printers: SpoolsInPrinters = field(default_factory=dict)
    spools_catalog: list[str] = field(default_factory=list)
    filament_brands: list[str] = field(default_factory=list)


class InventoryStore:
    """Owns the state shown by the front end and drives the device client."""

    def __init__(self, client: DeviceClient, preferences: PreferenceStore) -> None:
        self._client = client
        self._preferences = preferences
        self.state = AppState()

    @property
    def client(self) -> DeviceClient:
        return self._client

    async def load_catalogs(self) -> None:
        """Core-weight catalog and brand list; failures leave them empty."""
        try:
            catalog, brands = await asyncio.gather(
                self._client.fetch_catalog(),
                self._client.fetch_brands(),
            )
        except Exception as e:
            logger.warning("Failed to load catalogs: %s", e)
            return
        self.state.spools_catalog = catalog
        self.state.filament_brands = brands

    async def authenticate(self, passphrase: str) -> bool:
        """Initialise the client and probe the device with it.

        On success the passphrase is persisted as the session location.
        """
        try:
            await self._client.initialize(passphrase)
            spools = await self._client.fetch_spools()
            occupancy = await self._client.fetch_printer_occupancy()
        except Exception as e:
            logger.warning("Authentication failed: %s", e)
            self.state.is_authenticated = False
            self.state.error = AUTH_FAILED
            return False

        self.state.is_authenticated = True
        self.state.spools = spools
        self.state.spools_in_printers = occupancy
        self.state.error = None
        self._preferences.save_location(f"sk={quote(passphrase, safe='')}")
        logger.info("Authenticated, %d spools loaded", len(spools))
        return True

    def logout(self) -> None:
        self._preferences.clear_location()
        self.state.is_authenticated = False
        self.state.spools = []
        self.state.spools_in_printers = {}
        self.state.error = None

    async def refresh(self) -> None:
        if not self._client.is_initialized():
            return
        try:
            spools, occupancy = await asyncio.gather(
                self._client.fetch_spools(),
                self._client.fetch_printer_occupancy(),
            )
        except Exception as e:
            logger.error("Refresh failed: %s", e)
            self.state.error = FETCH_FAILED
            return
        self.state.spools = spools
        self.state.spools_in_printers = occupancy
        self.state.error = None

    async def add_or_update_spool(
        self, draft: SpoolDraft, k_info: Optional[KInfo] = None, error_message: str = "Failed to save spool",
    ) -> str:
        """Create or update a spool; returns its id."""
        try:
            result = await self._client.upsert_spool(draft, k_info)
        except Exception as e:
            logger.error("%s: %s", error_message, e)
            self.state.error = error_message
            raise
        self.state.spools = result.spools
        self.state.error = None
        return result.id

    async def add_spool(self, draft: SpoolDraft, k_info: Optional[KInfo] = None) -> str:
        return await self.add_or_update_spool(draft, k_info, "Failed to add spool")

    async def edit_spool(self, draft: SpoolDraft, k_info: Optional[KInfo] = None) -> str:
        return await self.add_or_update_spool(draft, k_info, "Failed to edit spool")

    async def delete_spool(self, spool_id: str) -> None:
        try:
            spools = await self._client.delete_spool(spool_id)
        except Exception as e:
            logger.error("Failed to delete spool %s: %s", spool_id, e)
            self.state.error = "Failed to delete spool"
            raise
        self.state.spools = spools
        self.state.error = None

    async def get_calibration(self, spool_id: str) -> Optional[KInfo]:
        try:
            return await self._client.fetch_calibration(spool_id)
        except Exception as e:
            logger.warning("Failed to fetch calibration for spool %s: %s", spool_id, e)
            return None

    async def get_pressure_advance_catalog(self, filament_code: str) -> Optional[PrintersFilamentPa]:
        try:
            return await self._client.fetch_pressure_advance_catalog(filament_code)
        except Exception as e:
            logger.warning("Failed to fetch pressure advance for %s: %s", filament_code, e)
            return None

    def find_spool(self, spool_id: str) -> Optional[Spool]:
        for spool in self.state.spools:
            if spool.id == spool_id:
                return spool
        return None

    async def initialize(self, location: Optional[str] = None, passphrase: Optional[str] = None) -> None:
        """Startup sequence: catalogs, then silent authentication if possible.

        An explicit passphrase is used verbatim; otherwise it comes from the
        location fragment, then from the persisted session.
        """
        await self.load_catalogs()
        if not passphrase:
            passphrase = passphrase_from_location(location)
        if passphrase is None:
            passphrase = passphrase_from_location(self._preferences.load_location())
        if passphrase:
            await self.authenticate(passphrase)
        self.state.is_loading = False
