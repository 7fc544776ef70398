"""Encrypted REST API client for a SpoolEase device."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp

from .config import InventoryConfig
from .csv_parser import parse_spools_csv
from .exceptions import ResponseFormatError, TransportError
from .models import KInfo, PrintersFilamentPa, Spool, SpoolDraft, SpoolsInPrinters, UpsertResult
from .session import KeySession

logger = logging.getLogger(__name__)

TEXT_HEADERS = {"Content-Type": "text/plain"}


def _split_lines(text: str) -> list[str]:
    return [line for line in text.split("\n") if line]


def _loads_object(text: str) -> dict[str, Any]:
    """Parse a JSON object; anything else becomes an empty dict."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return {}
    return data if isinstance(data, dict) else {}


class DeviceClient:
    """Communicates with the device's HTTP surface.

    Catalog endpoints are plain text. Everything under /api is exchanged as
    encrypted text: request bodies are encrypted JSON, responses are
    encrypted CSV or JSON that must be decrypted before parsing.
    """

    def __init__(self, config: InventoryConfig, key_session: KeySession) -> None:
        self._base_url = config.device_base_url
        self._keys = key_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def initialize(self, passphrase: str) -> None:
        """Derive (or reuse) the session key for ``passphrase``.

        Raises InitializationError when derivation fails.
        """
        self._keys.derive(passphrase)

    def is_initialized(self) -> bool:
        return self._keys.is_initialized

    def _encrypt_payload(self, data: dict[str, Any]) -> str:
        return self._keys.encrypt(json.dumps(data, separators=(",", ":")))

    def _decrypt_response(self, data: str) -> str:
        return self._keys.decrypt(data)

    async def _request(self, method: str, path: str, body: str | None = None) -> tuple[int, str]:
        session = await self._get_session()
        url = f"{self._base_url}{path}"
        headers = TEXT_HEADERS if body is not None else None
        try:
            async with session.request(method, url, data=body, headers=headers) as resp:
                return resp.status, await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.warning("Device unreachable (%s %s): %s", method, path, e)
            raise TransportError(f"{method} {path} failed: {e}") from e

    async def _fetch_text(self, method: str, path: str, body: str | None = None) -> str:
        status, text = await self._request(method, path, body)
        if not 200 <= status < 300:
            logger.warning("Device %s %s returned HTTP %d", method, path, status)
            raise TransportError(f"{method} {path} returned HTTP {status}")
        return text

    async def _post_encrypted(self, path: str, data: dict[str, Any]) -> str:
        body = self._encrypt_payload(data)
        encrypted = await self._fetch_text("POST", path, body)
        return self._decrypt_response(encrypted)

    # ── Unencrypted endpoints ───────────────────────────────────────

    async def fetch_catalog(self) -> list[str]:
        """Core-weight catalog lines, e.g. "Bambu Lab - Plastic 250"."""
        return _split_lines(await self._fetch_text("GET", "/spools-catalog"))

    async def fetch_brands(self) -> list[str]:
        return _split_lines(await self._fetch_text("GET", "/filament-brands"))

    # ── Encrypted endpoints ─────────────────────────────────────────

    async def fetch_spools(self) -> list[Spool]:
        encrypted = await self._fetch_text("GET", "/api/spools")
        spools = parse_spools_csv(self._decrypt_response(encrypted))
        logger.debug("Fetched %d spools from device", len(spools))
        return spools

    async def fetch_printer_occupancy(self) -> SpoolsInPrinters:
        """Which spools are currently loaded, as spool id -> printer label."""
        encrypted = await self._fetch_text("GET", "/api/spools-in-printers")
        spools = _loads_object(self._decrypt_response(encrypted)).get("spools")
        if not isinstance(spools, dict):
            return {}
        return {str(spool_id): str(location) for spool_id, location in spools.items()}

    async def upsert_spool(self, spool: SpoolDraft, k_info: Optional[KInfo] = None) -> UpsertResult:
        """Create or update a spool and return the device's full snapshot.

        The device treats a payload carrying an id as an update.
        """
        json_text = await self._post_encrypted("/api/spools/add-edit", spool.to_payload(k_info))
        try:
            data = json.loads(json_text)
            spool_id = data["id"]
            csv_text = data["csv"]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise ResponseFormatError(f"Unexpected add/edit response: {e}") from e
        return UpsertResult(id=str(spool_id), spools=parse_spools_csv(csv_text or ""))

    async def delete_spool(self, spool_id: str) -> list[Spool]:
        csv_text = await self._post_encrypted("/api/spools/delete", {"id": spool_id})
        return parse_spools_csv(csv_text)

    async def fetch_calibration(self, spool_id: str) -> KInfo | None:
        """Pressure advance calibration stored for a spool.

        Returns None when the device answers with an error status.
        """
        body = self._encrypt_payload({"id": spool_id})
        status, encrypted = await self._request("POST", "/api/spool-kinfo", body)
        if not 200 <= status < 300:
            logger.debug("No calibration for spool %s (HTTP %d)", spool_id, status)
            return None
        data = _loads_object(self._decrypt_response(encrypted))
        return KInfo.from_dict(data.get("k_info"))

    async def fetch_pressure_advance_catalog(self, filament_code: str) -> PrintersFilamentPa:
        """Calibrations each printer holds for a slicer filament code."""
        json_text = await self._post_encrypted(
            "/api/printers-filament-pa", {"slicer_filament_code": filament_code},
        )
        return PrintersFilamentPa.from_dict(_loads_object(json_text))
