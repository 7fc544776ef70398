"""Mock SpoolEase device for integration testing.

Serves the device's HTTP surface over an in-memory spool store, encrypting
with the reference cipher. An unencrypted admin API on a second port lets
test scripts load spools into printers and simulate consumption.

Usage:
    python -m simulation.mock_device

    # Or with custom settings:
    MOCK_SECURITY_KEY=TESTKEY MOCK_PORT=8080 MOCK_ADMIN_PORT=8081 python -m simulation.mock_device

Device API (port 8080):
    GET  /spools-catalog            -> plain text core weight catalog
    GET  /filament-brands           -> plain text brand list
    GET  /api/spools                -> encrypted CSV of all spools
    GET  /api/spools-in-printers    -> encrypted JSON of loaded spools
    POST /api/spools/add-edit       -> create or update, encrypted {id, csv}
    POST /api/spools/delete         -> delete, encrypted CSV
    POST /api/spool-kinfo           -> encrypted {k_info}, 404 when absent
    POST /api/printers-filament-pa  -> encrypted calibrations per printer

Admin API (port 8081):
    GET  /admin/health
    POST /admin/load      {"spool_id": "1", "location": "X1C AMS 1"}
    POST /admin/consume   {"spool_id": "1", "grams": 25.5}
    POST /admin/reset
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import os
import struct
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from aiohttp import web
from cryptography.exceptions import InvalidTag

from spool_inventory.cipher import DEFAULT_SALT, decrypt, derive_key, encrypt

logger = logging.getLogger(__name__)

DEFAULT_CATALOG = (
    "Bambu Lab - Plastic 250",
    "Bambu Lab - Cardboard 180",
    "Generic - Plastic 200",
)
DEFAULT_BRANDS = ("Bambu", "Polymaker", "eSun", "Elegoo", "Sunlu")


@dataclass
class MockSpool:
    id: str
    tag_id: str = ""
    material: str = "PLA"
    subtype: str = ""
    color_name: str = "Black"
    color_code: str = "000000FF"
    note: str = ""
    brand: str = "Bambu"
    label_weight: Optional[int] = 1000
    core_weight: Optional[int] = 250
    weight_new: Optional[int] = None
    weight_current: Optional[int] = None
    slicer_filament: str = ""
    added_time: Optional[int] = None
    encode_time: Optional[int] = None
    added_full: Optional[bool] = True
    consumed_since_add: float = 0.0
    consumed_since_weight: float = 0.0
    k_info: Optional[dict[str, Any]] = None
    data_origin: str = ""
    tag_type: str = "SpoolEaseV1"


def _encode_f32_base64(value: float) -> str:
    if value == 0.0:
        return ""
    raw = struct.pack("<f", value)
    return base64.b64encode(raw).rstrip(b"=").decode("ascii")


def _bool_yn(value: Optional[bool]) -> str:
    if value is None:
        return ""
    return "y" if value else "n"


def _opt_int(value: Optional[int]) -> str:
    return "" if value is None else str(value)


def _quote(value: str) -> str:
    return f'"{value}"' if "," in value else value


def spool_to_csv_row(s: MockSpool) -> str:
    fields = [
        s.id, s.tag_id, s.material, s.subtype,
        _quote(s.color_name), s.color_code, _quote(s.note), _quote(s.brand),
        _opt_int(s.label_weight), _opt_int(s.core_weight),
        _opt_int(s.weight_new), _opt_int(s.weight_current),
        s.slicer_filament, _opt_int(s.added_time), _opt_int(s.encode_time),
        _bool_yn(s.added_full),
        _encode_f32_base64(s.consumed_since_add),
        _encode_f32_base64(s.consumed_since_weight),
        "y" if s.k_info else "n",
        s.data_origin, s.tag_type,
    ]
    return ",".join(fields)


@dataclass
class MockDevice:
    """In-memory device state. Ids are assigned sequentially from 1."""

    security_key: str = "TESTKEY"
    salt: str = DEFAULT_SALT
    catalog: list[str] = field(default_factory=lambda: list(DEFAULT_CATALOG))
    brands: list[str] = field(default_factory=lambda: list(DEFAULT_BRANDS))
    spools: dict[str, MockSpool] = field(default_factory=dict)
    in_printers: dict[str, str] = field(default_factory=dict)
    # printer serial -> {"name", "extruders", "pressure_advance": [...]} per filament code
    pressure_advance: dict[str, dict[str, Any]] = field(default_factory=dict)
    _next_id: int = 1

    def __post_init__(self) -> None:
        self.key = derive_key(self.security_key, self.salt)

    def add_spool(self, **kwargs) -> MockSpool:
        spool_id = str(self._next_id)
        self._next_id += 1
        kwargs.setdefault("added_time", int(time.time()))
        spool = MockSpool(id=spool_id, **kwargs)
        self.spools[spool_id] = spool
        return spool

    def upsert(self, payload: dict[str, Any]) -> MockSpool:
        """Apply an add/edit payload; an unknown or empty id creates a spool."""
        values = {
            "tag_id": payload.get("tag_id") or "",
            "material": payload.get("material") or "",
            "subtype": payload.get("subtype") or "",
            "color_name": payload.get("color_name") or "",
            "color_code": (payload.get("rgba") or "").upper() + "FF" if payload.get("rgba") else "",
            "brand": payload.get("brand") or "",
            "label_weight": payload.get("label_weight") or None,
            "core_weight": payload.get("core_weight") or None,
            "note": payload.get("note") or "",
            "slicer_filament": payload.get("slicer_filament") or "",
        }
        if payload.get("full_unused") is not None:
            values["added_full"] = payload.get("full_unused") == "y"
        spool = self.spools.get(str(payload.get("id") or ""))
        if spool is None:
            spool = self.add_spool(**values)
        else:
            for name, value in values.items():
                setattr(spool, name, value)
        if "k_info" in payload:
            spool.k_info = payload["k_info"] or None
        return spool

    def delete(self, spool_id: str) -> None:
        self.spools.pop(spool_id, None)
        self.in_printers.pop(spool_id, None)

    def consume(self, spool_id: str, grams: float) -> Optional[MockSpool]:
        spool = self.spools.get(spool_id)
        if spool is None:
            return None
        spool.consumed_since_add += grams
        spool.consumed_since_weight += grams
        return spool

    def to_csv(self) -> str:
        return "\n".join(spool_to_csv_row(s) for s in self.spools.values())

    def reset(self) -> None:
        self.spools.clear()
        self.in_printers.clear()
        self._next_id = 1


DEVICE = web.AppKey("device", MockDevice)


# ── Device API routes ───────────────────────────────────────────────


def _device(request: web.Request) -> MockDevice:
    return request.app[DEVICE]


def _encrypted(device: MockDevice, text: str, status: int = 200) -> web.Response:
    return web.Response(text=encrypt(device.key, text), status=status)


async def _decrypted_json(request: web.Request) -> Optional[dict[str, Any]]:
    device = _device(request)
    body = await request.text()
    try:
        data = json.loads(decrypt(device.key, body))
    except (InvalidTag, ValueError, TypeError) as e:
        logger.warning("Rejecting undecryptable request: %s", e)
        return None
    return data if isinstance(data, dict) else None


async def handle_catalog(request: web.Request) -> web.Response:
    return web.Response(text="\n".join(_device(request).catalog))


async def handle_brands(request: web.Request) -> web.Response:
    return web.Response(text="\n".join(_device(request).brands))


async def handle_get_spools(request: web.Request) -> web.Response:
    device = _device(request)
    return _encrypted(device, device.to_csv())


async def handle_spools_in_printers(request: web.Request) -> web.Response:
    device = _device(request)
    return _encrypted(device, json.dumps({"spools": device.in_printers}))


async def handle_add_edit(request: web.Request) -> web.Response:
    data = await _decrypted_json(request)
    if data is None:
        return web.Response(status=400, text="Invalid request")
    device = _device(request)
    spool = device.upsert(data)
    logger.info("Saved spool %s: %s %s", spool.id, spool.brand, spool.material)
    return _encrypted(device, json.dumps({"id": spool.id, "csv": device.to_csv()}))


async def handle_delete(request: web.Request) -> web.Response:
    data = await _decrypted_json(request)
    if data is None:
        return web.Response(status=400, text="Invalid request")
    device = _device(request)
    device.delete(str(data.get("id", "")))
    return _encrypted(device, device.to_csv())


async def handle_kinfo(request: web.Request) -> web.Response:
    data = await _decrypted_json(request)
    if data is None:
        return web.Response(status=400, text="Invalid request")
    device = _device(request)
    spool = device.spools.get(str(data.get("id", "")))
    if spool is None or not spool.k_info:
        return web.Response(status=404, text="Not found")
    return _encrypted(device, json.dumps({"k_info": spool.k_info}))


async def handle_printers_filament_pa(request: web.Request) -> web.Response:
    data = await _decrypted_json(request)
    if data is None:
        return web.Response(status=400, text="Invalid request")
    device = _device(request)
    code = data.get("slicer_filament_code", "")
    return _encrypted(device, json.dumps({"printers": device.pressure_advance.get(code, {})}))


# ── Admin API routes (plaintext, for test control) ──────────────────


async def admin_health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "spool_count": len(_device(request).spools)})


async def admin_load(request: web.Request) -> web.Response:
    data = await request.json()
    device = _device(request)
    spool_id = str(data.get("spool_id", ""))
    if spool_id not in device.spools:
        return web.json_response({"error": f"spool {spool_id} not found"}, status=404)
    location = data.get("location")
    if location:
        device.in_printers[spool_id] = location
    else:
        device.in_printers.pop(spool_id, None)
    return web.json_response({"spools": device.in_printers})


async def admin_consume(request: web.Request) -> web.Response:
    data = await request.json()
    spool_id = str(data.get("spool_id", ""))
    grams = data.get("grams", 0)
    if grams <= 0:
        return web.json_response({"error": "grams must be positive"}, status=400)
    spool = _device(request).consume(spool_id, grams)
    if spool is None:
        return web.json_response({"error": f"spool {spool_id} not found"}, status=404)
    return web.json_response({"id": spool.id, "consumed_since_add": round(spool.consumed_since_add, 2)})


async def admin_reset(request: web.Request) -> web.Response:
    _device(request).reset()
    return web.json_response({"status": "reset"})


# ── Server setup ────────────────────────────────────────────────────


def create_app(device: MockDevice) -> web.Application:
    app = web.Application()
    app[DEVICE] = device
    app.router.add_get("/spools-catalog", handle_catalog)
    app.router.add_get("/filament-brands", handle_brands)
    app.router.add_get("/api/spools", handle_get_spools)
    app.router.add_get("/api/spools-in-printers", handle_spools_in_printers)
    app.router.add_post("/api/spools/add-edit", handle_add_edit)
    app.router.add_post("/api/spools/delete", handle_delete)
    app.router.add_post("/api/spool-kinfo", handle_kinfo)
    app.router.add_post("/api/printers-filament-pa", handle_printers_filament_pa)
    return app


def create_admin_app(device: MockDevice) -> web.Application:
    app = web.Application()
    app[DEVICE] = device
    app.router.add_get("/admin/health", admin_health)
    app.router.add_post("/admin/load", admin_load)
    app.router.add_post("/admin/consume", admin_consume)
    app.router.add_post("/admin/reset", admin_reset)
    return app


async def start_servers() -> None:
    port = int(os.environ.get("MOCK_PORT", "8080"))
    admin_port = int(os.environ.get("MOCK_ADMIN_PORT", "8081"))
    device = MockDevice(
        security_key=os.environ.get("MOCK_SECURITY_KEY", "TESTKEY"),
        salt=os.environ.get("MOCK_SALT", DEFAULT_SALT),
    )
    device.add_spool(tag_id="04A1B2C3D4E5F6", color_name="Jade White", color_code="F5F5F5FF",
                     slicer_filament="GFA00", subtype="Basic")
    device.add_spool(material="PETG", color_name="Red", color_code="FF0000FF", brand="Polymaker",
                     consumed_since_add=820.0)

    runners = []
    for app, app_port in ((create_app(device), port), (create_admin_app(device), admin_port)):
        runner = web.AppRunner(app)
        await runner.setup()
        await web.TCPSite(runner, "0.0.0.0", app_port).start()
        runners.append(runner)

    logger.info("Device API running on port %d", port)
    logger.info("Admin API running on port %d", admin_port)
    logger.info("Security key: %s", device.security_key)
    try:
        await asyncio.Event().wait()
    finally:
        for runner in runners:
            await runner.cleanup()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[Mock SpoolEase] %(message)s")
    asyncio.run(start_servers())
