"""Inventory client for SpoolEase filament spool devices."""

__version__ = "0.1.0"
