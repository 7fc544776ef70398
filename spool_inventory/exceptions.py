"""Errors raised by the device layer and the spool form."""

from __future__ import annotations


class DeviceError(Exception):
    """Base class for failures talking to the device."""


class InitializationError(DeviceError):
    """Raised when the encryption key cannot be derived or the cipher cannot be loaded."""


class NotInitializedError(DeviceError):
    """Raised when an encrypted call is attempted before a key was derived."""


class TransportError(DeviceError):
    """Raised on network failure or a non-success HTTP status."""


class DecryptionError(DeviceError):
    """Raised when a response envelope cannot be decrypted (wrong or missing key)."""


class ResponseFormatError(DeviceError):
    """Raised when a response that must be structured cannot be parsed."""


class ValidationError(Exception):
    """Raised by client-side validation before anything is sent to the device."""
