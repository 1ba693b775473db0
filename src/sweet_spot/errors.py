"""Error types for sweet-spot flows."""

from __future__ import annotations


class SweetSpotError(RuntimeError):
    """Base error for sweet-spot operations."""


class SlateFormatError(SweetSpotError):
    """Raised when a frozen slate document cannot be read or parsed."""


class UnknownPresetError(SweetSpotError):
    """Raised when a weight preset id does not match a shipped preset."""


class CLIError(SweetSpotError):
    """User-facing CLI error."""
