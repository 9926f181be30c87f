"""Exceptions raised by the wellfield package."""

from __future__ import annotations


class WellfieldError(Exception):
    """Base exception for all wellfield errors."""


class InputError(WellfieldError):
    """Raised when a well record is malformed (missing fields, bad kind)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class CalibrationError(WellfieldError):
    """Raised when a calibration strategy cannot be resolved."""
