"""Custom exception hierarchy for the Psicomotriz package."""

from __future__ import annotations


class ClinicError(Exception):
    """Base class for all Psicomotriz specific errors."""


class InvalidInputError(ClinicError, ValueError):
    """Raised when a count, fee or period falls outside its accepted range."""


class LiquidationNotFoundError(ClinicError, LookupError):
    """Raised when a liquidation lookup fails."""


class InvalidTransitionError(ClinicError):
    """Raised when a liquidation cannot move to the requested status."""
