"""Errors raised by the snapshot probe phases."""
from typing import Optional


class ProbeError(Exception):
    """Fatal probe failure; rendered as the sensor error report."""

    def __init__(self, message: str, *, server: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.server = server


class PreconditionError(ProbeError):
    """Raised when a required parameter is missing."""


class DependencyLoadError(ProbeError):
    """Raised when the vSphere SDK cannot be imported."""


class SessionError(ProbeError):
    """Raised when the session to the endpoint cannot be opened."""


class InventoryError(ProbeError):
    """Raised when the VM inventory cannot be listed."""
