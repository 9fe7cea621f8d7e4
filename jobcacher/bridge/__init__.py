"""Bridges to external registry libraries."""

from jobcacher.bridge.oras_transport import OrasTransport, RegistryTransport

__all__ = ["OrasTransport", "RegistryTransport"]
