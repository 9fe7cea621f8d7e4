"""Error taxonomy for registry cache operations.

Only ``RegistryClient.exists`` recovers from these locally; every other
operation lets them propagate to the caller with the original cause chained.
"""

from __future__ import annotations


class RegistryError(RuntimeError):
    """Base class for every failure raised by the registry cache."""


class ArtifactNotFoundError(RegistryError):
    """The tag, manifest or blob does not exist in the registry."""

    def __init__(self, reference: str, detail: str = "") -> None:
        self.reference = reference
        message = f"Artifact not found: {reference}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class MalformedArtifactError(RegistryError):
    """The manifest exists but cannot be interpreted as a cache artifact."""


class NoLayerError(MalformedArtifactError):
    """The manifest references no layer at all."""


class NoContentLayerError(MalformedArtifactError):
    """Several layers are present and none carries cache content."""


class ResourceMissingError(RegistryError):
    """A local input (source archive or bundled icon) is absent or unreadable."""


class InvariantViolationError(RegistryError):
    """A manifest violated a structural guarantee, e.g. a layer without digest."""


class TransportError(RegistryError):
    """Network, TLS or authentication failure reported by the registry transport."""
