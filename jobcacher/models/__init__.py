"""Jobcacher data models — all Pydantic v2, all frozen (immutable)."""

from jobcacher.models.manifest import Layer, LayerRole, Manifest
from jobcacher.models.registry import (
    DEFAULT_TAG,
    ArtifactReference,
    Credentials,
    InvalidReferenceError,
    RegistryConfig,
)

__all__ = [
    # registry
    "DEFAULT_TAG",
    "ArtifactReference",
    "Credentials",
    "InvalidReferenceError",
    "RegistryConfig",
    # manifest
    "Layer",
    "LayerRole",
    "Manifest",
]
