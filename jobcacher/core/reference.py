"""Reference builder — maps a cache key onto a registry coordinate."""

from __future__ import annotations

from jobcacher.models.registry import DEFAULT_TAG, ArtifactReference


def build_reference(registry: str, full_name: str, path: str) -> ArtifactReference:
    """Return ``<registry>/<full_name>/<path>:latest``.

    Both parts are used verbatim; malformed input raises
    ``InvalidReferenceError`` from the reference parser.
    """
    return ArtifactReference.parse(f"{full_name}/{path}:{DEFAULT_TAG}", registry)
