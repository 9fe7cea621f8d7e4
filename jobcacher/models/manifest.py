"""OCI manifest and layer models for cache artifacts.

A cache artifact is one image manifest whose layers carry the cached archive
(the *content* layer) plus an auxiliary icon (a *metadata* layer).  Layers
produced by other tools, or by older releases that pushed a single layer, are
still readable: the role is derived from the media type rather than stored.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from jobcacher.core.media_types import (
    ARTIFACT_MEDIA_TYPE,
    OCI_MANIFEST_MEDIA_TYPE,
    TITLE_ANNOTATION,
    is_content_media_type,
)


class LayerRole(str, Enum):
    """What a layer holds within a cache artifact."""

    CONTENT = "content"
    METADATA = "metadata"


class Layer(BaseModel):
    """One content-addressed blob referenced by a manifest (or its config)."""

    model_config = ConfigDict(frozen=True)

    media_type: str
    digest: str | None = None
    size: int = 0
    annotations: dict[str, str] = Field(default_factory=dict)

    @property
    def role(self) -> LayerRole:
        if is_content_media_type(self.media_type):
            return LayerRole.CONTENT
        return LayerRole.METADATA

    @property
    def title(self) -> str | None:
        return self.annotations.get(TITLE_ANNOTATION)

    @classmethod
    def from_oci(cls, data: dict[str, Any]) -> Layer:
        return cls(
            media_type=data.get("mediaType", ""),
            digest=data.get("digest"),
            size=int(data.get("size", 0)),
            annotations=dict(data.get("annotations") or {}),
        )

    def to_oci(self) -> dict[str, Any]:
        descriptor: dict[str, Any] = {
            "mediaType": self.media_type,
            "digest": self.digest,
            "size": self.size,
        }
        if self.annotations:
            descriptor["annotations"] = dict(self.annotations)
        return descriptor


class Manifest(BaseModel):
    """Top-level descriptor binding config, layers and annotations to a tag.

    ``digest`` is the registry-reported digest of the manifest itself; it is
    ``None`` until the manifest has been pushed or fetched.
    """

    model_config = ConfigDict(frozen=True)

    media_type: str = OCI_MANIFEST_MEDIA_TYPE
    artifact_type: str | None = ARTIFACT_MEDIA_TYPE
    annotations: dict[str, str] = Field(default_factory=dict)
    config: Layer | None = None
    layers: list[Layer] = Field(default_factory=list)
    digest: str | None = None

    @classmethod
    def from_oci(cls, data: dict[str, Any], digest: str | None = None) -> Manifest:
        """Build a manifest from decoded OCI image-manifest JSON."""
        config = data.get("config")
        return cls(
            media_type=data.get("mediaType", OCI_MANIFEST_MEDIA_TYPE),
            artifact_type=data.get("artifactType"),
            annotations=dict(data.get("annotations") or {}),
            config=Layer.from_oci(config) if config else None,
            layers=[Layer.from_oci(layer) for layer in data.get("layers") or []],
            digest=digest,
        )

    def to_oci(self) -> dict[str, Any]:
        """Encode as OCI image-manifest JSON (schema version 2)."""
        data: dict[str, Any] = {
            "schemaVersion": 2,
            "mediaType": self.media_type,
        }
        if self.artifact_type:
            data["artifactType"] = self.artifact_type
        if self.config is not None:
            data["config"] = self.config.to_oci()
        data["layers"] = [layer.to_oci() for layer in self.layers]
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        return data

    def with_digest(self, digest: str | None) -> Manifest:
        return self.model_copy(update={"digest": digest})
