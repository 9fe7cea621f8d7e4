"""Registry-backed artifact cache client.

Maps a cache key ``(full_name, path)`` onto the registry coordinate
``<registry>/<full_name>/<path>:latest`` and stores the cached archive there
as a two-layer OCI artifact: the archive itself (content layer, media type
parameterised by its compression) and a bundled icon (metadata layer).

Blobs are pushed before the manifest that references them, so a reader sees
either the previous artifact or the complete new one.  Pushing again under
the same key replaces the tag (last write wins); there is no cross-key
transaction and no client-side retry.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from importlib import resources
from pathlib import Path

from jobcacher.bridge.oras_transport import OrasTransport, RegistryTransport
from jobcacher.core.errors import (
    InvariantViolationError,
    NoContentLayerError,
    NoLayerError,
    RegistryError,
    ResourceMissingError,
)
from jobcacher.core.media_types import (
    ARTIFACT_MEDIA_TYPE,
    FULLNAME_ANNOTATION,
    ICON_ANNOTATION,
    ICON_MEDIA_TYPE,
    TITLE_ANNOTATION,
    content_media_type,
)
from jobcacher.core.reference import build_reference
from jobcacher.models.manifest import Layer, LayerRole, Manifest
from jobcacher.models.registry import (
    ArtifactReference,
    Credentials,
    InvalidReferenceError,
    RegistryConfig,
)

logger = logging.getLogger(__name__)

ICON_RESOURCE = "resources/jobcacher-oras.png"
CONNECTION_TEST_NAME = "jenkins-oras-plugin-test"


def select_content_layer(layers: Sequence[Layer]) -> Layer:
    """Pick the layer holding the cached archive.

    A lone layer is used whatever its media type, which keeps artifacts
    pushed by other tools or older releases readable.  Otherwise the first
    content layer wins.

    Raises
    ------
    NoLayerError
        If ``layers`` is empty.
    NoContentLayerError
        If several layers exist and none is a content layer.
    """
    if not layers:
        raise NoLayerError("Artifact manifest doesn't contain any layer")
    if len(layers) == 1:
        return layers[0]
    for layer in layers:
        if layer.role is LayerRole.CONTENT:
            return layer
    raise NoContentLayerError("Artifact manifest doesn't contain any content layer")


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


@contextmanager
def _icon_path() -> Iterator[Path]:
    icon = resources.files("jobcacher").joinpath(ICON_RESOURCE)
    if not icon.is_file():
        raise ResourceMissingError(f"Image resource not found: {ICON_RESOURCE}")
    with resources.as_file(icon) as path:
        yield path


class RegistryClient:
    """Cache artifacts in an OCI registry.

    Parameters
    ----------
    config:
        Immutable connection settings.
    transport:
        Registry primitives to use.  Defaults to an ``OrasTransport`` built
        once from ``config`` and reused by every call.
    """

    def __init__(
        self,
        config: RegistryConfig,
        transport: RegistryTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport if transport is not None else OrasTransport(config)

    @classmethod
    def create(
        cls,
        registry_url: str,
        namespace: str,
        credentials: Credentials | None = None,
    ) -> RegistryClient:
        """Build a client straight from connection parameters."""
        return cls(
            RegistryConfig(
                registry_url=registry_url,
                namespace=namespace,
                credentials=credentials,
            )
        )

    @property
    def config(self) -> RegistryConfig:
        return self._config

    def reference(self, full_name: str, path: str) -> ArtifactReference:
        """Registry coordinate for the cache key ``(full_name, path)``."""
        return build_reference(self._config.hostname, full_name, path)

    # ------------------------------------------------------------------
    # Existence
    # ------------------------------------------------------------------

    def exists(self, full_name: str, path: str) -> bool:
        """Return ``True`` if a ``latest`` artifact is stored for the key.

        Best effort: any failure, including an unparseable key or an
        unreachable registry, is logged and reported as ``False``.
        """
        try:
            ref = self.reference(full_name, path)
            if "latest" not in self._transport.get_tags(ref):
                return False
            manifest = self._transport.get_manifest(ref)
        except (RegistryError, InvalidReferenceError) as exc:
            logger.debug(
                "Artifact with full name %s and path %s doesn't exist: %s",
                full_name,
                path,
                exc,
            )
            return False
        logger.debug(
            "Artifact with full name %s and path %s exists in registry at digest %s",
            full_name,
            path,
            manifest.digest,
        )
        return True

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload(self, full_name: str, path: str, source: Path) -> Manifest:
        """Push ``source`` as the ``latest`` artifact for the key.

        Returns the pushed manifest, with the digest reported by the registry.

        Raises
        ------
        ResourceMissingError
            If ``source`` or the bundled icon is missing; raised before any
            network call.
        """
        source = Path(source)
        if not source.is_file() or not os.access(source, os.R_OK):
            raise ResourceMissingError(f"Source file not found or unreadable: {source}")
        ref = self.reference(full_name, path)
        media_type = content_media_type(path)

        with _icon_path() as icon:
            content_layer = self._transport.push_blob(
                ref, source, media_type, {TITLE_ANNOTATION: source.name}
            )
            icon_layer = self._transport.push_blob(
                ref,
                icon,
                ICON_MEDIA_TYPE,
                {TITLE_ANNOTATION: icon.name, ICON_ANNOTATION: ""},
            )
        config_layer = self._transport.push_config(ref)
        manifest = self._transport.push_manifest(
            ref,
            Manifest(
                artifact_type=ARTIFACT_MEDIA_TYPE,
                annotations={FULLNAME_ANNOTATION: full_name},
                config=config_layer,
                layers=[content_layer, icon_layer],
            ),
        )
        logger.info(
            "Uploaded %s (%d bytes, %s) to %s at digest %s",
            source,
            content_layer.size,
            media_type,
            ref,
            manifest.digest,
        )
        return manifest

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    def download(self, full_name: str, path: str, target: Path) -> Path:
        """Fetch the cached archive for the key into ``target``.

        The blob is streamed into a temporary sibling of ``target`` and
        renamed over it once complete, so ``target`` is either left
        untouched or fully replaced.
        """
        target = Path(target)
        ref = self.reference(full_name, path)
        manifest = self._transport.get_manifest(ref)
        layer = select_content_layer(manifest.layers)
        if layer.role is not LayerRole.CONTENT:
            logger.warning(
                "Artifact %s has a single %s layer; using it as content",
                ref,
                layer.media_type,
            )
        if layer.digest is None:
            raise InvariantViolationError(f"Layer digest cannot be null in {ref}")

        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=".part"
        )
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            self._transport.fetch_blob(ref, layer.digest, tmp_path)
            # mkstemp creates 0600; restored files follow the umask instead
            os.chmod(tmp_path, 0o666 & ~_current_umask())
            tmp_path.replace(target)
        finally:
            tmp_path.unlink(missing_ok=True)

        logger.info("Downloaded %s (%s) from %s to %s", layer.digest, layer.media_type, ref, target)
        return target

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self, full_name: str, path: str) -> None:
        """Delete the artifact for the key; a missing artifact is an error."""
        ref = self.reference(full_name, path)
        self._transport.delete_manifest(ref)
        logger.info("Deleted %s", ref)

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------

    def test_connection(self) -> None:
        """Check the configured URL and credentials by pushing and deleting a probe.

        Every failure propagates unchanged.
        """
        ref = ArtifactReference.parse(
            f"{self._config.namespace}/{CONNECTION_TEST_NAME}:latest",
            self._config.hostname,
        )
        with tempfile.TemporaryDirectory(prefix="jobcacher-probe-") as tmp:
            probe = Path(tmp) / f"tmp-{CONNECTION_TEST_NAME}"
            probe.write_text(CONNECTION_TEST_NAME, encoding="utf-8")
            layer = self._transport.push_blob(ref, probe, "application/octet-stream")
        config_layer = self._transport.push_config(ref)
        manifest = self._transport.push_manifest(
            ref, Manifest(artifact_type=None, config=config_layer, layers=[layer])
        )
        if manifest.digest is None:
            raise InvariantViolationError(f"Registry returned no digest for {ref}")
        self._transport.delete_manifest(ref.with_digest(manifest.digest))
        logger.info("Connection test against %s succeeded", self._config.hostname)
