"""Registry transport bridge — wraps the oras-py ``OrasClient``.

Bridge boundary
---------------
``oras.client.OrasClient`` speaks the OCI distribution API (HTTP, TLS, token
and basic auth, chunked uploads).  This module hides it behind the
``RegistryTransport`` protocol so that ``RegistryClient`` depends only on a
handful of push/pull/delete primitives expressed in Jobcacher models.

Every oras or ``requests`` failure is translated into the Jobcacher error
taxonomy: HTTP 404 and "manifest unknown"-style replies become
``ArtifactNotFoundError``, everything else becomes ``TransportError``.  The
original exception is always chained.
"""

from __future__ import annotations

import hashlib
import logging
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import oras.container
import requests
from oras.client import OrasClient

from jobcacher.core.errors import ArtifactNotFoundError, RegistryError, TransportError
from jobcacher.core.media_types import (
    EMPTY_CONFIG_CONTENT,
    EMPTY_CONFIG_MEDIA_TYPE,
    OCI_MANIFEST_MEDIA_TYPE,
)
from jobcacher.models.manifest import Layer, Manifest
from jobcacher.models.registry import ArtifactReference, RegistryConfig

logger = logging.getLogger(__name__)

_NOT_FOUND_MARKERS = ("not found", "manifest unknown", "name unknown", "blob unknown")
_PUSH_OK = (200, 201, 202)
_CHUNK_SIZE = 1024 * 1024


@runtime_checkable
class RegistryTransport(Protocol):
    """The registry primitives ``RegistryClient`` is built on.

    Implementations must be safe to share between concurrent callers: each
    method is a self-contained request/response exchange.
    """

    def get_tags(self, ref: ArtifactReference) -> list[str]:
        """List the tags of ``ref.repository``."""
        ...

    def get_manifest(self, ref: ArtifactReference) -> Manifest:
        """Fetch the manifest ``ref`` resolves to, including its digest."""
        ...

    def push_blob(
        self,
        ref: ArtifactReference,
        source: Path,
        media_type: str,
        annotations: dict[str, str] | None = None,
    ) -> Layer:
        """Upload ``source`` as a blob of ``ref.repository``; return its descriptor."""
        ...

    def push_config(self, ref: ArtifactReference) -> Layer:
        """Upload the empty ``{}`` config blob; return its descriptor."""
        ...

    def push_manifest(self, ref: ArtifactReference, manifest: Manifest) -> Manifest:
        """Tag ``manifest`` as ``ref``; return it with the registry digest set."""
        ...

    def fetch_blob(self, ref: ArtifactReference, digest: str, target: Path) -> None:
        """Stream blob ``digest`` of ``ref.repository`` into ``target``."""
        ...

    def delete_manifest(self, ref: ArtifactReference) -> None:
        """Delete the manifest ``ref`` resolves to (by tag or digest)."""
        ...


def file_digest(path: Path) -> str:
    """Return the ``sha256:<hex>`` digest of a file, read in chunks."""
    hasher = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return f"sha256:{hasher.hexdigest()}"


def _looks_not_found(exc: Exception) -> bool:
    response = getattr(exc, "response", None)
    if isinstance(response, requests.Response) and response.status_code == 404:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _NOT_FOUND_MARKERS)


def _check_response(response: requests.Response, action: str, ref: ArtifactReference) -> None:
    if response.status_code == 404:
        raise ArtifactNotFoundError(str(ref), f"{action}: HTTP 404")
    if response.status_code not in _PUSH_OK:
        raise TransportError(
            f"Failed to {action} {ref}: HTTP {response.status_code} {response.reason}"
        )


class OrasTransport:
    """``RegistryTransport`` implementation backed by oras-py.

    Parameters
    ----------
    config:
        Connection settings.  Anonymous configs build a token-auth client,
        authenticated configs log in with HTTP basic auth.
    client:
        A pre-built ``OrasClient``; mainly for tests.  When given, ``config``
        is used only to label log messages.
    """

    def __init__(
        self,
        config: RegistryConfig,
        *,
        client: OrasClient | None = None,
    ) -> None:
        self._config = config
        self._client = client if client is not None else self._build_client(config)

    @staticmethod
    def _build_client(config: RegistryConfig) -> OrasClient:
        if config.credentials is None:
            logger.debug(
                "OrasTransport: anonymous client for %s (insecure=%s).",
                config.hostname,
                config.is_insecure,
            )
            return OrasClient(hostname=config.hostname, insecure=config.is_insecure)

        client = OrasClient(
            hostname=config.hostname,
            insecure=config.is_insecure,
            auth_backend="basic",
        )
        try:
            client.login(
                hostname=config.hostname,
                username=config.credentials.username,
                password=config.credentials.password.get_secret_value(),
            )
        except Exception as exc:
            raise TransportError(
                f"Failed to authenticate with registry {config.hostname}: {exc}"
            ) from exc
        logger.debug(
            "OrasTransport: basic-auth client for %s as %s.",
            config.hostname,
            config.credentials.username,
        )
        return client

    @property
    def config(self) -> RegistryConfig:
        return self._config

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _container(ref: ArtifactReference) -> oras.container.Container:
        # Full URI pins the host; oras reads a dotted first segment as a registry.
        return oras.container.Container(ref.uri, registry=ref.registry)

    def _manifest_url(self, container: oras.container.Container, target: str) -> str:
        return f"{self._client.prefix}://{container.manifest_url(target)}"

    @contextmanager
    def _translate_errors(self, action: str, ref: ArtifactReference) -> Iterator[None]:
        try:
            yield
        except RegistryError:
            raise
        except (requests.RequestException, ValueError, RuntimeError) as exc:
            if _looks_not_found(exc):
                raise ArtifactNotFoundError(str(ref), str(exc)) from exc
            raise TransportError(f"Failed to {action} {ref}: {exc}") from exc

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_tags(self, ref: ArtifactReference) -> list[str]:
        with self._translate_errors("list tags of", ref):
            tags = self._client.get_tags(self._container(ref))
        return list(tags or [])

    def get_manifest(self, ref: ArtifactReference) -> Manifest:
        with self._translate_errors("get manifest", ref):
            container = self._container(ref)
            data: dict[str, Any] = self._client.get_manifest(container)
            response = self._client.do_request(
                self._manifest_url(container, ref.target),
                "HEAD",
                headers={"Accept": data.get("mediaType", OCI_MANIFEST_MEDIA_TYPE)},
            )
        return Manifest.from_oci(data, digest=response.headers.get("Docker-Content-Digest"))

    def fetch_blob(self, ref: ArtifactReference, digest: str, target: Path) -> None:
        with self._translate_errors("fetch blob from", ref):
            self._client.download_blob(self._container(ref), digest, str(target))
        logger.debug("OrasTransport: fetched %s from %s into %s.", digest, ref, target)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def push_blob(
        self,
        ref: ArtifactReference,
        source: Path,
        media_type: str,
        annotations: dict[str, str] | None = None,
    ) -> Layer:
        layer = Layer(
            media_type=media_type,
            digest=file_digest(source),
            size=source.stat().st_size,
            annotations=dict(annotations or {}),
        )
        with self._translate_errors("push blob to", ref):
            response = self._client.upload_blob(
                str(source), self._container(ref), layer.to_oci()
            )
        _check_response(response, "push blob to", ref)
        logger.debug(
            "OrasTransport: pushed blob %s (%d bytes, %s) to %s.",
            layer.digest,
            layer.size,
            media_type,
            ref,
        )
        return layer

    def push_config(self, ref: ArtifactReference) -> Layer:
        with tempfile.TemporaryDirectory(prefix="jobcacher-config-") as tmp:
            config_file = Path(tmp) / "config.json"
            config_file.write_bytes(EMPTY_CONFIG_CONTENT)
            return self.push_blob(ref, config_file, EMPTY_CONFIG_MEDIA_TYPE)

    def push_manifest(self, ref: ArtifactReference, manifest: Manifest) -> Manifest:
        with self._translate_errors("push manifest to", ref):
            response = self._client.upload_manifest(manifest.to_oci(), self._container(ref))
        _check_response(response, "push manifest to", ref)
        digest = response.headers.get("Docker-Content-Digest")
        logger.debug("OrasTransport: pushed manifest %s as %s.", digest, ref)
        return manifest.with_digest(digest)

    def delete_manifest(self, ref: ArtifactReference) -> None:
        with self._translate_errors("delete manifest", ref):
            deleted = self._client.delete_tag(self._container(ref), ref.target)
        if not deleted:
            raise ArtifactNotFoundError(str(ref), "no manifest to delete")
