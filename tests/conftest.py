"""Shared test fixtures for Jobcacher."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable
from pathlib import Path

import pytest

from jobcacher.core.errors import ArtifactNotFoundError
from jobcacher.core.media_types import EMPTY_CONFIG_CONTENT, EMPTY_CONFIG_MEDIA_TYPE
from jobcacher.core.registry_client import RegistryClient
from jobcacher.models.manifest import Layer, Manifest
from jobcacher.models.registry import ArtifactReference, Credentials, RegistryConfig

REGISTRY_HOST = "registry.example.com"


def sha256_digest(data: bytes) -> str:
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


class FakeRegistryTransport:
    """In-memory ``RegistryTransport`` with registry-like tag/manifest/blob semantics.

    ``fail_with`` maps a method name to an exception raised on its next calls.
    ``calls`` records method names in order.
    """

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.manifests: dict[str, Manifest] = {}
        self.tags: dict[str, dict[str, str]] = {}
        self.calls: list[str] = []
        self.fail_with: dict[str, Exception] = {}

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        if method in self.fail_with:
            raise self.fail_with[method]

    def _resolve(self, ref: ArtifactReference) -> str:
        if ref.digest is not None:
            if ref.digest in self.manifests:
                return ref.digest
        else:
            digest = self.tags.get(ref.repository, {}).get(ref.tag)
            if digest is not None:
                return digest
        raise ArtifactNotFoundError(str(ref), "manifest unknown")

    # -- RegistryTransport ------------------------------------------------

    def get_tags(self, ref: ArtifactReference) -> list[str]:
        self._enter("get_tags")
        if ref.repository not in self.tags:
            raise ArtifactNotFoundError(str(ref), "name unknown")
        return list(self.tags[ref.repository])

    def get_manifest(self, ref: ArtifactReference) -> Manifest:
        self._enter("get_manifest")
        return self.manifests[self._resolve(ref)]

    def push_blob(
        self,
        ref: ArtifactReference,
        source: Path,
        media_type: str,
        annotations: dict[str, str] | None = None,
    ) -> Layer:
        self._enter("push_blob")
        data = source.read_bytes()
        digest = sha256_digest(data)
        self.blobs[digest] = data
        return Layer(
            media_type=media_type,
            digest=digest,
            size=len(data),
            annotations=dict(annotations or {}),
        )

    def push_config(self, ref: ArtifactReference) -> Layer:
        self._enter("push_config")
        digest = sha256_digest(EMPTY_CONFIG_CONTENT)
        self.blobs[digest] = EMPTY_CONFIG_CONTENT
        return Layer(
            media_type=EMPTY_CONFIG_MEDIA_TYPE,
            digest=digest,
            size=len(EMPTY_CONFIG_CONTENT),
        )

    def push_manifest(self, ref: ArtifactReference, manifest: Manifest) -> Manifest:
        self._enter("push_manifest")
        for layer in manifest.layers:
            if layer.digest not in self.blobs:
                raise ArtifactNotFoundError(str(ref), f"blob unknown {layer.digest}")
        return self.store_manifest(ref.repository, manifest, ref.tag)

    def fetch_blob(self, ref: ArtifactReference, digest: str, target: Path) -> None:
        self._enter("fetch_blob")
        if digest not in self.blobs:
            raise ArtifactNotFoundError(str(ref), f"blob unknown {digest}")
        target.write_bytes(self.blobs[digest])

    def delete_manifest(self, ref: ArtifactReference) -> None:
        self._enter("delete_manifest")
        digest = self._resolve(ref)
        del self.manifests[digest]
        for tags in self.tags.values():
            for tag in [t for t, d in tags.items() if d == digest]:
                del tags[tag]

    # -- Test helpers -----------------------------------------------------

    def store_manifest(self, repository: str, manifest: Manifest, tag: str = "latest") -> Manifest:
        """Tag ``manifest`` directly, bypassing blob checks (for foreign artifacts)."""
        payload = json.dumps(manifest.to_oci(), sort_keys=True).encode("utf-8")
        stored = manifest.with_digest(sha256_digest(payload))
        self.manifests[stored.digest] = stored
        self.tags.setdefault(repository, {})[tag] = stored.digest
        return stored

    def store_blob(self, data: bytes) -> str:
        digest = sha256_digest(data)
        self.blobs[digest] = data
        return digest


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def transport() -> FakeRegistryTransport:
    """Provide an empty in-memory registry."""
    return FakeRegistryTransport()


@pytest.fixture
def registry_config() -> RegistryConfig:
    """Provide an authenticated config for the fake registry host."""
    return RegistryConfig(
        registry_url=f"https://{REGISTRY_HOST}",
        namespace="ci-cache",
        credentials=Credentials(username="robot", password="s3cret"),
    )


@pytest.fixture
def client(registry_config: RegistryConfig, transport: FakeRegistryTransport) -> RegistryClient:
    """Provide a RegistryClient wired to the in-memory registry."""
    return RegistryClient(registry_config, transport=transport)


@pytest.fixture
def make_archive(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: write a local archive file with the given bytes."""

    def _factory(name: str = "cache.tar.gz", content: bytes = b"\x1f\x8b archive bytes") -> Path:
        path = tmp_dir / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _factory
