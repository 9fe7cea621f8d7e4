"""Registry connection and artifact coordinate models."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, SecretStr

# <repository>[:<tag>][@<digest>], repository segments separated by "/"
_REFERENCE_RE = re.compile(
    r"^(?P<repository>[^:@/\s]+(?:/[^:@/\s]+)*)"
    r"(?::(?P<tag>[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}))?"
    r"(?:@(?P<digest>[A-Za-z0-9_+.-]+:[A-Fa-f0-9]{32,}))?$"
)

DEFAULT_TAG = "latest"


class InvalidReferenceError(ValueError):
    """Raised when a reference string cannot be parsed into a coordinate."""


class Credentials(BaseModel):
    """Username/password pair for registry basic auth."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: SecretStr


class RegistryConfig(BaseModel):
    """Immutable connection settings for one ``RegistryClient``.

    ``credentials=None`` selects anonymous access.  ``insecure=None`` derives
    the transport mode: anonymous clients talk plain HTTP without TLS
    verification, authenticated clients use HTTPS.  An explicit ``http://``
    scheme on ``registry_url`` always forces insecure mode.
    """

    model_config = ConfigDict(frozen=True)

    registry_url: str
    namespace: str
    credentials: Credentials | None = None
    insecure: bool | None = None

    @property
    def hostname(self) -> str:
        """Registry host (and port) without scheme or trailing slash."""
        host = self.registry_url.strip()
        for scheme in ("https://", "http://"):
            if host.lower().startswith(scheme):
                host = host[len(scheme):]
                break
        return host.rstrip("/")

    @property
    def is_insecure(self) -> bool:
        if self.registry_url.strip().lower().startswith("http://"):
            return True
        if self.insecure is not None:
            return self.insecure
        return self.credentials is None


class ArtifactReference(BaseModel):
    """A (repository, tag) coordinate resolved against a registry host."""

    model_config = ConfigDict(frozen=True)

    registry: str
    repository: str
    tag: str = DEFAULT_TAG
    digest: str | None = None

    @classmethod
    def parse(cls, reference: str, registry: str) -> ArtifactReference:
        """Parse ``<repository>[:<tag>][@<digest>]`` for ``registry``.

        Raises
        ------
        InvalidReferenceError
            If the string is not a well-formed reference.
        """
        match = _REFERENCE_RE.match(reference)
        if match is None:
            raise InvalidReferenceError(f"Invalid artifact reference: {reference!r}")
        return cls(
            registry=registry,
            repository=match.group("repository"),
            tag=match.group("tag") or DEFAULT_TAG,
            digest=match.group("digest"),
        )

    @property
    def target(self) -> str:
        """The tag or digest the registry resolves this coordinate by."""
        return self.digest or self.tag

    @property
    def name(self) -> str:
        """Repository-relative reference, ``<repository>:<tag>`` or ``@<digest>``."""
        if self.digest:
            return f"{self.repository}@{self.digest}"
        return f"{self.repository}:{self.tag}"

    @property
    def uri(self) -> str:
        return f"{self.registry}/{self.name}"

    def with_digest(self, digest: str) -> ArtifactReference:
        """Return the same repository addressed by content digest."""
        return self.model_copy(update={"digest": digest})

    def __str__(self) -> str:
        return self.uri
