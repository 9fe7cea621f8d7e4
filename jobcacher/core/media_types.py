"""Media types, annotation keys and compression classification for cache artifacts.

These strings are written into registry manifests and read back by other
clients, so they must stay bit-exact.
"""

from __future__ import annotations

from pathlib import PurePosixPath

ARTIFACT_MEDIA_TYPE = "application/vnd.jenkins.jobcacher.manifest.v1+json"
CONTENT_MEDIA_TYPE_PREFIX = "application/vnd.jenkins.jobcacher.content"
CONTENT_MEDIA_TYPE = CONTENT_MEDIA_TYPE_PREFIX + ".v1.{kind}"
ICON_MEDIA_TYPE = "image/png"

OCI_MANIFEST_MEDIA_TYPE = "application/vnd.oci.image.manifest.v1+json"
EMPTY_CONFIG_MEDIA_TYPE = "application/vnd.oci.empty.v1+json"
EMPTY_CONFIG_CONTENT = b"{}"

FULLNAME_ANNOTATION = "io.jenkins.jobcacher.fullname"
ICON_ANNOTATION = "io.goharbor.artifact.v1alpha1.icon"
TITLE_ANNOTATION = "org.opencontainers.image.title"

DEFAULT_COMPRESSION = "tar"

# Last filename extension (lowercase, no dot) -> compression kind
COMPRESSION_KINDS: dict[str, str] = {
    "tar": "tar",
    "zip": "zip",
    "gz": "tar+gzip",
    "zst": "tar+zstd",
}


def compression_kind(path: str) -> str:
    """Classify an archive path by its last extension.

    Unknown or missing extensions fall back to ``"tar"``.

    >>> compression_kind("report.tar.gz")
    'tar+gzip'
    >>> compression_kind("cache")
    'tar'
    """
    suffix = PurePosixPath(path).suffix.lower().lstrip(".")
    return COMPRESSION_KINDS.get(suffix, DEFAULT_COMPRESSION)


def content_media_type(path: str) -> str:
    """Content layer media type for the archive at ``path``."""
    return CONTENT_MEDIA_TYPE.format(kind=compression_kind(path))


def is_content_media_type(media_type: str) -> bool:
    return media_type.startswith(CONTENT_MEDIA_TYPE_PREFIX)
