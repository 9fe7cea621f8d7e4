"""Jobcacher: a build-archive cache stored in an OCI registry.

Each cache entry ``(full_name, path)`` is one tagged registry artifact:
  - ``<registry>/<full_name>/<path>:latest`` coordinate, always tag ``latest``
  - content layer typed by compression (tar, zip, tar+gzip, tar+zstd)
  - bundled icon layer for registry UIs
  - best-effort existence probe, atomic download-then-rename
  - push/delete connection test before first use
"""

__version__ = "0.1.0"
__description__ = "Build-archive cache backed by an OCI registry"

from jobcacher.core.registry_client import RegistryClient
from jobcacher.models.registry import Credentials, RegistryConfig

__all__ = ["RegistryClient", "RegistryConfig", "Credentials", "__version__"]
