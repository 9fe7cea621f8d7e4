"""Environment-driven settings for the Jobcacher registry cache.

Reads ``JOBCACHER_*`` environment variables and an optional ``.env`` file
through pydantic-settings.
"""

from __future__ import annotations

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from jobcacher.models.registry import Credentials, RegistryConfig


class CacheSettings(BaseSettings):
    """Registry cache settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export JOBCACHER_REGISTRY_URL=registry.example.com
        export JOBCACHER_NAMESPACE=ci-cache
        export JOBCACHER_USERNAME=robot
        export JOBCACHER_PASSWORD=s3cret

    Leave ``USERNAME``/``PASSWORD`` unset for anonymous access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="JOBCACHER_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    registry_url: str = "localhost:5000"
    namespace: str = "jobcacher"
    username: str | None = None
    password: SecretStr | None = None
    insecure: bool | None = None

    log_level: str = "WARNING"

    @property
    def credentials(self) -> Credentials | None:
        """Basic-auth credentials, only when both parts are configured."""
        if not self.username or self.password is None or not self.password.get_secret_value():
            return None
        return Credentials(username=self.username, password=self.password)

    def to_registry_config(self) -> RegistryConfig:
        return RegistryConfig(
            registry_url=self.registry_url,
            namespace=self.namespace,
            credentials=self.credentials,
            insecure=self.insecure,
        )
