"""CodePruner configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "api_key": "insecure-admin-key-change-me",
    "super_admin_key": "insecure-super-admin-key-change-me",
}


class PrunerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CODEPRUNER_")

    environment: str = "development"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/codepruner.db"

    # API
    api_title: str = "CodePruner"
    api_version: str = "0.1.0"
    api_key: str = "insecure-admin-key-change-me"
    super_admin_key: str = "insecure-super-admin-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    # Ingestion
    writer_queue_size: int = 10_000

    # Maintenance
    maintenance_enabled: bool = True
    maintenance_cron: str = "0 2 * * *"  # daily, 02:00 UTC

    # Probe
    probe_endpoint: str = "http://localhost:8080/track"
    probe_timeout: float = 5.0
    probe_excluded_routes: list[str] = ["/health", "/metrics", "/healthz", "/readyz"]

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"CODEPRUNER_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}."
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default keys, set CODEPRUNER_API_KEY and "
                "CODEPRUNER_SUPER_ADMIN_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> PrunerSettings:
    settings = PrunerSettings()
    settings.validate_for_production()
    return settings
