"""Application configuration via Pydantic BaseSettings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=8000)
    app_debug: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )

    # Scanner binary and its private working area
    scanner_binary: str = Field(default="grype", description="Path or name of the grype executable")
    resources_dir: Path = Field(
        default=Path("scanner-resources"),
        description="Directory holding the scanner config artifact and vulnerability DB",
    )
    scan_timeout: int = Field(default=600, description="Scanner execution timeout in seconds")

    # Scanner config artifact defaults
    catalog_scope: Literal["UnknownScope", "Squashed", "AllLayers"] = Field(default="Squashed")
    check_for_app_update: bool = Field(default=True)
    db_update_url: str = Field(
        default="https://toolbox-data.anchore.io/grype/databases/listing.json"
    )
    db_auto_update: bool = Field(default=True)
    db_validate_by_hash_on_start: bool = Field(default=False)
    registry_insecure_skip_tls_verify: bool = Field(default=False)
    registry_insecure_use_http: bool = Field(default=False)

    # Package-file resolution
    package_remap: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Logical package name -> real dpkg package names (JSON via PACKAGE_REMAP)",
    )

    @computed_field
    @property
    def scanner_config_path(self) -> Path:
        """Location of the config artifact consumed by the scanner."""
        return self.resources_dir / ".grype" / "config.yaml"

    @computed_field
    @property
    def db_cache_dir(self) -> Path:
        return self.resources_dir / "db"


@lru_cache
def get_settings() -> Settings:
    return Settings()
