"""Schema of the scanner's YAML config artifact.

Registry credentials live in this file only while a scan that needs them is
running. They are rendered only when the file is written for the scanner
itself; any display/export rendering drops them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field


class Scope(str, Enum):
    """From which perspective the image is cataloged."""

    UNKNOWN = "UnknownScope"
    # Only content visible in the squashed filesystem (what a container sees at runtime)
    SQUASHED = "Squashed"
    ALL_LAYERS = "AllLayers"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LoggingOptions(_ConfigModel):
    structured: bool = False
    level: str = ""
    file: str = ""


class DatabaseOptions(_ConfigModel):
    cache_dir: str = Field("", alias="cache-dir")
    update_url: str = Field("", alias="update-url")
    auto_update: bool = Field(True, alias="auto-update")
    validate_by_hash_on_start: bool = Field(False, alias="validate-by-hash-on-start")


class RegistryCredentials(_ConfigModel):
    authority: str = ""
    username: str = ""
    password: str = ""
    token: str = ""

    def __repr__(self) -> str:
        return f"RegistryCredentials(authority={self.authority!r}, username=***)"

    __str__ = __repr__

    def matches(self, username: str, password: str) -> bool:
        return self.username == username and self.password == password


class RegistryOptions(_ConfigModel):
    insecure_skip_tls_verify: bool = Field(False, alias="insecure-skip-tls-verify")
    insecure_use_http: bool = Field(False, alias="insecure-use-http")
    auth: list[RegistryCredentials] = Field(default_factory=list)


_SECRET_FIELDS = {"username", "password", "token"}


class ScannerConfig(_ConfigModel):
    output: str = "json"
    output_template_file: str = Field("", alias="output-template-file")
    scope: Scope = Scope.SQUASHED
    quiet: bool = False
    log: LoggingOptions = Field(default_factory=LoggingOptions)
    db: DatabaseOptions = Field(default_factory=DatabaseOptions)
    check_for_app_update: bool = Field(True, alias="check-for-app-update")
    fail_on_severity: str = Field("", alias="fail-on-severity")
    registry: RegistryOptions = Field(default_factory=RegistryOptions)

    def to_dict(self, include_secrets: bool = False) -> dict[str, Any]:
        exclude = None
        if not include_secrets:
            exclude = {"registry": {"auth": {"__all__": _SECRET_FIELDS}}}
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)

    def to_yaml(self, include_secrets: bool = False) -> str:
        """Render as YAML; credentials are included only for the scanner's own copy."""
        return yaml.safe_dump(
            self.to_dict(include_secrets=include_secrets),
            default_flow_style=False,
            sort_keys=False,
        )

    @classmethod
    def from_yaml(cls, text: str) -> "ScannerConfig":
        return cls.model_validate(yaml.safe_load(text) or {})
