"""Schemas for scan requests and responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from layervuln.schemas.layers import LayerVulnerability


class ScanCredentials(BaseModel):
    username: str = Field(..., min_length=1)
    password: SecretStr
    authority: str = Field(
        default="",
        description="Registry host the credentials belong to (derived from the image when empty)",
    )


class ScanCreate(BaseModel):
    image: str = Field(..., min_length=1, description="Image reference (e.g. registry.local/app:1.2)")
    credentials: ScanCredentials | None = Field(
        default=None,
        description="Registry credentials, injected only for the duration of the scan",
    )
    package_manager: str | None = Field(
        default=None,
        description="Package manager slug used to resolve package files (e.g. dpkg)",
    )
    filesystem_root: str | None = Field(
        default=None,
        description="Extracted image filesystem the package manager reads from",
    )


class ScanOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image: str
    layers: list[LayerVulnerability]
