"""Schemas for the layer-attributed vulnerability model handed to downstream consumers.

Field aliases are the wire names consumers already read; serialize with
``by_alias=True``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FixRecord(_WireModel):
    # Carries the scanner's fix state token (fixed, not-fixed, wont-fix, ...)
    name: str = ""
    image_tag: str = Field("", alias="imageTag")
    version: str = ""


class VulnerabilityRecord(_WireModel):
    name: str
    image_hash: str = Field("", alias="imageHash")
    image_tag: str = Field("", alias="imageTag")
    package_name: str = Field("", alias="packageName")
    package_version: str = Field("", alias="packageVersion")
    link: str = ""
    description: str = ""
    severity: str = ""
    fixes: list[FixRecord] = Field(default_factory=list, alias="fixedIn")


class FileEntry(_WireModel):
    filename: str = Field(..., alias="name")


class ResolvedPackage(_WireModel):
    package_name: str = Field(..., alias="packageName")
    package_version: str = Field("", alias="packageVersion")
    files: list[FileEntry] = Field(default_factory=list)

    @classmethod
    def from_file_list(cls, name: str, files: list[str], version: str = "") -> "ResolvedPackage":
        return cls(
            package_name=name,
            package_version=version,
            files=[FileEntry(filename=f) for f in files],
        )


class LayerVulnerability(_WireModel):
    layer_hash: str = Field(..., alias="layerHash")
    parent_layer_hash: str = Field("", alias="parentLayerHash")
    vulnerabilities: list[VulnerabilityRecord] = Field(default_factory=list)
    packages: list[ResolvedPackage] = Field(default_factory=list, alias="packageToFile")


def dump_layers(layers: list[LayerVulnerability]) -> list[dict]:
    """Serialize a layer chain using the wire field names."""
    return [layer.model_dump(by_alias=True) for layer in layers]
