"""Typed model of the grype JSON report.

Everything the scanner emits is decoded into frozen pydantic models at the
boundary. ``source.target`` stays loosely typed because grype emits a plain
string for directory scans and an object for images; the image form is
validated on demand by :meth:`ScanReport.image_target`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from layervuln.core.exceptions import MalformedReportError


class _ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        """Read ``null`` as the field default wherever the default is built by a factory.

        grype is written in Go, which encodes nil slices as ``null``.
        """
        if value is not None or info.field_name is None:
            return value
        field = cls.model_fields[info.field_name]
        if field.default_factory is None:
            return value
        return field.get_default(call_default_factory=True)


class PackageType(str, Enum):
    APK = "apk"
    GEM = "gem"
    DEB = "deb"
    RPM = "rpm"
    NPM = "npm"
    PYTHON = "python"
    JAVA_ARCHIVE = "java-archive"
    JENKINS_PLUGIN = "jenkins-plugin"
    GO_MODULE = "go-module"
    RUST_CRATE = "rust-crate"
    MSRC_KB = "msrc-kb"
    UNKNOWN = "unknown"


# ── Vulnerability ────────────────────────────────────────────────────────────


class CvssMetrics(_ReportModel):
    base_score: float = Field(0.0, alias="baseScore")
    exploitability_score: float | None = Field(None, alias="exploitabilityScore")
    impact_score: float | None = Field(None, alias="impactScore")


class Cvss(_ReportModel):
    version: str = ""
    vector: str = ""
    metrics: CvssMetrics = Field(default_factory=CvssMetrics)
    vendor_metadata: Any = Field(None, alias="vendorMetadata")


class Fix(_ReportModel):
    versions: list[str] = Field(default_factory=list)
    state: str = ""


class Advisory(_ReportModel):
    id: str = ""
    link: str = ""


class VulnerabilityMetadata(_ReportModel):
    id: StrictStr
    data_source: str = Field("", alias="dataSource")
    namespace: str = ""
    severity: str = ""
    urls: list[str] = Field(default_factory=list)
    description: str = ""
    cvss: list[Cvss] = Field(default_factory=list)


class Vulnerability(VulnerabilityMetadata):
    fix: Fix = Field(default_factory=Fix)
    advisories: list[Advisory] = Field(default_factory=list)


# ── Artifact ─────────────────────────────────────────────────────────────────


class Location(_ReportModel):
    real_path: str = Field("", alias="path")
    # Layer digest for image scans; absent for directory scans
    filesystem_layer_id: str | None = Field(None, alias="layerID")


class PackageRef(_ReportModel):
    name: StrictStr
    version: str = ""
    type: PackageType = PackageType.UNKNOWN
    locations: list[Location] = Field(default_factory=list)
    language: str = ""
    licenses: list[Any] = Field(default_factory=list)
    cpes: list[str] = Field(default_factory=list)
    purl: str = ""
    metadata: Any = None

    @field_validator("type", mode="before")
    @classmethod
    def _unknown_type(cls, value: Any) -> Any:
        """Map package types this model does not know about to ``unknown``."""
        try:
            return PackageType(value)
        except ValueError:
            return PackageType.UNKNOWN


# ── Match details ────────────────────────────────────────────────────────────


class SearchedPackage(_ReportModel):
    name: str | None = None
    version: str | None = None


class SearchedBy(_ReportModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    package: SearchedPackage | None = None
    namespace: str | None = None
    distro: dict[str, Any] | None = None


class MatchDetail(_ReportModel):
    type: str = ""
    matcher: str = ""
    searched_by: SearchedBy | None = Field(None, alias="searchedBy")
    found: Any = None

    @property
    def package_name(self) -> str | None:
        if self.searched_by is None or self.searched_by.package is None:
            return None
        return self.searched_by.package.name or None


class Match(_ReportModel):
    vulnerability: Vulnerability
    related_vulnerabilities: list[VulnerabilityMetadata] = Field(
        default_factory=list, alias="relatedVulnerabilities"
    )
    match_details: list[MatchDetail] = Field(default_factory=list, alias="matchDetails")
    artifact: PackageRef

    @property
    def fix_versions(self) -> list[str]:
        return self.vulnerability.fix.versions

    @property
    def fix_state(self) -> str:
        return self.vulnerability.fix.state

    @property
    def related_descriptions(self) -> list[str]:
        return [related.description for related in self.related_vulnerabilities]

    def layer_ids(self) -> set[str]:
        """Digests of every layer this match's artifact was observed in."""
        return {
            loc.filesystem_layer_id
            for loc in self.artifact.locations
            if loc.filesystem_layer_id
        }


# ── Source / target ──────────────────────────────────────────────────────────


class LayerDescriptor(_ReportModel):
    digest: StrictStr
    media_type: str = Field("", alias="mediaType")
    size: int = Field(0, ge=0)


class ImageTarget(_ReportModel):
    user_input: StrictStr = Field(..., alias="userInput")
    manifest_digest: StrictStr = Field(..., alias="manifestDigest")
    image_id: str = Field("", alias="imageID")
    media_type: str = Field("", alias="mediaType")
    tags: list[str] | None = None
    image_size: int = Field(0, alias="imageSize")
    layers: list[LayerDescriptor]
    repo_digests: list[str] | None = Field(None, alias="repoDigests")


class Source(_ReportModel):
    type: str = ""
    target: Any = None


class Distribution(_ReportModel):
    name: str = ""
    version: str = ""
    id_like: Any = Field(None, alias="idLike")


class Descriptor(_ReportModel):
    name: str = ""
    version: str = ""
    configuration: Any = None
    db: Any = None


class ScanReport(_ReportModel):
    matches: list[Match] = Field(default_factory=list)
    source: Source | None = None
    distro: Distribution = Field(default_factory=Distribution)
    descriptor: Descriptor = Field(default_factory=Descriptor)

    def image_target(self) -> ImageTarget | None:
        """Return the validated image target, or None when the report has no source.

        Raises:
            MalformedReportError: the target is not a well-formed image target.
        """
        if self.source is None:
            return None
        if not isinstance(self.source.target, dict):
            raise MalformedReportError(
                f"source.target must be an object for layer attribution, "
                f"got {type(self.source.target).__name__}"
            )
        try:
            return ImageTarget.model_validate(self.source.target)
        except ValidationError as exc:
            raise MalformedReportError(f"Invalid image target: {_summarize(exc)}") from exc


def decode_report(raw: bytes | str) -> ScanReport:
    """Decode the scanner's JSON output into a :class:`ScanReport`.

    Raises:
        MalformedReportError: payload is not JSON or does not match the report shape.
    """
    try:
        return ScanReport.model_validate_json(raw)
    except ValidationError as exc:
        raise MalformedReportError(f"Invalid scan report: {_summarize(exc)}") from exc


def _summarize(exc: ValidationError) -> str:
    errors = exc.errors()
    first = errors[0]
    loc = ".".join(str(part) for part in first["loc"]) or "<root>"
    more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
    return f"{loc}: {first['msg']}{more}"
