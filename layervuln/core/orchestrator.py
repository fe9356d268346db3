"""Scan orchestration — scanner invocation, decoding, attribution and enrichment."""

from __future__ import annotations

from collections.abc import Mapping

from layervuln.core.attribution import attribute
from layervuln.core.config import Settings, get_settings
from layervuln.core.config_guard import CredentialConfigGuard
from layervuln.core.logging import get_logger
from layervuln.core.resolver import PackageFileResolver, matches_in_layer, resolve_package_files
from layervuln.core.scanner import GrypeScanner
from layervuln.package_managers.base import BasePackageManager
from layervuln.schemas.layers import LayerVulnerability, ResolvedPackage
from layervuln.schemas.report import ScanReport, decode_report
from layervuln.schemas.scan import ScanCredentials

logger = get_logger(__name__)


def extract_registry(image: str) -> str:
    """Registry host of an image reference (docker.io when none is given)."""
    parts = image.split("/")
    if len(parts) == 1:
        return "docker.io"
    first = parts[0]
    if "." in first or ":" in first or first == "localhost":
        return first
    return "docker.io"


class ScanOrchestrator:
    """Runs one scan end to end.

    The orchestrator owns no state between scans apart from the config guard,
    which must be shared by every orchestrator writing to the same config
    artifact.
    """

    def __init__(
        self,
        scanner: GrypeScanner,
        guard: CredentialConfigGuard,
        remap: Mapping[str, list[str]] | None = None,
    ) -> None:
        self.scanner = scanner
        self.guard = guard
        self.remap: Mapping[str, list[str]] = remap or {}

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ScanOrchestrator":
        settings = settings or get_settings()
        guard = CredentialConfigGuard.from_settings(settings)
        scanner = GrypeScanner(
            binary=settings.scanner_binary,
            config_path=guard.config_path,
            timeout=settings.scan_timeout,
        )
        return cls(scanner, guard, remap=settings.package_remap)

    def fetch_report(self, image: str, credentials: ScanCredentials | None = None) -> ScanReport:
        """Invoke the scanner (credential-scoped when *credentials* are given) and decode its output.

        Raises:
            ExecutionError: the scanner failed.
            ConfigIOError: the config artifact could not be prepared or cleaned up.
            MalformedReportError: the scanner output is not a valid report.
        """
        self.guard.ensure_config()

        if credentials is None:
            raw = self.scanner.scan(image)
        else:
            authority = credentials.authority or extract_registry(image)
            raw = self.guard.with_credentials(
                credentials.username,
                credentials.password.get_secret_value(),
                lambda: self.scanner.scan(image),
                authority=authority,
            )

        return decode_report(raw)

    def run_scan(
        self,
        image: str,
        credentials: ScanCredentials | None = None,
        package_manager: BasePackageManager | None = None,
    ) -> list[LayerVulnerability]:
        """Scan *image* and return its layer chain with attributed vulnerabilities.

        When *package_manager* is given, each layer's matched packages are
        enriched with their file lists.
        """
        logger.info("Scan requested", image=image, authenticated=credentials is not None)
        report = self.fetch_report(image, credentials)
        layers = attribute(report)

        if package_manager is not None:
            self.enrich(layers, report, package_manager)

        logger.info(
            "Scan complete",
            image=image,
            layers=len(layers),
            vulnerabilities=sum(len(layer.vulnerabilities) for layer in layers),
        )
        return layers

    def enrich(
        self,
        layers: list[LayerVulnerability],
        report: ScanReport,
        manager: BasePackageManager,
    ) -> None:
        """Attach resolved package files to every layer; one resolver (cache) per scan."""
        resolver = PackageFileResolver(manager, self.remap)
        for layer in layers:
            resolved = resolver.resolve_files(matches_in_layer(report, layer.layer_hash))
            layer.packages = list(resolved.values())
        if resolver.unresolved:
            logger.warning("Unresolved packages", count=len(resolver.unresolved))

    def resolve_package_files(
        self,
        layer: str,
        report: ScanReport,
        manager: BasePackageManager | None,
    ) -> dict[str, ResolvedPackage]:
        return resolve_package_files(layer, report, manager, self.remap)
