"""pytest fixtures shared across all tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from layervuln.core.config_guard import CredentialConfigGuard
from layervuln.core.exceptions import ExecutionError, PackageFilesError
from layervuln.core.orchestrator import ScanOrchestrator
from layervuln.package_managers.base import BasePackageManager, PackageManagerMetadata

LAYER_MEDIA_TYPE = "application/vnd.docker.image.rootfs.diff.tar.gzip"


def build_match(
    vuln_id: str,
    package: str,
    layer_ids: list[str | None],
    fix_versions: list[str] | None = None,
    fix_state: str = "fixed",
    related_descriptions: list[str] | None = None,
    searched_name: str | None = None,
    version: str = "1.0",
    severity: str = "High",
) -> dict[str, Any]:
    """A grype match as found in ``grype -o json`` output."""
    return {
        "vulnerability": {
            "id": vuln_id,
            "dataSource": f"https://security-tracker.debian.org/tracker/{vuln_id}",
            "namespace": "debian:distro:debian:11",
            "severity": severity,
            "urls": [],
            "description": "top-level description",
            "cvss": [],
            "fix": {"versions": fix_versions or [], "state": fix_state},
            "advisories": [],
        },
        "relatedVulnerabilities": [
            {"id": vuln_id, "dataSource": "https://nvd.nist.gov", "description": d}
            for d in (related_descriptions or [])
        ],
        "matchDetails": [
            {
                "type": "exact-indirect-match",
                "matcher": "dpkg-matcher",
                "searchedBy": {
                    "distro": {"type": "debian", "version": "11"},
                    "namespace": "debian:distro:debian:11",
                    "package": {"name": searched_name or package, "version": version},
                },
                "found": {"versionConstraint": "< 99 (deb)", "vulnerabilityID": vuln_id},
            }
        ],
        "artifact": {
            "name": package,
            "version": version,
            "type": "deb",
            "locations": [
                {"path": "/var/lib/dpkg/status", **({"layerID": lid} if lid else {})}
                for lid in layer_ids
            ],
            "language": "",
            "licenses": [],
            "cpes": [],
            "purl": f"pkg:deb/debian/{package}@{version}",
        },
    }


def build_report(
    layer_digests: list[str],
    matches: list[dict[str, Any]],
    user_input: str = "registry.local/team/app:1.0",
    manifest_digest: str = "sha256:manifest",
) -> dict[str, Any]:
    """A grype JSON report for an image scan."""
    return {
        "matches": matches,
        "source": {
            "type": "image",
            "target": {
                "userInput": user_input,
                "imageID": "sha256:imageid",
                "manifestDigest": manifest_digest,
                "mediaType": "application/vnd.docker.distribution.manifest.v2+json",
                "tags": [user_input],
                "imageSize": 1024,
                "layers": [
                    {"mediaType": LAYER_MEDIA_TYPE, "digest": digest, "size": 512}
                    for digest in layer_digests
                ],
                "manifest": "e30=",
                "config": "e30=",
                "repoDigests": [],
            },
        },
        "distro": {"name": "debian", "version": "11", "idLike": ""},
        "descriptor": {"name": "grype", "version": "0.74.0"},
    }


@pytest.fixture
def make_match():
    return build_match


@pytest.fixture
def make_report():
    return build_report


@pytest.fixture
def curl_report() -> dict[str, Any]:
    return build_report(
        ["sha256:aaa", "sha256:bbb"],
        [build_match("CVE-2020-8177", "curl", ["sha256:bbb"], fix_versions=["7.68.0-1"])],
    )


# ── Collaborator fakes ───────────────────────────────────────────────────────


class FakePackageManager(BasePackageManager):
    """In-memory package database; records every query."""

    metadata = PackageManagerMetadata(
        name="fake",
        display_name="Fake",
        description="In-memory test package manager",
    )

    def __init__(self, files: dict[str, list[str]], manager_type: str = "dpkg") -> None:
        super().__init__("/")
        self.files = files
        self.manager_type = manager_type
        self.queries: list[str] = []

    @classmethod
    def detect(cls, root: Path) -> bool:
        return False

    def get_type(self) -> str:
        return self.manager_type

    def read_file_list_for_package(self, name: str) -> list[str]:
        self.queries.append(name)
        if name not in self.files:
            raise PackageFilesError(f"unknown package {name!r}")
        return list(self.files[name])


class FakeScanner:
    """Stands in for GrypeScanner; snapshots the config artifact at scan time."""

    def __init__(self, output: str | None = None, error: Exception | None = None,
                 config_path: Path | None = None) -> None:
        self.output = output
        self.error = error
        self.config_path = config_path
        self.images: list[str] = []
        self.config_during_scan: str | None = None

    def scan(self, image: str) -> str:
        self.images.append(image)
        if self.config_path is not None and self.config_path.exists():
            self.config_during_scan = self.config_path.read_text()
        if self.error is not None:
            raise self.error
        return self.output or ""


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "resources" / ".grype" / "config.yaml"


@pytest.fixture
def guard(config_path: Path) -> CredentialConfigGuard:
    g = CredentialConfigGuard(config_path)
    g.ensure_config()
    return g


@pytest.fixture
def fake_scanner(curl_report, config_path) -> FakeScanner:
    return FakeScanner(output=json.dumps(curl_report), config_path=config_path)


@pytest.fixture
def orchestrator(fake_scanner, guard) -> ScanOrchestrator:
    return ScanOrchestrator(fake_scanner, guard, remap={})


@pytest.fixture
def failing_orchestrator(config_path, guard) -> ScanOrchestrator:
    scanner = FakeScanner(
        error=ExecutionError("Scanner exited with status 1", returncode=1, stderr="unauthorized"),
        config_path=config_path,
    )
    return ScanOrchestrator(scanner, guard)


@pytest_asyncio.fixture
async def client(orchestrator):
    """HTTPX async test client wired to the FastAPI app with a fake scanner."""
    from layervuln.api.app import create_app
    from layervuln.api.dependencies import get_orchestrator

    app = create_app()
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
def fake_manager_cls() -> type[FakePackageManager]:
    return FakePackageManager


@pytest.fixture
def fake_scanner_cls() -> type[FakeScanner]:
    return FakeScanner
