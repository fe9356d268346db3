"""Package-file resolution — enriches matched packages with the files they own.

Package names come from the scanner's match details (``searchedBy.package.name``),
which is the name the distro's package database knows. Some logical package
names do not exist in the dpkg database (source packages split into several
binary packages); for those a remap table lists the real package names whose
file lists are concatenated.
"""

from __future__ import annotations

import warnings
from collections.abc import Iterable, Mapping

from layervuln.core.exceptions import PackageFilesError, ResolutionWarning
from layervuln.core.logging import get_logger
from layervuln.package_managers.base import BasePackageManager
from layervuln.schemas.layers import ResolvedPackage
from layervuln.schemas.report import Match, ScanReport

logger = get_logger(__name__)

REMAP_MANAGER_TYPE = "dpkg"


class PackageFileResolver:
    """Resolves and caches package file lists for one resolution pass.

    Each distinct package name is queried at most once (plus remap retries);
    misses are cached too. Instances are not meant to be shared across threads.
    """

    def __init__(
        self,
        manager: BasePackageManager | None,
        remap: Mapping[str, list[str]] | None = None,
    ) -> None:
        self.manager = manager
        self.remap: Mapping[str, list[str]] = remap or {}
        self._cache: dict[str, ResolvedPackage | None] = {}

    @property
    def unresolved(self) -> list[str]:
        return [name for name, pkg in self._cache.items() if pkg is None]

    def resolve(self, name: str, version: str = "") -> ResolvedPackage | None:
        """Return the files owned by *name*, or None when they cannot be determined."""
        if self.manager is None:
            return None
        if name in self._cache:
            return self._cache[name]

        files = self._query(name)
        if not files:
            files = self._query_remapped(name)

        if files:
            resolved = ResolvedPackage.from_file_list(name, files, version=version)
            logger.debug("Package files resolved", package=name, files=len(files))
        else:
            resolved = None
            logger.warning(
                "Package files not found even after remapping",
                package=name,
                manager=self.manager.get_type(),
            )
            warnings.warn(
                f"files of package {name!r} could not be resolved",
                ResolutionWarning,
                stacklevel=2,
            )

        self._cache[name] = resolved
        return resolved

    def resolve_files(self, matches: Iterable[Match]) -> dict[str, ResolvedPackage]:
        """Map package name -> resolved files for every package searched by *matches*."""
        resolved: dict[str, ResolvedPackage] = {}
        if self.manager is None:
            return resolved

        for match in matches:
            for detail in match.match_details:
                name = detail.package_name
                if name is None or name in resolved:
                    continue
                version = ""
                if detail.searched_by and detail.searched_by.package:
                    version = detail.searched_by.package.version or ""
                package = self.resolve(name, version=version)
                if package is not None:
                    resolved[name] = package

        return resolved

    # ── Internals ────────────────────────────────────────────────────────────

    def _query(self, name: str) -> list[str]:
        try:
            return self.manager.read_file_list_for_package(name)
        except PackageFilesError as exc:
            logger.debug("File list query failed", package=name, error=str(exc))
            return []

    def _query_remapped(self, name: str) -> list[str]:
        if self.manager.get_type() != REMAP_MANAGER_TYPE:
            return []
        real_names = self.remap.get(name)
        if not real_names:
            return []

        files: list[str] = []
        for real_name in real_names:
            files.extend(self._query(real_name))
        if files:
            logger.info("Package resolved through remap", package=name, real_names=real_names)
        return files


def matches_in_layer(report: ScanReport, layer: str) -> list[Match]:
    """Matches whose artifact was observed in *layer*; every match when *layer* is empty."""
    if not layer:
        return list(report.matches)
    return [match for match in report.matches if layer in match.layer_ids()]


def resolve_package_files(
    layer: str,
    report: ScanReport,
    manager: BasePackageManager | None,
    remap: Mapping[str, list[str]] | None = None,
) -> dict[str, ResolvedPackage]:
    """Resolve the files of every package matched in *layer* of *report*.

    Returns an empty mapping without querying anything when *manager* is None.
    """
    if manager is None:
        return {}
    resolver = PackageFileResolver(manager, remap)
    return resolver.resolve_files(matches_in_layer(report, layer))
