"""dpkg package manager — reads per-package ``.list`` files from the dpkg database."""

from __future__ import annotations

from pathlib import Path

from layervuln.core.exceptions import PackageFilesError
from layervuln.package_managers.base import BasePackageManager, PackageManagerMetadata


DPKG_INFO_DIR = Path("var/lib/dpkg/info")


class DpkgPackageManager(BasePackageManager):
    metadata = PackageManagerMetadata(
        name="dpkg",
        display_name="Debian dpkg",
        description=(
            "Reads file ownership from /var/lib/dpkg/info/<package>.list "
            "(multi-arch <package>:<arch>.list supported). Debian, Ubuntu."
        ),
        package_types=("deb",),
    )

    @classmethod
    def detect(cls, root: Path) -> bool:
        return (Path(root) / DPKG_INFO_DIR).is_dir()

    def read_file_list_for_package(self, name: str) -> list[str]:
        list_file = self._find_list_file(name)
        if list_file is None:
            raise PackageFilesError(f"dpkg: no file list for package {name!r}")

        try:
            lines = list_file.read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError as exc:
            raise PackageFilesError(f"dpkg: cannot read {list_file}: {exc}") from exc

        # "/." is the root directory entry every package lists
        return [line for line in (raw.strip() for raw in lines) if line and line != "/."]

    def _find_list_file(self, name: str) -> Path | None:
        info_dir = self.root / DPKG_INFO_DIR
        exact = info_dir / f"{name}.list"
        if exact.is_file():
            return exact
        # Multi-arch packages are stored as <name>:<arch>.list
        candidates = sorted(info_dir.glob(f"{name}:*.list"))
        return candidates[0] if candidates else None
