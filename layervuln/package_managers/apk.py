"""apk package manager — parses the Alpine installed-package database."""

from __future__ import annotations

from pathlib import Path

from layervuln.core.exceptions import PackageFilesError
from layervuln.package_managers.base import BasePackageManager, PackageManagerMetadata

APK_INSTALLED_DB = Path("lib/apk/db/installed")


class ApkPackageManager(BasePackageManager):
    metadata = PackageManagerMetadata(
        name="apk",
        display_name="Alpine apk",
        description=(
            "Parses /lib/apk/db/installed: P: package name, F: directory, "
            "R: file within the preceding directory."
        ),
        package_types=("apk",),
    )

    def __init__(self, root: Path | str = "/") -> None:
        super().__init__(root)
        self._index: dict[str, list[str]] | None = None

    @classmethod
    def detect(cls, root: Path) -> bool:
        return (Path(root) / APK_INSTALLED_DB).is_file()

    def read_file_list_for_package(self, name: str) -> list[str]:
        index = self._load_index()
        if name not in index:
            raise PackageFilesError(f"apk: package {name!r} is not installed")
        return list(index[name])

    def _load_index(self) -> dict[str, list[str]]:
        if self._index is None:
            db_path = self.root / APK_INSTALLED_DB
            try:
                text = db_path.read_text(encoding="utf-8", errors="replace")
            except OSError as exc:
                raise PackageFilesError(f"apk: cannot read {db_path}: {exc}") from exc
            self._index = parse_installed_db(text)
        return self._index


def parse_installed_db(text: str) -> dict[str, list[str]]:
    """Map package name -> owned file paths from an apk ``installed`` database."""
    index: dict[str, list[str]] = {}
    package: str | None = None
    directory = ""

    for line in text.splitlines():
        if not line.strip():
            # Blank line ends a package record
            package, directory = None, ""
            continue
        key, _, value = line.partition(":")
        if key == "P":
            package = value
            index.setdefault(package, [])
        elif key == "F":
            directory = value
        elif key == "R" and package is not None:
            path = f"{directory}/{value}" if directory else value
            index[package].append("/" + path.lstrip("/"))

    return index
