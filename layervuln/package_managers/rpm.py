"""rpm package manager — queries the RPM database of an extracted root with ``rpm -ql``."""

from __future__ import annotations

from pathlib import Path

from layervuln.core.exceptions import PackageFilesError
from layervuln.core.process import run_command
from layervuln.package_managers.base import BasePackageManager, PackageManagerMetadata


RPM_DB_DIRS = (Path("var/lib/rpm"), Path("usr/lib/sysimage/rpm"))


class RpmPackageManager(BasePackageManager):
    metadata = PackageManagerMetadata(
        name="rpm",
        display_name="RPM",
        description=(
            "Runs `rpm --root <root> -ql <package>` against the RPM database. "
            "RHEL, CentOS, Fedora, SUSE. Requires the rpm binary on the host."
        ),
        package_types=("rpm",),
    )

    def __init__(self, root: Path | str = "/", rpm_binary: str = "rpm", timeout: int = 30) -> None:
        super().__init__(root)
        self.rpm_binary = rpm_binary
        self.timeout = timeout

    @classmethod
    def detect(cls, root: Path) -> bool:
        return any((Path(root) / db_dir).is_dir() for db_dir in RPM_DB_DIRS)

    def read_file_list_for_package(self, name: str) -> list[str]:
        result = run_command(
            [self.rpm_binary, "--root", str(self.root), "-ql", name],
            timeout=self.timeout,
        )
        if not result.success:
            raise PackageFilesError(
                f"rpm: cannot list files of {name!r}: {(result.stderr or result.stdout).strip()}"
            )

        files = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        # Packages without files print a placeholder instead of a list
        return [f for f in files if f != "(contains no files)"]
