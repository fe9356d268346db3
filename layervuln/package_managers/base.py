"""Base package-manager contract — all file-list providers must implement this interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar


@dataclass
class PackageManagerMetadata:
    name: str               # Unique slug, also returned by get_type() (e.g. "dpkg")
    display_name: str       # Human-readable name
    description: str
    package_types: tuple[str, ...] = ()
    """Scanner package types (deb, rpm, apk, ...) this manager owns files for."""


class BasePackageManager(ABC):
    """Abstract base class for package managers reading a guest filesystem.

    Subclass this, set the ``metadata`` class variable, and implement
    ``read_file_list_for_package`` and ``detect``. The registry will
    auto-discover any concrete subclass found in
    ``layervuln/package_managers/*.py``.
    """

    metadata: ClassVar[PackageManagerMetadata]

    def __init__(self, root: Path | str = "/") -> None:
        self.root = Path(root)

    @abstractmethod
    def read_file_list_for_package(self, name: str) -> list[str]:
        """Return the absolute paths (inside ``root``) of files owned by *name*.

        Raises:
            PackageFilesError: the package is unknown to the database or the
                database could not be read.
        """
        ...

    @classmethod
    @abstractmethod
    def detect(cls, root: Path) -> bool:
        """Return True when this manager's database exists under *root*."""
        ...

    def get_type(self) -> str:
        return self.metadata.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}(root={str(self.root)!r})"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # Concrete subclasses must declare metadata
        if not getattr(cls, "__abstractmethods__", None):
            if not hasattr(cls, "metadata"):
                raise TypeError(
                    f"Package manager {cls.__name__} must define a 'metadata' class variable."
                )
