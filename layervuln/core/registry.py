"""Package-manager registry — auto-discovers and registers all BasePackageManager subclasses."""

import importlib
import pkgutil
from pathlib import Path
from typing import TYPE_CHECKING

from layervuln.core.logging import get_logger

if TYPE_CHECKING:
    from layervuln.package_managers.base import BasePackageManager

logger = get_logger(__name__)


class PackageManagerRegistry:
    """Registry holding all discovered package managers.

    Usage:
        registry = PackageManagerRegistry()
        registry.discover()
        manager_cls = registry.get("dpkg")
        manager = registry.detect("/mnt/rootfs")
    """

    def __init__(self) -> None:
        self._managers: dict[str, type["BasePackageManager"]] = {}
        self._discovered = False

    def discover(self, package: str = "layervuln.package_managers") -> None:
        """Scan the package_managers package and register all concrete subclasses."""
        from layervuln.package_managers.base import BasePackageManager  # avoid circular import

        managers_path = Path(__file__).parent.parent / "package_managers"

        for module_info in pkgutil.iter_modules([str(managers_path)]):
            if module_info.name == "base":
                continue

            full_name = f"{package}.{module_info.name}"
            try:
                mod = importlib.import_module(full_name)
            except ImportError as exc:
                logger.warning("Failed to import package manager", name=full_name, error=str(exc))
                continue

            for attr_name in dir(mod):
                obj = getattr(mod, attr_name)
                if (
                    isinstance(obj, type)
                    and issubclass(obj, BasePackageManager)
                    and obj is not BasePackageManager
                    and not getattr(obj, "__abstractmethods__", None)
                ):
                    slug = obj.metadata.name
                    if slug in self._managers:
                        if self._managers[slug] is not obj:
                            logger.warning(
                                "Duplicate package manager name — skipping",
                                name=slug,
                                existing=self._managers[slug].__name__,
                                new=obj.__name__,
                            )
                        continue
                    self._managers[slug] = obj
                    logger.debug("Registered package manager", name=slug, cls=obj.__name__)

        self._discovered = True
        logger.debug("Package manager discovery complete", count=len(self._managers))

    def get(self, name: str) -> type["BasePackageManager"] | None:
        return self._managers.get(name)

    def all(self) -> dict[str, type["BasePackageManager"]]:
        return dict(self._managers)

    def names(self) -> list[str]:
        return list(self._managers.keys())

    def create(self, name: str, root: Path | str) -> "BasePackageManager":
        """Instantiate manager *name* rooted at *root*.

        Raises:
            KeyError: no manager is registered under *name*.
        """
        cls = self.get(name)
        if cls is None:
            raise KeyError(f"Unknown package manager {name!r}. Available: {self.names()}")
        return cls(root)

    def detect(self, root: Path | str) -> "BasePackageManager | None":
        """Return a manager for the first package database found under *root*."""
        for name, cls in sorted(self._managers.items()):
            if cls.detect(Path(root)):
                logger.debug("Detected package manager", name=name, root=str(root))
                return cls(root)
        return None

    @property
    def is_discovered(self) -> bool:
        return self._discovered


# Global singleton
_registry: PackageManagerRegistry | None = None


def get_registry() -> PackageManagerRegistry:
    global _registry
    if _registry is None:
        _registry = PackageManagerRegistry()
        _registry.discover()
    return _registry
