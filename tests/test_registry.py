"""Tests for the package-manager registry and base package-manager contract."""

import pytest

from layervuln.core.registry import PackageManagerRegistry
from layervuln.package_managers.base import BasePackageManager


@pytest.fixture
def registry():
    reg = PackageManagerRegistry()
    reg.discover()
    return reg


def test_registry_discovers_managers(registry):
    assert set(registry.names()) == {"apk", "dpkg", "rpm"}
    assert registry.is_discovered


def test_registry_get_returns_class(registry):
    cls = registry.get("dpkg")
    assert cls is not None
    assert issubclass(cls, BasePackageManager)


def test_registry_get_unknown_returns_none(registry):
    assert registry.get("does_not_exist") is None


def test_registry_create(registry, tmp_path):
    manager = registry.create("apk", tmp_path)
    assert manager.get_type() == "apk"
    assert manager.root == tmp_path


def test_registry_create_unknown_raises(registry, tmp_path):
    with pytest.raises(KeyError, match="pacman"):
        registry.create("pacman", tmp_path)


def test_registry_detect(registry, tmp_path):
    assert registry.detect(tmp_path) is None

    (tmp_path / "var" / "lib" / "dpkg" / "info").mkdir(parents=True)
    manager = registry.detect(tmp_path)
    assert manager is not None
    assert manager.get_type() == "dpkg"


def test_manager_metadata_fields(registry):
    for name, cls in registry.all().items():
        meta = cls.metadata
        assert meta.name == name
        assert isinstance(meta.display_name, str) and meta.display_name
        assert isinstance(meta.package_types, tuple)


def test_concrete_manager_without_metadata_raises():
    with pytest.raises(TypeError, match="metadata"):
        class BadManager(BasePackageManager):
            @classmethod
            def detect(cls, root):
                return False

            def read_file_list_for_package(self, name):
                return []
