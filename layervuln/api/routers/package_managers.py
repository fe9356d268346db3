"""Package managers API router — list available file-list providers."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from layervuln.api.dependencies import get_package_manager_registry
from layervuln.core.registry import PackageManagerRegistry
from layervuln.package_managers.base import BasePackageManager
from layervuln.schemas.package_manager import PackageManagerList, PackageManagerOut

router = APIRouter(prefix="/package-managers", tags=["package-managers"])

RegistryDep = Annotated[PackageManagerRegistry, Depends(get_package_manager_registry)]


def _to_out(cls: type[BasePackageManager]) -> PackageManagerOut:
    return PackageManagerOut(
        name=cls.metadata.name,
        display_name=cls.metadata.display_name,
        description=cls.metadata.description,
        package_types=list(cls.metadata.package_types),
    )


@router.get("", response_model=PackageManagerList)
async def list_package_managers(registry: RegistryDep) -> PackageManagerList:
    items = [_to_out(cls) for cls in registry.all().values()]
    return PackageManagerList(total=len(items), items=items)


@router.get("/{name}", response_model=PackageManagerOut)
async def get_package_manager(name: str, registry: RegistryDep) -> PackageManagerOut:
    cls = registry.get(name)
    if not cls:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Package manager {name!r} not found. Available: {registry.names()}",
        )
    return _to_out(cls)
