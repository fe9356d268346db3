"""Scans API router — run an image scan and return its layer-attributed vulnerabilities."""

from __future__ import annotations

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from layervuln.api.dependencies import get_orchestrator, get_package_manager_registry
from layervuln.core.exceptions import ConfigIOError, ExecutionError, MalformedReportError
from layervuln.core.logging import get_logger
from layervuln.core.orchestrator import ScanOrchestrator
from layervuln.core.registry import PackageManagerRegistry
from layervuln.package_managers.base import BasePackageManager
from layervuln.schemas.scan import ScanCreate, ScanOut

router = APIRouter(prefix="/scans", tags=["scans"])
logger = get_logger(__name__)

OrchestratorDep = Annotated[ScanOrchestrator, Depends(get_orchestrator)]
RegistryDep = Annotated[PackageManagerRegistry, Depends(get_package_manager_registry)]


@router.post("", response_model=ScanOut)
async def create_scan(
    payload: ScanCreate,
    orchestrator: OrchestratorDep,
    registry: RegistryDep,
) -> ScanOut:
    manager = _build_manager(payload, registry)

    try:
        # Scanner runs synchronously and may hold the config lock; keep it off the event loop
        layers = await asyncio.get_running_loop().run_in_executor(
            None,
            lambda: orchestrator.run_scan(
                payload.image,
                credentials=payload.credentials,
                package_manager=manager,
            ),
        )
    except ExecutionError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except MalformedReportError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except ConfigIOError as exc:
        logger.error("Scanner config error", image=payload.image, error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Scanner configuration could not be updated",
        ) from exc

    return ScanOut(image=payload.image, layers=layers)


def _build_manager(
    payload: ScanCreate, registry: PackageManagerRegistry
) -> BasePackageManager | None:
    if payload.package_manager is None and payload.filesystem_root is None:
        return None
    if payload.filesystem_root is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="filesystem_root is required for package file resolution",
        )
    if payload.package_manager is None:
        manager = registry.detect(payload.filesystem_root)
        if manager is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"No known package database under {payload.filesystem_root}",
            )
        return manager
    try:
        return registry.create(payload.package_manager, payload.filesystem_root)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown package manager: {payload.package_manager!r}. "
                   f"Available: {registry.names()}",
        )
