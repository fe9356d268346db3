"""FastAPI dependency providers."""

from __future__ import annotations

import threading

from layervuln.core.orchestrator import ScanOrchestrator
from layervuln.core.registry import PackageManagerRegistry, get_registry

# One orchestrator per process: its config guard must be the only writer of the artifact
_orchestrator: ScanOrchestrator | None = None
_orchestrator_lock = threading.Lock()


def get_orchestrator() -> ScanOrchestrator:
    """Return the process-wide orchestrator, building it on first use.

    Sync dependencies run in the threadpool, so first requests may race here.
    """
    global _orchestrator
    if _orchestrator is None:
        with _orchestrator_lock:
            if _orchestrator is None:
                _orchestrator = ScanOrchestrator.from_settings()
    return _orchestrator


def get_package_manager_registry() -> PackageManagerRegistry:
    """Return the global package-manager registry (already discovered)."""
    return get_registry()
