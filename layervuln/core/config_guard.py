"""Credential-scoped access to the scanner's config artifact.

The scanner only reads registry credentials from its config file, so a scan of
a private image must write them there first. :class:`CredentialConfigGuard`
owns the file and a single lock: injection, the scan itself and removal all
happen while the lock is held, so two credentialed scans never overlap and a
credential is never clobbered by a concurrent read-modify-write.
"""

from __future__ import annotations

import os
import tempfile
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

import yaml
from pydantic import ValidationError

from layervuln.core.config import Settings
from layervuln.core.exceptions import ConfigIOError
from layervuln.core.logging import get_logger
from layervuln.schemas.config import (
    DatabaseOptions,
    RegistryCredentials,
    RegistryOptions,
    Scope,
    ScannerConfig,
)

logger = get_logger(__name__)

T = TypeVar("T")


def default_scanner_config(settings: Settings) -> ScannerConfig:
    """Config written on first start, before any scan has run."""
    return ScannerConfig(
        output="json",
        scope=Scope(settings.catalog_scope),
        check_for_app_update=settings.check_for_app_update,
        db=DatabaseOptions(
            cache_dir=str(settings.db_cache_dir),
            update_url=settings.db_update_url,
            auto_update=settings.db_auto_update,
            validate_by_hash_on_start=settings.db_validate_by_hash_on_start,
        ),
        registry=RegistryOptions(
            insecure_skip_tls_verify=settings.registry_insecure_skip_tls_verify,
            insecure_use_http=settings.registry_insecure_use_http,
            auth=[],
        ),
    )


class CredentialConfigGuard:
    """Owner of the scanner config artifact and the lock that serializes its mutation."""

    def __init__(self, config_path: Path, default_config: ScannerConfig | None = None) -> None:
        self.config_path = Path(config_path)
        self._default_config = default_config or ScannerConfig()
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialConfigGuard":
        return cls(settings.scanner_config_path, default_scanner_config(settings))

    # ── Public API ───────────────────────────────────────────────────────────

    def ensure_config(self) -> ScannerConfig:
        """Create the config artifact (and its directories) if it does not exist yet.

        An existing artifact is read without the lock; writes replace the file
        atomically, so a credentialed scan in progress does not block this.
        """
        if self.config_path.exists():
            return self._read()
        with self._lock:
            if self.config_path.exists():
                return self._read()
            try:
                self.config_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ConfigIOError(f"Cannot create {self.config_path.parent}: {exc}") from exc
            self._write(self._default_config)
            logger.info("Scanner config created", path=str(self.config_path))
            return self._default_config

    def read_config(self) -> ScannerConfig:
        with self._lock:
            return self._read()

    @contextmanager
    def credentials(self, username: str, password: str, authority: str = "") -> Iterator[None]:
        """Hold the config lock; while inside, the given credentials are in the artifact.

        With an empty username or password the block runs under the lock without
        touching the file. Removal runs on every exit path.

        Raises:
            ConfigIOError: injection or removal failed. A removal failure means the
                credentials may still be on disk.
        """
        with self._lock:
            if not (username and password):
                yield
                return

            self._inject(RegistryCredentials(authority=authority, username=username, password=password))
            try:
                yield
            finally:
                self._remove(username, password, authority)

    def with_credentials(
        self,
        username: str,
        password: str,
        invoke: Callable[[], T],
        authority: str = "",
    ) -> T:
        """Run *invoke* with the credentials injected, removing them afterwards."""
        with self.credentials(username, password, authority):
            return invoke()

    # ── Internals (caller holds the lock) ────────────────────────────────────

    def _inject(self, entry: RegistryCredentials) -> None:
        config = self._read()
        config.registry.auth.append(entry)
        self._write(config)
        logger.info("Registry credentials injected", authority=entry.authority or "*")

    def _remove(self, username: str, password: str, authority: str) -> None:
        try:
            config = self._read()
            for i, entry in enumerate(config.registry.auth):
                if entry.matches(username, password):
                    del config.registry.auth[i]
                    break
            self._write(config)
        except ConfigIOError:
            logger.critical(
                "Failed to remove registry credentials from scanner config; manual cleanup required",
                path=str(self.config_path),
                authority=authority or "*",
            )
            raise
        logger.info("Registry credentials removed", authority=authority or "*")

    def _read(self) -> ScannerConfig:
        try:
            text = self.config_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigIOError(f"Cannot read {self.config_path}: {exc}") from exc
        try:
            return ScannerConfig.from_yaml(text)
        except (yaml.YAMLError, ValidationError) as exc:
            raise ConfigIOError(f"Cannot parse {self.config_path}: {exc}") from exc

    def _write(self, config: ScannerConfig) -> None:
        data = config.to_yaml(include_secrets=True)
        directory = self.config_path.parent
        try:
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".config-", suffix=".yaml")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(data)
                os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, self.config_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise ConfigIOError(f"Cannot write {self.config_path}: {exc}") from exc
