"""Grype invocation — runs the scanner binary and returns its raw JSON report."""

from __future__ import annotations

from pathlib import Path

from layervuln.core.exceptions import ExecutionError
from layervuln.core.logging import get_logger
from layervuln.core.process import run_command

logger = get_logger(__name__)


class GrypeScanner:
    """Thin wrapper around the grype executable.

    The scanner reads registry credentials and DB settings from the config
    artifact at *config_path*; callers that need credentials must hold the
    config guard for the duration of :meth:`scan`.
    """

    def __init__(self, binary: str, config_path: Path, timeout: int | None = None) -> None:
        self.binary = binary
        self.config_path = Path(config_path)
        self.timeout = timeout

    def build_command(self, image: str) -> list[str]:
        return [self.binary, image, "-o", "json", "-c", str(self.config_path)]

    def scan(self, image: str) -> str:
        """Scan *image* and return the report JSON text.

        Raises:
            ExecutionError: the process could not start, timed out or exited non-zero.
        """
        logger.info("Starting scanner", image=image)
        result = run_command(self.build_command(image), timeout=self.timeout)

        if result.timed_out:
            raise ExecutionError(
                f"Scanner timed out after {self.timeout}s for {image}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        if not result.success:
            logger.error(
                "Scanner failed",
                image=image,
                returncode=result.returncode,
                stderr=result.stderr.strip()[-500:],
            )
            raise ExecutionError(
                f"Scanner exited with status {result.returncode} for {image}",
                returncode=result.returncode,
                stderr=result.stderr,
            )

        logger.info("Scanner finished", image=image, bytes=len(result.stdout))
        return result.stdout
