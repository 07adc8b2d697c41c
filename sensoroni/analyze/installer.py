"""Dependency installation for analyzers that ship a requirements file."""
import logging
import os
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sensoroni.analyze.models import AnalyzerDefinition
from sensoroni.errors import ErrorCode, SensoroniError

logger = logging.getLogger(__name__)

STATUS_INSTALLED = "installed"
STATUS_SKIPPED = "skipped"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class InstallResult:
    analyzer_id: str
    status: str
    returncode: Optional[int] = None
    output: str = ""
    error: Optional[SensoroniError] = None

    @property
    def ok(self) -> bool:
        return self.status != STATUS_ERROR


def _failed(definition: AnalyzerDefinition, message: str, returncode: Optional[int] = None, output: str = "") -> InstallResult:
    error = SensoroniError(
        ErrorCode.ANALYZER_INSTALL_FAILED,
        f"Dependency install failed for {definition.id}: {message}",
        details={"returncode": returncode, "command": list(definition.install_command or ())},
    )
    logger.warning(f"[installer] {error}")
    return InstallResult(
        analyzer_id=definition.id,
        status=STATUS_ERROR,
        returncode=returncode,
        output=output or message,
        error=error,
    )


def build_install_command(
    installer: str,
    requirements_path: str,
    destination: str,
    source_packages_path: str,
) -> List[str]:
    """
    Install requirements into an isolated target directory, resolving only
    from the local source package directory (no network index).
    """
    return [
        installer, "install",
        "--target", destination,
        "-r", requirements_path,
        "--no-index",
        "--find-links", source_packages_path,
    ]


def install_dependencies(definition: AnalyzerDefinition, timeout: Optional[float] = None) -> InstallResult:
    """
    Run the analyzer's install command synchronously.

    Args:
        definition: Analyzer whose install command should run
        timeout: Upper bound in seconds for the installer process

    Returns:
        InstallResult with status "installed", "skipped" (no requirements) or
        "error" (launch failure, timeout or non-zero exit). Errors carry an
        ANALYZER_INSTALL_FAILED SensoroniError.
    """
    if not definition.install_command:
        return InstallResult(analyzer_id=definition.id, status=STATUS_SKIPPED)

    cmd: Sequence[str] = definition.install_command
    logger.info(f"[installer] {definition.id}: {' '.join(cmd)}")

    # Error handling block.
    try:
        os.makedirs(definition.site_packages_path, exist_ok=True)
        proc = subprocess.run(
            list(cmd),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="ignore",
            timeout=timeout,
            env={**os.environ, "PIP_DISABLE_PIP_VERSION_CHECK": "1"},
        )
    except FileNotFoundError:
        return _failed(definition, f"installer not found: {cmd[0]}", returncode=127)
    except subprocess.TimeoutExpired as exc:
        return _failed(definition, f"installer timed out after {exc.timeout}s")
    except OSError as exc:
        return _failed(definition, f"installer failed to start: {exc}")

    if proc.returncode != 0:
        # The analyzer stays registered but may fail at run time.
        return _failed(definition, f"exit code {proc.returncode}", returncode=proc.returncode, output=proc.stdout or "")

    return InstallResult(
        analyzer_id=definition.id,
        status=STATUS_INSTALLED,
        returncode=0,
        output=proc.stdout or "",
    )
