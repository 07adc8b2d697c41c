"""
sensoroni/analyze/registry.py

Builds the analyzer catalog at startup.

Layout of the analyzers directory:

    <analyzers_path>/
        whois/
            whois.json          optional descriptor (enabled, name, ...)
            requirements.txt    optional; triggers a dependency install
            __init__.py / __main__.py / whois.py

Each sub-directory is one analyzer and its directory name is the analyzer id.
Analyzers run as "<executable> -m <id>" from the analyzers directory, so the
directory itself must be importable as a module.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sensoroni.analyze.installer import InstallResult, build_install_command, install_dependencies
from sensoroni.analyze.models import AnalyzerCatalog, AnalyzerDefinition
from sensoroni.base.config import AnalyzeConfig
from sensoroni.errors import ErrorCode, SensoroniError

logger = logging.getLogger(__name__)

REQUIREMENTS_FILE = "requirements.txt"

Installer = Callable[[AnalyzerDefinition, Optional[float]], InstallResult]


class AnalyzerDescriptor(BaseModel):
    """Optional <id>.json descriptor shipped next to an analyzer."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    enabled: bool = True
    name: str = ""
    description: str = ""
    version: str = ""
    author: str = ""
    supported_types: List[str] = Field(default_factory=list, alias="supportedTypes")


def read_descriptor(directory: Path) -> AnalyzerDescriptor:
    """
    Load and validate the analyzer's descriptor.

    A missing descriptor yields the defaults (enabled, no metadata).

    Raises:
        SensoroniError(ANALYZER_DESCRIPTOR_INVALID) if the file cannot be
        read, is not JSON, or does not validate.
    """
    path = directory / f"{directory.name}.json"
    if not path.is_file():
        return AnalyzerDescriptor()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return AnalyzerDescriptor.model_validate(raw)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
        raise SensoroniError(
            ErrorCode.ANALYZER_DESCRIPTOR_INVALID,
            f"Invalid analyzer descriptor {path}",
            details={"analyzer": directory.name, "error": str(exc)},
        ) from exc


def create_analyzer(directory: Path, config: AnalyzeConfig) -> AnalyzerDefinition:
    """Build the definition for one analyzer directory."""
    descriptor = read_descriptor(directory)
    analyzer_id = directory.name
    site_packages = config.analyzer_site_packages(analyzer_id)

    requirements: Optional[Path] = directory / REQUIREMENTS_FILE
    install_command = None
    if requirements.is_file():
        install_command = tuple(build_install_command(
            config.analyzer_installer,
            str(requirements),
            str(site_packages),
            config.source_packages_path,
        ))
    else:
        requirements = None

    return AnalyzerDefinition(
        id=analyzer_id,
        enabled=descriptor.enabled,
        run_command=(config.analyzer_executable, "-m", analyzer_id),
        source_path=directory,
        site_packages_path=site_packages,
        install_command=install_command,
        requirements_path=requirements,
        name=descriptor.name or analyzer_id,
        description=descriptor.description,
        version=descriptor.version,
    )


def discover_analyzers(config: AnalyzeConfig) -> List[AnalyzerDefinition]:
    """
    Scan the analyzers directory. Malformed analyzers are skipped with a
    warning; a missing directory yields an empty list.
    """
    root = Path(config.analyzers_path)
    if not root.is_dir():
        logger.warning(f"[registry] analyzers path does not exist: {root}")
        return []

    definitions: List[AnalyzerDefinition] = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if not entry.is_dir() or entry.name.startswith((".", "_")):
            continue
        try:
            definitions.append(create_analyzer(entry, config))
        except SensoroniError as exc:
            logger.warning(f"[registry] skipping analyzer {entry.name}: {exc}")
            continue

    return definitions


def load_catalog(config: AnalyzeConfig, installer: Installer = install_dependencies) -> AnalyzerCatalog:
    """
    Discover analyzers and install their dependencies.

    An install failure is logged; the analyzer stays registered and will
    fail at run time if its dependencies are unusable. Each installer run is
    bounded by the analyzer timeout.
    """
    definitions = discover_analyzers(config)

    for definition in definitions:
        if not definition.has_requirements:
            continue
        result = installer(definition, config.timeout_seconds)
        if result.ok:
            logger.info(f"[registry] {definition.id}: dependencies {result.status}")
        else:
            logger.warning(f"[registry] {result.error}: {result.output.strip()[-500:]}")

    catalog = AnalyzerCatalog(definitions)
    enabled = sum(1 for d in catalog if d.enabled)
    logger.info(f"[registry] loaded {len(catalog)} analyzers ({enabled} enabled) from {config.analyzers_path}")
    return catalog
