# ============================================================================
# sensoroni/base/config.py
# Analyze Engine Configuration
# ============================================================================
#
# PURPOSE:
# Holds every value the analyze engine consumes: where analyzers live, where
# their dependencies get installed, which executables run and install them,
# and the numeric limits (timeout, parallelism, summary length).
#
# KEY CONCEPTS:
# 1. Frozen dataclasses: resolved once at startup, never mutated afterwards
# 2. Module config map: the host hands each module a dict of overrides
#    (camelCase keys), every key optional
# 3. Environment variables: SENSORONI_* overrides for the CLI
#
# ============================================================================

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional

from sensoroni.errors import ErrorCode, SensoroniError

logger = logging.getLogger(__name__)


DEFAULT_ANALYZERS_PATH = "/opt/sensoroni/analyzers"
DEFAULT_SITE_PACKAGES_PATH = "/opt/sensoroni/site-packages"
DEFAULT_SOURCE_PACKAGES_PATH = "/opt/sensoroni/sourcepackages"
DEFAULT_ANALYZER_EXECUTABLE = "python"
DEFAULT_ANALYZER_INSTALLER = "pip3"
DEFAULT_TIMEOUT_MS = 900000
DEFAULT_PARALLEL_LIMIT = 5
DEFAULT_SUMMARY_LENGTH = 50


# ============================================================================
# Analyze Module Configuration
# ============================================================================

@dataclass(frozen=True)
class AnalyzeConfig:
    # Directory scanned at startup; one sub-directory per analyzer
    analyzers_path: str = DEFAULT_ANALYZERS_PATH

    # Root under which each analyzer gets its own dependency directory
    site_packages_path: str = DEFAULT_SITE_PACKAGES_PATH

    # Local package index the installer resolves requirements from (offline)
    source_packages_path: str = DEFAULT_SOURCE_PACKAGES_PATH

    # Executable used to run an analyzer module ("python -m <id>")
    analyzer_executable: str = DEFAULT_ANALYZER_EXECUTABLE

    # Executable used to install an analyzer's requirements
    analyzer_installer: str = DEFAULT_ANALYZER_INSTALLER

    # Hard deadline for a single analyzer run, in milliseconds
    # 900000 ms = 15 minutes
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    # How many analyzer processes may run at the same time
    parallel_limit: int = DEFAULT_PARALLEL_LIMIT

    # Maximum characters kept in a result summary before "..." is appended
    summary_length: int = DEFAULT_SUMMARY_LENGTH

    def __post_init__(self):
        for name in ("timeout_ms", "parallel_limit", "summary_length"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise SensoroniError(
                    ErrorCode.CONFIG_INVALID,
                    f"{name} must be a positive integer",
                    details={"field": name, "value": value},
                )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def analyzer_site_packages(self, analyzer_id: str) -> Path:
        """Isolated dependency directory for one analyzer."""
        return Path(self.site_packages_path) / analyzer_id

    @classmethod
    def from_mapping(cls, cfg: Optional[Mapping[str, Any]]) -> "AnalyzeConfig":
        """
        Build a config from the host's module config map.

        Keys mirror the host's naming (analyzersPath, timeoutMs, ...). Any key
        that is absent falls back to its default.
        """
        cfg = cfg or {}
        return cls(
            analyzers_path=_get_str(cfg, "analyzersPath", DEFAULT_ANALYZERS_PATH),
            site_packages_path=_get_str(cfg, "sitePackagesPath", DEFAULT_SITE_PACKAGES_PATH),
            source_packages_path=_get_str(cfg, "sourcePackagesPath", DEFAULT_SOURCE_PACKAGES_PATH),
            analyzer_executable=_get_str(cfg, "analyzerExecutable", DEFAULT_ANALYZER_EXECUTABLE),
            analyzer_installer=_get_str(cfg, "analyzerInstaller", DEFAULT_ANALYZER_INSTALLER),
            timeout_ms=_get_int(cfg, "timeoutMs", DEFAULT_TIMEOUT_MS),
            parallel_limit=_get_int(cfg, "parallelLimit", DEFAULT_PARALLEL_LIMIT),
            summary_length=_get_int(cfg, "summaryLength", DEFAULT_SUMMARY_LENGTH),
        )

    @classmethod
    def from_env(cls) -> "AnalyzeConfig":
        env = os.environ
        return cls(
            analyzers_path=env.get("SENSORONI_ANALYZERS_PATH", DEFAULT_ANALYZERS_PATH),
            site_packages_path=env.get("SENSORONI_SITE_PACKAGES_PATH", DEFAULT_SITE_PACKAGES_PATH),
            source_packages_path=env.get("SENSORONI_SOURCE_PACKAGES_PATH", DEFAULT_SOURCE_PACKAGES_PATH),
            analyzer_executable=env.get("SENSORONI_ANALYZER_EXECUTABLE", DEFAULT_ANALYZER_EXECUTABLE),
            analyzer_installer=env.get("SENSORONI_ANALYZER_INSTALLER", DEFAULT_ANALYZER_INSTALLER),
            timeout_ms=_parse_int("SENSORONI_TIMEOUT_MS", env.get("SENSORONI_TIMEOUT_MS"), DEFAULT_TIMEOUT_MS),
            parallel_limit=_parse_int("SENSORONI_PARALLEL_LIMIT", env.get("SENSORONI_PARALLEL_LIMIT"), DEFAULT_PARALLEL_LIMIT),
            summary_length=_parse_int("SENSORONI_SUMMARY_LENGTH", env.get("SENSORONI_SUMMARY_LENGTH"), DEFAULT_SUMMARY_LENGTH),
        )

    def to_mapping(self) -> dict:
        return {
            "analyzersPath": self.analyzers_path,
            "sitePackagesPath": self.site_packages_path,
            "sourcePackagesPath": self.source_packages_path,
            "analyzerExecutable": self.analyzer_executable,
            "analyzerInstaller": self.analyzer_installer,
            "timeoutMs": self.timeout_ms,
            "parallelLimit": self.parallel_limit,
            "summaryLength": self.summary_length,
        }


def _get_str(cfg: Mapping[str, Any], key: str, default: str) -> str:
    value = cfg.get(key)
    if value is None or value == "":
        return default
    return str(value)


def _get_int(cfg: Mapping[str, Any], key: str, default: int) -> int:
    return _parse_int(key, cfg.get(key), default)


def _parse_int(key: str, value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    # bool is an int subclass; "true" is never a valid limit
    if isinstance(value, bool):
        raise SensoroniError(ErrorCode.CONFIG_INVALID, f"{key} must be numeric", details={"value": value})
    if isinstance(value, float):
        if not value.is_integer():
            raise SensoroniError(ErrorCode.CONFIG_INVALID, f"{key} must be a whole number", details={"value": value})
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise SensoroniError(
            ErrorCode.CONFIG_INVALID,
            f"{key} must be numeric",
            details={"value": value, "error": str(exc)},
        ) from exc


# ============================================================================
# Logging Configuration
# ============================================================================

@dataclass(frozen=True)
class LogConfig:
    # DEBUG / INFO / WARNING / ERROR
    level: str = "INFO"

    # %(name)s = which module logged this (e.g., "sensoroni.analyze.executor")
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    # Optional log file in addition to console output
    file_path: Optional[str] = None


# ============================================================================
# Master Configuration Container
# ============================================================================

@dataclass
class SensoroniConfig:
    analyze: AnalyzeConfig = field(default_factory=AnalyzeConfig)
    log: LogConfig = field(default_factory=LogConfig)
    debug: bool = False

    @classmethod
    def from_env(cls) -> "SensoroniConfig":
        debug = os.getenv("SENSORONI_DEBUG", "false").lower() == "true"
        log = LogConfig(
            level=os.getenv("SENSORONI_LOG_LEVEL", "DEBUG" if debug else "INFO"),
            file_path=os.getenv("SENSORONI_LOG_FILE") or None,
        )
        return cls(analyze=AnalyzeConfig.from_env(), log=log, debug=debug)

    @classmethod
    def from_file(cls, path: str, base: Optional["SensoroniConfig"] = None) -> "SensoroniConfig":
        """
        Load a JSON config file holding the module config map.

        The file may either be the flat analyze map or {"analyze": {...},
        "logLevel": "DEBUG"}.
        """
        base = base or cls.from_env()
        config_path = Path(path)
        if not config_path.is_file():
            raise SensoroniError(ErrorCode.CONFIG_FILE_NOT_FOUND, f"Config file not found: {path}")
        try:
            payload = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise SensoroniError(
                ErrorCode.CONFIG_PARSE_ERROR,
                f"Unable to parse config file {path}",
                details={"error": str(exc)},
            ) from exc
        if not isinstance(payload, dict):
            raise SensoroniError(ErrorCode.CONFIG_PARSE_ERROR, f"Config file {path} must hold a JSON object")

        analyze_map = payload.get("analyze", payload)
        log = base.log
        if payload.get("logLevel"):
            log = LogConfig(level=str(payload["logLevel"]), format=log.format, file_path=log.file_path)
        return cls(analyze=AnalyzeConfig.from_mapping(analyze_map), log=log, debug=base.debug)


# ============================================================================
# Global Configuration (CLI only; the engine takes explicit configs)
# ============================================================================

_config: Optional[SensoroniConfig] = None


def get_config() -> SensoroniConfig:
    global _config
    if _config is None:
        _config = SensoroniConfig.from_env()
    return _config


def set_config(config: SensoroniConfig) -> None:
    """Replace the global configuration (mainly used for testing)."""
    global _config
    _config = config


def setup_logging(config: Optional[SensoroniConfig] = None) -> None:
    """
    Configure Python's logging system based on our settings.

    Call this once at application startup.
    """
    cfg = config or get_config()

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if cfg.log.file_path:
        handlers.append(logging.FileHandler(cfg.log.file_path))

    logging.basicConfig(
        level=getattr(logging, cfg.log.level.upper(), logging.INFO),
        format=cfg.log.format,
        handlers=handlers,
        force=True,
    )
