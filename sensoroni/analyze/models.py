"""
sensoroni/analyze/models.py

Purpose:
    Data structures shared by the registry, the executor and the
    synthesizer.

Semantics:
    - AnalyzerDefinition: one registered analyzer. Immutable, built once at
      startup by the registry.
    - AnalyzerCatalog: the ordered, read-only set of definitions. Safe to
      share across concurrently running tasks.
    - AnalyzerTask: one invocation (command, input, timeout).
    - ExecutionOutcome: what running a task produced. `error` is set for
      launch failures, non-zero exits and timeouts; `output` holds whatever
      stdout was captured either way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from sensoroni.errors import ErrorCode, SensoroniError


@dataclass(frozen=True)
class AnalyzerDefinition:
    id: str
    enabled: bool
    run_command: Tuple[str, ...]
    source_path: Path
    site_packages_path: Path
    install_command: Optional[Tuple[str, ...]] = None
    requirements_path: Optional[Path] = None
    name: str = ""
    description: str = ""
    version: str = ""

    @property
    def has_requirements(self) -> bool:
        return self.install_command is not None


class AnalyzerCatalog:
    """
    Immutable, ordered collection of analyzer definitions.
    Constructed once per process and passed explicitly to each job run.
    """

    def __init__(self, definitions: Sequence[AnalyzerDefinition] = ()):
        self._definitions: Tuple[AnalyzerDefinition, ...] = tuple(definitions)
        self._by_id: Dict[str, AnalyzerDefinition] = {d.id: d for d in self._definitions}
        if len(self._by_id) != len(self._definitions):
            raise ValueError("Analyzer ids must be unique")

    def __iter__(self) -> Iterator[AnalyzerDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, analyzer_id: object) -> bool:
        return analyzer_id in self._by_id

    def __repr__(self) -> str:
        return f"AnalyzerCatalog({list(self.ids())!r})"

    def get(self, analyzer_id: str) -> Optional[AnalyzerDefinition]:
        return self._by_id.get(analyzer_id)

    def ids(self) -> List[str]:
        return [d.id for d in self._definitions]

    def enabled(self) -> List[AnalyzerDefinition]:
        """Enabled definitions, in catalog order."""
        return [d for d in self._definitions if d.enabled]


@dataclass(frozen=True)
class AnalyzerTask:
    analyzer_id: str
    command: Tuple[str, ...]
    input: str
    timeout: float  # seconds
    cwd: Optional[str] = None
    env: Optional[Dict[str, str]] = None

    @property
    def argv(self) -> List[str]:
        """Full argument vector; the analyzer input is passed as the last argument."""
        return [*self.command, self.input]


@dataclass(frozen=True)
class ExecutionOutcome:
    analyzer_id: str
    output: bytes = b""
    error: Optional[SensoroniError] = None
    returncode: Optional[int] = None
    duration_ms: float = 0.0
    stderr: bytes = field(default=b"", repr=False)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def timed_out(self) -> bool:
        return self.error is not None and self.error.code == ErrorCode.ANALYZER_TIMEOUT
