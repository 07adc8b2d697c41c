"""
sensoroni/analyze/processor.py

The analyze job processor: wires the catalog, the eligibility gate, the
bounded executor and the aggregator into the host's "process one job"
contract.

Lifecycle:
    processor = AnalyzeProcessor(job_manager)
    processor.init(module_config)   # builds the catalog, registers with host
    processor.process_job(job)      # once per job, blocking
    await processor.process_job_async(job)   # same, from a running event loop
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sensoroni.agent.jobmgr import JobManager
from sensoroni.analyze.aggregator import aggregate
from sensoroni.analyze.executor import run_analyzers, run_analyzers_async
from sensoroni.analyze.gate import is_eligible
from sensoroni.analyze.installer import install_dependencies
from sensoroni.analyze.models import AnalyzerCatalog
from sensoroni.analyze.registry import Installer, load_catalog
from sensoroni.base.config import AnalyzeConfig
from sensoroni.errors import ErrorCode, SensoroniError
from sensoroni.model.job import Job

logger = logging.getLogger(__name__)


class AnalyzeProcessor:
    def __init__(self, job_manager: Optional[JobManager] = None, installer: Installer = install_dependencies):
        self.job_manager = job_manager
        self.installer = installer
        self.config = AnalyzeConfig()
        self.catalog = AnalyzerCatalog()

    def init(self, cfg: Optional[Mapping[str, Any]] = None) -> None:
        """
        Resolve configuration, build the catalog and register with the host.

        Raises:
            SensoroniError(ANALYZE_REGISTRATION_FAILED) if there is no job
            manager to register with.
            SensoroniError(ANALYZE_NO_ANALYZERS_LOADED) if no analyzer was
            found.
        Either way `config` and `catalog` are populated and usable.
        """
        self.config = AnalyzeConfig.from_mapping(cfg)
        self.catalog = load_catalog(self.config, installer=self.installer)

        if self.job_manager is None:
            raise SensoroniError(
                ErrorCode.ANALYZE_REGISTRATION_FAILED,
                "Unable to register analyze processor: no job manager",
            )
        self.job_manager.add_job_processor(self)

        if len(self.catalog) == 0:
            raise SensoroniError(
                ErrorCode.ANALYZE_NO_ANALYZERS_LOADED,
                f"No analyzers loaded from {self.config.analyzers_path}",
            )

    def process_job(self, job: Job) -> None:
        """
        Run every enabled analyzer against the job's filter parameters and
        attach the results.

        Ineligible jobs return immediately without touching `job.results`.

        Blocking: this starts its own event loop, so it must not be called
        from inside a running loop. Use `process_job_async` there.

        Raises:
            SensoroniError(ANALYZE_NO_SUCCESS) when no analyzer succeeded.
        """
        if not self._start(job):
            return None
        outcomes = run_analyzers(self.catalog, job.filter.parameters, self.config)
        aggregate(job, outcomes, self.config.summary_length)
        return None

    async def process_job_async(self, job: Job) -> None:
        """Coroutine form of process_job for hosts that already run an event loop."""
        if not self._start(job):
            return None
        outcomes = await run_analyzers_async(self.catalog, job.filter.parameters, self.config)
        aggregate(job, outcomes, self.config.summary_length)
        return None

    def _start(self, job: Job) -> bool:
        if not is_eligible(job):
            return False
        logger.info(
            f"[analyze] job {job.id}: running {len(self.catalog.enabled())} analyzers "
            f"on {sorted(job.filter.parameters)}"
        )
        return True
