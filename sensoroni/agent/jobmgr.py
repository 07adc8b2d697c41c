"""
sensoroni/agent/jobmgr.py

Minimal job manager: holds the registered processors and offers each job to
every one of them. Processors decide for themselves whether a job concerns
them; a processor failure is recorded on the job rather than raised.
"""

from __future__ import annotations

import logging
from typing import List, Protocol

from sensoroni.errors import SensoroniError
from sensoroni.model.job import Job, JobStatus

logger = logging.getLogger(__name__)


class JobProcessor(Protocol):
    def process_job(self, job: Job) -> None: ...


class JobManager:
    def __init__(self):
        self._processors: List[JobProcessor] = []

    @property
    def processors(self) -> List[JobProcessor]:
        return list(self._processors)

    def add_job_processor(self, processor: JobProcessor) -> None:
        if processor in self._processors:
            return
        self._processors.append(processor)
        logger.info(f"[jobmgr] registered processor {type(processor).__name__}")

    def process_job(self, job: Job) -> bool:
        """
        Offer the job to every processor.

        Returns:
            True if no processor failed. The job is marked completed when at
            least one result was attached, incomplete on failure, and left
            pending otherwise so it can be offered again later.
        """
        before = len(job.results)
        failed = False

        for processor in self._processors:
            try:
                processor.process_job(job)
            except SensoroniError as exc:
                failed = True
                job.failure = exc.message
                job.fail_count += 1
                logger.warning(f"[jobmgr] job {job.id} failed in {type(processor).__name__}: {exc}")

        if failed:
            job.status = JobStatus.INCOMPLETE
        elif len(job.results) > before:
            job.status = JobStatus.COMPLETED
        return not failed
