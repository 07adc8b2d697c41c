import logging

from sensoroni.model.job import Job

logger = logging.getLogger(__name__)

ANALYZE_JOB_KIND = "analyze"


def is_eligible(job: Job) -> bool:
    """
    Decide whether a job should be analyzed at all.

    Jobs of another kind are ignored. Analyze jobs without filter parameters
    are still waiting for the filter to be populated upstream and will be
    offered again later, so they are skipped without error.
    """
    if job.kind != ANALYZE_JOB_KIND:
        return False

    if not job.filter.parameters:
        logger.debug(f"[analyze] job {job.id} has no filter parameters yet; skipping")
        return False

    return True
