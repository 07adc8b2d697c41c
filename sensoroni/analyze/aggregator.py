import logging
from typing import Iterable

from sensoroni.analyze.models import ExecutionOutcome
from sensoroni.analyze.synthesizer import INTERNAL_FAILURE, synthesize
from sensoroni.base.config import DEFAULT_SUMMARY_LENGTH
from sensoroni.errors import ErrorCode, SensoroniError
from sensoroni.model.job import Job

logger = logging.getLogger(__name__)


def aggregate(job: Job, outcomes: Iterable[ExecutionOutcome], summary_length: int = DEFAULT_SUMMARY_LENGTH) -> None:
    """
    Append one result per outcome to the job, in outcome order.

    Raises:
        SensoroniError(ANALYZE_NO_SUCCESS) when no analyzer produced a usable
        result. Results appended before the error stay on the job.
    """
    succeeded = 0
    attempted = 0
    for outcome in outcomes:
        attempted += 1
        result = synthesize(outcome, summary_length)
        job.results.append(result)
        if not outcome.failed and result.summary != INTERNAL_FAILURE:
            succeeded += 1

    logger.info(f"[analyze] job {job.id}: {succeeded}/{attempted} analyzers succeeded")

    if succeeded == 0:
        raise SensoroniError(
            ErrorCode.ANALYZE_NO_SUCCESS,
            "No analyzers processed successfully",
            details={"job_id": job.id, "attempted": attempted},
        )
