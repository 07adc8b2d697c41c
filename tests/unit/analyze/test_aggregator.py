import pytest

from sensoroni.analyze.aggregator import aggregate
from sensoroni.analyze.models import ExecutionOutcome
from sensoroni.analyze.synthesizer import INTERNAL_FAILURE
from sensoroni.errors import ErrorCode, SensoroniError
from sensoroni.model.job import Job, JobResult


def _ok(analyzer_id, output=b'{"summary": "clean"}'):
    return ExecutionOutcome(analyzer_id=analyzer_id, output=output, returncode=0)


def _failed(analyzer_id):
    return ExecutionOutcome(
        analyzer_id=analyzer_id,
        output=b"partial",
        error=SensoroniError(ErrorCode.ANALYZER_TIMEOUT, "too slow"),
    )


def test_no_outcomes_is_a_stage_failure():
    job = Job.new("analyze", {"foo": "bar"})
    with pytest.raises(SensoroniError) as exc_info:
        aggregate(job, [])
    assert exc_info.value.code == ErrorCode.ANALYZE_NO_SUCCESS
    assert exc_info.value.message == "No analyzers processed successfully"
    assert job.results == []


def test_all_failed_keeps_partial_results_and_raises():
    job = Job.new("analyze", {"foo": "bar"})
    with pytest.raises(SensoroniError):
        aggregate(job, [_failed("a"), _failed("b")])
    assert [r.id for r in job.results] == ["a", "b"]
    assert all(r.summary == INTERNAL_FAILURE for r in job.results)


def test_one_success_is_enough():
    job = Job.new("analyze", {"foo": "bar"})
    aggregate(job, [_failed("a"), _ok("b")])
    assert [(r.id, r.summary) for r in job.results] == [("a", INTERNAL_FAILURE), ("b", "clean")]


def test_results_follow_outcome_order_and_are_appended():
    job = Job.new("analyze", {"foo": "bar"})
    job.results.append(JobResult(id="earlier", summary="kept"))

    aggregate(job, [_ok("z"), _ok("a")])

    assert [r.id for r in job.results] == ["earlier", "z", "a"]


def test_summary_length_is_applied():
    job = Job.new("analyze", {"foo": "bar"})
    aggregate(job, [_ok("long", b"abcdefghij")], summary_length=4)
    assert job.results[0].summary == "abcd..."


def test_literal_internal_failure_output_is_not_a_success():
    job = Job.new("analyze", {"foo": "bar"})
    with pytest.raises(SensoroniError):
        aggregate(job, [_ok("odd", b'{"summary": "internal_failure"}')])
    assert len(job.results) == 1
