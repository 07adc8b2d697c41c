from sensoroni.analyze.gate import ANALYZE_JOB_KIND, is_eligible
from sensoroni.model.job import Job


def test_other_kind_is_not_eligible():
    job = Job.new("query", {"foo": "bar"})
    assert is_eligible(job) is False


def test_missing_kind_is_not_eligible():
    assert is_eligible(Job.new()) is False


def test_analyze_without_parameters_is_not_eligible():
    # Filter not populated yet; the job will be offered again later.
    assert is_eligible(Job.new(ANALYZE_JOB_KIND)) is False


def test_analyze_with_parameters_is_eligible():
    assert is_eligible(Job.new(ANALYZE_JOB_KIND, {"foo": "bar"})) is True


def test_gate_does_not_touch_results():
    job = Job.new(ANALYZE_JOB_KIND)
    is_eligible(job)
    assert job.results == []
