"""
End-to-end tests for the analyze processor against real analyzer processes.
"""
import pytest

from sensoroni.agent.jobmgr import JobManager
from sensoroni.analyze.installer import InstallResult
from sensoroni.analyze.processor import AnalyzeProcessor
from sensoroni.analyze.synthesizer import INTERNAL_FAILURE
from sensoroni.base.config import (
    DEFAULT_ANALYZER_EXECUTABLE,
    DEFAULT_ANALYZER_INSTALLER,
    DEFAULT_ANALYZERS_PATH,
    DEFAULT_PARALLEL_LIMIT,
    DEFAULT_SITE_PACKAGES_PATH,
    DEFAULT_SOURCE_PACKAGES_PATH,
    DEFAULT_SUMMARY_LENGTH,
    DEFAULT_TIMEOUT_MS,
)
from sensoroni.errors import ErrorCode, SensoroniError
from sensoroni.model.job import Job


@pytest.fixture
def module_config(make_config):
    return make_config().to_mapping()


def _noop_installer(definition, timeout=None):
    return InstallResult(analyzer_id=definition.id, status="installed", returncode=0)


def test_init_with_defaults():
    processor = AnalyzeProcessor(None)
    with pytest.raises(SensoroniError):
        processor.init({})

    config = processor.config
    assert config.analyzers_path == DEFAULT_ANALYZERS_PATH
    assert config.site_packages_path == DEFAULT_SITE_PACKAGES_PATH
    assert config.source_packages_path == DEFAULT_SOURCE_PACKAGES_PATH
    assert config.analyzer_executable == DEFAULT_ANALYZER_EXECUTABLE
    assert config.analyzer_installer == DEFAULT_ANALYZER_INSTALLER
    assert config.timeout_ms == DEFAULT_TIMEOUT_MS
    assert config.parallel_limit == DEFAULT_PARALLEL_LIMIT
    assert config.summary_length == DEFAULT_SUMMARY_LENGTH


def test_init_without_job_manager_still_builds_catalog(add_analyzer, module_config):
    add_analyzer("whois", "long", requirements="requests\n")
    processor = AnalyzeProcessor(None, installer=_noop_installer)

    with pytest.raises(SensoroniError) as exc_info:
        processor.init(module_config)

    assert exc_info.value.code == ErrorCode.ANALYZE_REGISTRATION_FAILED
    assert processor.catalog.ids() == ["whois"]


def test_init_registers_with_job_manager(add_analyzer, module_config):
    add_analyzer("whois", "long")
    manager = JobManager()
    processor = AnalyzeProcessor(manager)

    processor.init(module_config)

    assert manager.processors == [processor]


def test_init_with_no_analyzers_registers_then_fails(module_config):
    manager = JobManager()
    processor = AnalyzeProcessor(manager)

    with pytest.raises(SensoroniError) as exc_info:
        processor.init(module_config)

    assert exc_info.value.code == ErrorCode.ANALYZE_NO_ANALYZERS_LOADED
    assert manager.processors == [processor]


def test_job_kind_missing(module_config):
    processor = AnalyzeProcessor(JobManager())
    with pytest.raises(SensoroniError):
        processor.init(module_config)

    job = Job.new()
    assert processor.process_job(job) is None
    assert job.results == []


def test_job_filter_missing(add_analyzer, module_config):
    add_analyzer("whois", "long")
    processor = AnalyzeProcessor(JobManager())
    processor.init(module_config)

    job = Job.new("analyze")
    assert processor.process_job(job) is None
    assert job.results == []


def test_analyzers_missing(module_config):
    processor = AnalyzeProcessor(JobManager())
    with pytest.raises(SensoroniError):
        processor.init(module_config)

    job = Job.new("analyze", {"foo": "bar"})
    with pytest.raises(SensoroniError) as exc_info:
        processor.process_job(job)

    assert exc_info.value.code == ErrorCode.ANALYZE_NO_SUCCESS
    assert job.results == []


def test_analyzers_executed(add_analyzer, module_config):
    add_analyzer("whois", "long")
    processor = AnalyzeProcessor(JobManager())
    processor.init(module_config)

    job = Job.new("analyze", {"foo": "bar"})
    processor.process_job(job)

    assert len(job.results) == 1
    assert job.results[0].id == "whois"
    assert job.results[0].summary == "something here that is so long it will need to be ..."


def test_disabled_analyzers_produce_no_result(add_analyzer, module_config):
    add_analyzer("whois", "long")
    add_analyzer("muted", descriptor={"enabled": False})
    processor = AnalyzeProcessor(JobManager())
    processor.init(module_config)

    job = Job.new("analyze", {"foo": "bar"})
    processor.process_job(job)

    assert [r.id for r in job.results] == ["whois"]


def test_partial_failure_is_not_a_stage_failure(add_analyzer, make_config):
    add_analyzer("echo")
    add_analyzer("crash", "failing")
    add_analyzer("slow", "slow")
    config = make_config(timeout_ms=1000, parallel_limit=2).to_mapping()
    processor = AnalyzeProcessor(JobManager())
    processor.init(config)

    job = Job.new("analyze", {"value": "example.com"})
    processor.process_job(job)

    summaries = {r.id: r.summary for r in job.results}
    assert summaries == {
        "echo": "seen value",
        "crash": INTERNAL_FAILURE,
        "slow": INTERNAL_FAILURE,
    }


def test_every_analyzer_failing_is_a_stage_failure(add_analyzer, module_config):
    add_analyzer("crash", "failing")
    processor = AnalyzeProcessor(JobManager())
    processor.init(module_config)

    job = Job.new("analyze", {"foo": "bar"})
    with pytest.raises(SensoroniError):
        processor.process_job(job)

    assert [(r.id, r.summary) for r in job.results] == [("crash", INTERNAL_FAILURE)]


@pytest.mark.asyncio
async def test_process_job_async_runs_inside_an_event_loop(add_analyzer, module_config):
    add_analyzer("whois", "long")
    processor = AnalyzeProcessor(JobManager())
    processor.init(module_config)

    job = Job.new("analyze", {"foo": "bar"})
    assert await processor.process_job_async(job) is None

    assert [(r.id, r.summary) for r in job.results] == [
        ("whois", "something here that is so long it will need to be ...")
    ]


@pytest.mark.asyncio
async def test_process_job_async_skips_ineligible_jobs(add_analyzer, module_config):
    add_analyzer("whois", "long")
    processor = AnalyzeProcessor(JobManager())
    processor.init(module_config)

    job = Job.new("other", {"foo": "bar"})
    await processor.process_job_async(job)

    assert job.results == []
