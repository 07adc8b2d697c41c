"""Pytest configuration for sensoroni."""
import json
import os
import sys
import textwrap
from pathlib import Path

import pytest

from sensoroni.base.config import AnalyzeConfig


def pytest_configure():
    os.environ.setdefault("SENSORONI_DEBUG", "true")


def write_analyzer(root: Path, analyzer_id: str, body: str, descriptor=None, requirements=None) -> Path:
    """
    Create an analyzer package runnable as "python -m <analyzer_id>" from root.

    `body` is the source of __main__.py; the job input arrives as sys.argv[1].
    """
    directory = root / analyzer_id
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "__init__.py").write_text("", encoding="utf-8")
    (directory / "__main__.py").write_text(textwrap.dedent(body), encoding="utf-8")
    if descriptor is not None:
        text = descriptor if isinstance(descriptor, str) else json.dumps(descriptor)
        (directory / f"{analyzer_id}.json").write_text(text, encoding="utf-8")
    if requirements is not None:
        (directory / "requirements.txt").write_text(requirements, encoding="utf-8")
    return directory


ECHO_ANALYZER = """
    import json
    import sys

    params = json.loads(sys.argv[1])
    print(json.dumps({"summary": "seen " + ",".join(sorted(params)), "status": "ok"}))
"""

LONG_ANALYZER = """
    print("something here that is so long it will need to be truncated")
"""

FAILING_ANALYZER = """
    import sys

    print('{"summary": "should never surface"}')
    sys.stderr.write("boom\\n")
    sys.exit(3)
"""

SLOW_ANALYZER = """
    import sys
    import time

    sys.stdout.write("partial")
    sys.stdout.flush()
    time.sleep(30)
"""


@pytest.fixture
def analyzers_dir(tmp_path):
    root = tmp_path / "analyzers"
    root.mkdir()
    return root


@pytest.fixture
def make_config(tmp_path, analyzers_dir):
    def _make(**overrides) -> AnalyzeConfig:
        values = dict(
            analyzers_path=str(analyzers_dir),
            site_packages_path=str(tmp_path / "site-packages"),
            source_packages_path=str(tmp_path / "source-packages"),
            analyzer_executable=sys.executable,
            analyzer_installer="pip3",
            timeout_ms=20000,
            parallel_limit=5,
            summary_length=50,
        )
        values.update(overrides)
        return AnalyzeConfig(**values)

    return _make


ANALYZER_SOURCES = {
    "echo": ECHO_ANALYZER,
    "long": LONG_ANALYZER,
    "failing": FAILING_ANALYZER,
    "slow": SLOW_ANALYZER,
}


@pytest.fixture
def add_analyzer(analyzers_dir):
    """add_analyzer("whois", "long") or add_analyzer("x", source="print('hi')")."""

    def _add(analyzer_id, kind="echo", source=None, descriptor=None, requirements=None) -> Path:
        body = source if source is not None else ANALYZER_SOURCES[kind]
        return write_analyzer(analyzers_dir, analyzer_id, body, descriptor=descriptor, requirements=requirements)

    return _add
