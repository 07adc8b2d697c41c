"""
sensoroni command line interface.

Usage examples:
    python -m sensoroni analyzers
    python -m sensoroni analyze value=example.com artifactType=domain
    python -m sensoroni --config analyze.json analyze value=8.8.8.8
"""

import argparse
import json
import logging
from dataclasses import replace
from typing import Dict, List, Optional

from sensoroni.agent.jobmgr import JobManager
from sensoroni.analyze.gate import ANALYZE_JOB_KIND
from sensoroni.analyze.processor import AnalyzeProcessor
from sensoroni.base.config import SensoroniConfig, get_config, set_config, setup_logging
from sensoroni.errors import ErrorCode, SensoroniError
from sensoroni.model.job import Job

logger = logging.getLogger(__name__)


def parse_parameters(pairs: List[str]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got '{pair}'")
        params[key] = value
    return params


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sensoroni", description="Sensoroni analyze job processor")
    parser.add_argument("--config", help="JSON file with the analyze module config map")
    parser.add_argument("--log-level", help="Override log level (DEBUG, INFO, ...)")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("analyzers", help="List registered analyzers")
    analyze = sub.add_parser("analyze", help="Run every enabled analyzer against the given parameters")
    analyze.add_argument("parameters", nargs="*", metavar="KEY=VALUE", help="Job filter parameters")
    return parser


def _bootstrap(manager: JobManager) -> AnalyzeProcessor:
    processor = AnalyzeProcessor(manager)
    try:
        processor.init(get_config().analyze.to_mapping())
    except SensoroniError as exc:
        if exc.code != ErrorCode.ANALYZE_NO_ANALYZERS_LOADED:
            raise
        logger.warning(str(exc))
    return processor


def cmd_analyzers(args: argparse.Namespace) -> int:
    processor = _bootstrap(JobManager())
    for definition in processor.catalog:
        state = "enabled" if definition.enabled else "disabled"
        deps = "deps" if definition.has_requirements else "no-deps"
        print(f"{definition.id:<24} {state:<9} {deps:<8} {definition.description}")
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    manager = JobManager()
    _bootstrap(manager)

    job = Job.new(ANALYZE_JOB_KIND, parse_parameters(args.parameters))
    ok = manager.process_job(job)
    print(json.dumps(job.model_dump(mode="json", by_alias=True), indent=2))
    return 0 if ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = SensoroniConfig.from_file(args.config) if args.config else SensoroniConfig.from_env()
    except SensoroniError as exc:
        parser.error(str(exc))
    if args.log_level:
        config.log = replace(config.log, level=args.log_level)
    set_config(config)
    setup_logging(config)

    handlers = {"analyzers": cmd_analyzers, "analyze": cmd_analyze}
    try:
        return handlers[args.command](args)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
    except SensoroniError as exc:
        logger.error(str(exc))
        return 2
