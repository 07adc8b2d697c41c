"""
sensoroni/analyze/synthesizer.py

Turns one analyzer's raw outcome into a JobResult.

Order of precedence:
    1. Any terminal error (launch failure, non-zero exit, timeout) yields the
       fixed summary "internal_failure"; captured output is ignored.
    2. Output that parses as JSON with a textual "summary" field uses that
       field.
    3. Anything else (other JSON, invalid JSON, empty output) uses the raw
       text verbatim.
    4. Summaries longer than the configured length are cut to that many
       characters and suffixed with "...".
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from sensoroni.analyze.models import ExecutionOutcome
from sensoroni.base.config import DEFAULT_SUMMARY_LENGTH
from sensoroni.model.job import JobResult

INTERNAL_FAILURE = "internal_failure"
TRUNCATION_SUFFIX = "..."


class ParseStatus(str, Enum):
    SUMMARY_FIELD = "summary_field"
    NO_SUMMARY_FIELD = "no_summary_field"
    INVALID = "invalid"


@dataclass(frozen=True)
class ParsedOutput:
    status: ParseStatus
    text: str  # candidate summary before truncation
    data: Dict[str, Any] = field(default_factory=dict)


def parse_output(raw: bytes) -> ParsedOutput:
    text = raw.decode("utf-8", errors="replace")

    try:
        payload = json.loads(text)
    except (ValueError, RecursionError):
        return ParsedOutput(ParseStatus.INVALID, text)

    if not isinstance(payload, dict):
        return ParsedOutput(ParseStatus.NO_SUMMARY_FIELD, text)

    summary = payload.get("summary")
    if isinstance(summary, str):
        return ParsedOutput(ParseStatus.SUMMARY_FIELD, summary, payload)
    return ParsedOutput(ParseStatus.NO_SUMMARY_FIELD, text, payload)


def truncate_summary(text: str, length: int = DEFAULT_SUMMARY_LENGTH) -> str:
    if len(text) <= length:
        return text
    return text[:length] + TRUNCATION_SUFFIX


def synthesize(outcome: ExecutionOutcome, summary_length: int = DEFAULT_SUMMARY_LENGTH) -> JobResult:
    if outcome.error is not None:
        return JobResult(id=outcome.analyzer_id, summary=INTERNAL_FAILURE)

    parsed = parse_output(outcome.output)
    return JobResult(
        id=outcome.analyzer_id,
        summary=truncate_summary(parsed.text, summary_length),
        data=parsed.data,
    )
