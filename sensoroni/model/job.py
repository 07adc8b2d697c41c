"""
sensoroni/model/job.py

Job shapes shared between the job manager and its processors.

Semantics:
    - Job: one unit of work routed by the host. Processors read `kind` and
      `filter.parameters` and append to `results`; they never replace or
      remove existing entries.
    - JobResult: one entry per analyzer that actually ran.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"


class JobFilter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    import_id: str = Field(default="", alias="importId")
    node_id: str = Field(default="", alias="nodeId")
    begin_time: Optional[datetime] = Field(default=None, alias="beginTime")
    end_time: Optional[datetime] = Field(default=None, alias="endTime")
    parameters: Dict[str, Any] = Field(default_factory=dict)


class JobResult(BaseModel):
    id: str
    summary: str
    # Parsed analyzer output when it was a JSON object
    data: Dict[str, Any] = Field(default_factory=dict)


class Job(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    kind: str = ""
    status: JobStatus = JobStatus.PENDING
    filter: JobFilter = Field(default_factory=JobFilter)
    results: List[JobResult] = Field(default_factory=list)
    failure: str = ""
    fail_count: int = Field(default=0, alias="failCount")
    create_time: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="createTime",
    )

    @classmethod
    def new(cls, kind: str = "", parameters: Optional[Dict[str, Any]] = None) -> "Job":
        """A fresh job with an empty result list and the given filter parameters."""
        return cls(kind=kind, filter=JobFilter(parameters=dict(parameters or {})))
