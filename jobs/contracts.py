# jobs/contracts.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from jobs.models import Job, JobResult

JobKindName = Literal["video", "research"]


class JobStartedResponse(BaseModel):
    id: str
    kind: str
    status: Literal["pending"] = "pending"
    started_at: datetime


class JobSummary(BaseModel):
    id: str
    kind: str
    status: str
    started_at: datetime
    elapsed_seconds: float


class JobListResponse(BaseModel):
    jobs: List[JobSummary] = []


class JobResultResponse(BaseModel):
    """
    Status body for check/wait endpoints.

    status distinguishes every outcome a UI needs to render:
      completed + artifact, completed without artifact (+ warning),
      failed + error, not_found, timeout, cancelled, or still running.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    kind: Optional[str] = None
    status: str
    artifact: Optional[str] = None
    error: Optional[str] = None
    warning: Optional[str] = None
    elapsed_seconds: float = 0.0
    attempts: Optional[int] = None


class WaitRequest(BaseModel):
    """Overrides for the configured polling budget of the job's kind."""

    interval_seconds: Optional[float] = Field(default=None, ge=0, le=600)
    max_attempts: Optional[int] = Field(default=None, ge=1, le=1000)


def started_response(job: Job) -> JobStartedResponse:
    return JobStartedResponse(id=job.id, kind=job.kind, status="pending", started_at=job.started_at)


def summary(job: Job) -> JobSummary:
    return JobSummary(
        id=job.id,
        kind=job.kind,
        status=job.status,
        started_at=job.started_at,
        elapsed_seconds=round(job.elapsed_seconds(), 3),
    )


def result_response(res: JobResult) -> JobResultResponse:
    body: Dict[str, Any] = res.to_dict()
    return JobResultResponse.model_validate(body)
