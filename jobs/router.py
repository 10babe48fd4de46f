# jobs/router.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException

from core.deps import JobsDep
from jobs.contracts import (
    JobListResponse,
    JobResultResponse,
    JobStartedResponse,
    WaitRequest,
    result_response,
    started_response,
    summary,
)
from jobs.errors import LaunchFailure, TransientPollError
from jobs.manager import JobManager
from jobs.models import NOT_FOUND_MESSAGE
from jobs.polling import wait_for_job

log = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


# ---------------------------------------------------------------------
# Shared handlers (used by /video and /research routers)
# ---------------------------------------------------------------------

def _ensure_kind(jobs: JobManager, job_id: str, kind: str) -> None:
    # an id of another kind is simply not one of ours
    job = jobs.registry.get(job_id)
    if job is not None and job.kind != kind:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)


async def start_job_or_http(jobs: JobManager, kind: str, params: Dict[str, Any]) -> JobStartedResponse:
    try:
        job = await jobs.start_job(kind, params)
    except LaunchFailure as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return started_response(job)


async def check_job_or_http(jobs: JobManager, job_id: str, kind: str) -> JobResultResponse:
    _ensure_kind(jobs, job_id, kind)
    try:
        res = await jobs.check_job(job_id)
    except TransientPollError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    if res.status == "not_found":
        raise HTTPException(status_code=404, detail=res.error or NOT_FOUND_MESSAGE)
    return result_response(res)


async def wait_job_or_http(
    jobs: JobManager,
    job_id: str,
    kind: str,
    req: Optional[WaitRequest],
    settings: Any,
) -> JobResultResponse:
    _ensure_kind(jobs, job_id, kind)
    budget = settings.polling.for_kind(kind)
    interval = budget.interval_seconds
    max_attempts = budget.max_attempts
    if req is not None:
        if req.interval_seconds is not None:
            interval = req.interval_seconds
        if req.max_attempts is not None:
            max_attempts = req.max_attempts

    res = await wait_for_job(
        jobs,
        job_id,
        interval,
        max_attempts,
        progress_step=budget.progress_step,
        progress_cap=budget.progress_cap,
    )
    if res.status == "not_found":
        raise HTTPException(status_code=404, detail=res.error or NOT_FOUND_MESSAGE)
    return result_response(res)


# ---------------------------------------------------------------------
# GET /jobs   (diagnostics listing of outstanding jobs)
# ---------------------------------------------------------------------

@router.get("", response_model=JobListResponse)
def list_jobs(jobs: JobsDep):
    return JobListResponse(jobs=[summary(j) for j in jobs.list_jobs()])
