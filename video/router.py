# video/router.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter

from core.deps import JobsDep, SettingsDep
from jobs.contracts import JobResultResponse, JobStartedResponse, WaitRequest
from jobs.router import check_job_or_http, start_job_or_http, wait_job_or_http
from video.contracts import VideoStartRequest

router = APIRouter(prefix="/video", tags=["video"])

KIND = "video"


@router.post("", response_model=JobStartedResponse)
async def start_video(req: VideoStartRequest, jobs: JobsDep):
    """
    Start Veo video generation. Takes 1-5 minutes remotely; keep the returned
    id and check it with GET /video/{id}/status.
    """
    return await start_job_or_http(
        jobs,
        KIND,
        {
            "prompt": req.prompt,
            "aspect_ratio": req.aspect_ratio,
            "negative_prompt": req.negative_prompt,
        },
    )


@router.get("/{job_id:path}/status", response_model=JobResultResponse, response_model_exclude_none=True)
async def check_video(job_id: str, jobs: JobsDep):
    return await check_job_or_http(jobs, job_id, KIND)


@router.post("/{job_id:path}/wait", response_model=JobResultResponse, response_model_exclude_none=True)
async def wait_video(job_id: str, jobs: JobsDep, settings: SettingsDep, req: Optional[WaitRequest] = None):
    return await wait_job_or_http(jobs, job_id, KIND, req, settings)
