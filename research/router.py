# research/router.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException

from core.deps import GenAIDep, JobsDep, SettingsDep
from jobs.contracts import JobResultResponse, JobStartedResponse, WaitRequest
from jobs.router import check_job_or_http, start_job_or_http, wait_job_or_http
from research.contracts import FollowupRequest, FollowupResponse, ResearchStartRequest
from research.service import followup_research

router = APIRouter(prefix="/research", tags=["research"])

KIND = "research"


@router.post("", response_model=JobStartedResponse)
async def start_research(req: ResearchStartRequest, jobs: JobsDep):
    """
    Start a Deep Research agent run. Typically 5-20 minutes (max 60 min).
    """
    return await start_job_or_http(jobs, KIND, {"query": req.query, "format": req.format})


@router.get("/{research_id}/status", response_model=JobResultResponse, response_model_exclude_none=True)
async def check_research(research_id: str, jobs: JobsDep):
    return await check_job_or_http(jobs, research_id, KIND)


@router.post("/{research_id}/wait", response_model=JobResultResponse, response_model_exclude_none=True)
async def wait_research(research_id: str, jobs: JobsDep, settings: SettingsDep, req: Optional[WaitRequest] = None):
    return await wait_job_or_http(jobs, research_id, KIND, req, settings)


@router.post("/{research_id}/followup", response_model=FollowupResponse)
async def research_followup(research_id: str, req: FollowupRequest, genai: GenAIDep, settings: SettingsDep):
    try:
        answer = await followup_research(genai, settings.gemini.pro_model, research_id, req.question)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except RuntimeError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return FollowupResponse(research_id=research_id, question=req.question, answer=answer)
