# research/contracts.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ResearchStartRequest(BaseModel):
    """
    Request body for POST /research
    """

    query: str = Field(..., min_length=1, description="The research question or topic to investigate")
    format: Optional[str] = Field(
        default=None,
        description="Optional output format instructions (e.g., 'technical report with sections')",
    )


class FollowupRequest(BaseModel):
    question: str = Field(..., min_length=1)


class FollowupResponse(BaseModel):
    research_id: str
    question: str
    answer: str
