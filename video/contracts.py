# video/contracts.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

AspectRatio = Literal["16:9", "9:16"]


class VideoStartRequest(BaseModel):
    """
    Request body for POST /video
    """

    prompt: str = Field(..., min_length=1, description="Description of the video to generate (be detailed!)")
    aspect_ratio: AspectRatio = Field(
        default="16:9",
        description="16:9 for landscape, 9:16 for portrait/mobile",
    )
    negative_prompt: Optional[str] = Field(
        default=None,
        description='Things to avoid in the video (e.g., "text, watermarks, blurry")',
    )
