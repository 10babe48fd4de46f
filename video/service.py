from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from providers.genai import GenAIClient
from providers.jobs import JobKind, RemoteProbe, RemoteStart, job_key_suffix

log = logging.getLogger(__name__)

ASPECT_RATIOS = ("16:9", "9:16")


def build_video_config(aspect_ratio: str = "16:9", negative_prompt: Optional[str] = None) -> Dict[str, Any]:
    if aspect_ratio not in ASPECT_RATIOS:
        raise ValueError(f"Invalid aspect ratio: {aspect_ratio}. Valid: {', '.join(ASPECT_RATIOS)}")
    config: Dict[str, Any] = {"aspectRatio": aspect_ratio}
    if negative_prompt and negative_prompt.strip():
        config["negativePrompt"] = negative_prompt.strip()
    return config


def extract_video_uri(response: Any) -> Optional[str]:
    """
    Pull the first generated video's uri out of a finished operation's
    response. Accepts both REST (generateVideoResponse.generatedSamples)
    and SDK-style (generatedVideos) shapes.
    """
    if not isinstance(response, dict):
        return None

    for container, list_key in (
        (response.get("generateVideoResponse"), "generatedSamples"),
        (response, "generatedVideos"),
        (response, "generatedSamples"),
    ):
        if not isinstance(container, dict):
            continue
        items = container.get(list_key)
        if not isinstance(items, list) or not items:
            continue
        first = items[0] if isinstance(items[0], dict) else {}
        video = first.get("video") if isinstance(first.get("video"), dict) else {}
        uri = (video.get("uri") or "").strip()
        if uri:
            return uri
    return None


def _error_text(error: Any) -> str:
    if isinstance(error, dict):
        msg = (error.get("message") or "").strip()
        code = error.get("code")
        if msg and code is not None:
            return f"{msg} (code {code})"
        return msg or str(error)
    return str(error or "") or "Unknown error"


class VideoJobKind(JobKind):
    """
    Veo video generation as a long-running operation.

    handle: the operation name returned by predictLongRunning
    result: the operation's "response" object (may be empty)
    """

    name = "video"
    content_type = "video/mp4"

    def __init__(self, genai: GenAIClient, model: Optional[str] = None) -> None:
        self.genai = genai
        self.model = model

    def validate(self, params: Dict[str, Any]) -> None:
        if not (params.get("prompt") or "").strip():
            raise ValueError("No video prompt provided")
        build_video_config(params.get("aspect_ratio") or "16:9", params.get("negative_prompt"))

    async def start(self, params: Dict[str, Any]) -> RemoteStart:
        self.validate(params)
        prompt = params["prompt"].strip()
        config = build_video_config(
            params.get("aspect_ratio") or "16:9",
            params.get("negative_prompt"),
        )

        operation = await self.genai.generate_videos(prompt, model=self.model, config=config)
        name = (operation.get("name") or "").strip() if isinstance(operation, dict) else ""
        if not name:
            # no handle to probe later, so no local fallback id either (DESIGN.md, "Remote returns no id")
            raise RuntimeError("Video generation returned no operation name")
        return RemoteStart(handle=name, remote_id=name)

    async def probe(self, handle: Any) -> RemoteProbe:
        op = await self.genai.get_operation(str(handle))
        if not op.get("done"):
            return RemoteProbe(done=False)
        if op.get("error"):
            return RemoteProbe(done=True, error=_error_text(op["error"]))
        return RemoteProbe(done=True, result=op.get("response") or None)

    async def fetch(self, result: Any) -> Optional[bytes]:
        uri = extract_video_uri(result)
        if not uri:
            return None
        return await self.genai.download(uri)

    def artifact_key(self, job_id: str, result: Any) -> str:
        return f"video-{int(time.time() * 1000)}-{job_key_suffix(job_id)}.mp4"

    def summarize(self, result: Any) -> Dict[str, Any]:
        uri = extract_video_uri(result)
        return {"video_uri": uri} if uri else {}
