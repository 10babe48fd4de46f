from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from providers.genai import GenAIClient
from providers.jobs import JobKind, RemoteProbe, RemoteStart, job_key_suffix

log = logging.getLogger(__name__)

# Interactions API statuses
DONE_OK = {"completed"}
DONE_ERROR = {"failed", "cancelled", "canceled", "expired"}

DEFAULT_FORMAT = "report"


def build_research_prompt(query: str, fmt: Optional[str] = None) -> str:
    q = (query or "").strip()
    if not q:
        raise ValueError("No research question provided")
    f = (fmt or "").strip()
    if f and f.lower() != DEFAULT_FORMAT:
        return f"{q}\n\nFormat the output as: {f}"
    return q


def text_outputs(interaction: Any) -> List[str]:
    """Text of every output with type == "text", in order."""
    if not isinstance(interaction, dict):
        return []
    out: List[str] = []
    for o in interaction.get("outputs") or []:
        if isinstance(o, dict) and o.get("type") == "text":
            t = o.get("text")
            if isinstance(t, str) and t:
                out.append(t)
    return out


def _error_text(interaction: Dict[str, Any], status: str) -> str:
    err = interaction.get("error")
    if isinstance(err, dict):
        msg = (err.get("message") or "").strip()
        if msg:
            return msg
    elif isinstance(err, str) and err.strip():
        return err.strip()
    return status


class ResearchJobKind(JobKind):
    """
    Deep Research agent run in the background via the Interactions API.

    handle: the interaction id
    result: the full interaction object
    """

    name = "research"
    content_type = "application/json"

    def __init__(self, genai: GenAIClient, agent: str) -> None:
        self.genai = genai
        self.agent = agent

    def validate(self, params: Dict[str, Any]) -> None:
        build_research_prompt(params.get("query") or "", params.get("format"))

    async def start(self, params: Dict[str, Any]) -> RemoteStart:
        prompt = build_research_prompt(params.get("query") or "", params.get("format"))
        interaction = await self.genai.create_interaction(
            {
                "input": prompt,
                "agent": self.agent,
                "background": True,
                "agent_config": {
                    "type": "deep-research",
                    "thinking_summaries": "auto",
                },
            }
        )
        rid = (interaction.get("id") or "").strip() if isinstance(interaction, dict) else ""
        if not rid:
            # no handle to probe later, so no local fallback id either (DESIGN.md, "Remote returns no id")
            raise RuntimeError("Deep research not available: no interaction id returned")
        return RemoteStart(handle=rid, remote_id=rid)

    async def probe(self, handle: Any) -> RemoteProbe:
        interaction = await self.genai.get_interaction(str(handle))
        status = str(interaction.get("status") or "unknown").strip().lower()
        if status in DONE_OK:
            return RemoteProbe(done=True, result=interaction)
        if status in DONE_ERROR:
            return RemoteProbe(done=True, error=_error_text(interaction, status))
        return RemoteProbe(done=False)

    async def fetch(self, result: Any) -> Optional[bytes]:
        if not isinstance(result, dict) or not result:
            return None
        full = {
            "id": result.get("id"),
            "status": result.get("status"),
            "created": result.get("created"),
            "agent": result.get("agent"),
            "model": result.get("model"),
            "outputs": result.get("outputs"),
            "rawInteraction": result,
        }
        return json.dumps(full, indent=2, ensure_ascii=False, default=str).encode("utf-8")

    def artifact_key(self, job_id: str, result: Any) -> str:
        ts = datetime.now(timezone.utc).isoformat().replace(":", "-").replace(".", "-").replace("+", "-")
        return f"deep-research-{ts}-{job_key_suffix(job_id)}.json"

    def summarize(self, result: Any) -> Dict[str, Any]:
        texts = text_outputs(result)
        return {
            "outputs": texts,
            "text": texts[-1] if texts else "Research completed but no output found",
        }


async def followup_research(genai: GenAIClient, model: str, research_id: str, question: str) -> str:
    """
    Ask a follow-up question against a finished research interaction.
    Works after the job has left the registry; only the remote id is needed.
    """
    q = (question or "").strip()
    if not q:
        raise ValueError("No follow-up question provided")
    try:
        interaction = await genai.create_interaction(
            {
                "input": q,
                "model": model,
                "previous_interaction_id": research_id,
            }
        )
    except Exception as exc:
        raise RuntimeError(f"Research follow-up failed: {exc}") from exc

    texts = text_outputs(interaction)
    return texts[-1] if texts else "No text response received"
