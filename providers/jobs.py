from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Protocol, runtime_checkable, Any, Dict, Optional


@dataclass(frozen=True)
class RemoteStart:
    """
    What a remote "start" call gave back.

    handle:    opaque, passed back unchanged on every probe
    remote_id: id echoed by the remote service, if any
    """
    handle: Any
    remote_id: Optional[str] = None


@dataclass(frozen=True)
class RemoteProbe:
    """
    Normalized answer to a single status check.

    done=False            -> still running
    done=True, error set  -> remote failure / cancellation
    done=True, no error   -> success; result may be None (nothing to fetch)
    """
    done: bool
    error: Optional[str] = None
    result: Any = None


def job_key_suffix(job_id: str) -> str:
    """Short, filename-safe tag derived from a job id (operation names contain "/")."""
    return hashlib.sha256(job_id.encode("utf-8")).hexdigest()[:8]


@runtime_checkable
class JobKind(Protocol):
    """
    One family of long-running remote jobs (video render, research agent).

    Prompt building and response parsing live in the implementation.
    validate runs before any remote call; a ValueError there means bad
    input, not a failed launch.
    """

    name: str
    content_type: str

    def validate(self, params: Dict[str, Any]) -> None: ...

    async def start(self, params: Dict[str, Any]) -> RemoteStart: ...

    async def probe(self, handle: Any) -> RemoteProbe: ...

    async def fetch(self, result: Any) -> Optional[bytes]:
        """
        Bytes to save for a completed job, or None when the result carries
        nothing to fetch. May raise.
        """
        ...

    def artifact_key(self, job_id: str, result: Any) -> str:
        """Storage key for a completed job. Distinct job ids never share a key."""
        ...

    def summarize(self, result: Any) -> Dict[str, Any]:
        """Small, JSON-safe extras surfaced next to the status (uri, text outputs)."""
        ...
