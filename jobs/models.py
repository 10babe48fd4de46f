"""jobs/models.py

Plain dataclasses for the job core. No I/O here.

Job.status is the remote job's lifecycle as we have observed it.
JobResult.status is what a caller gets back from a check or a wait and is
a superset: it can also say the id is unknown (not_found), that the local
polling budget ran out (timeout), or that local polling was cancelled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

JobState = Literal["pending", "processing", "completed", "failed"]

ResultStatus = Literal[
    "pending",
    "processing",
    "completed",
    "failed",
    "not_found",
    "timeout",
    "cancelled",
]

TERMINAL_STATES = ("completed", "failed")

# Observation order. A later observation of the same id never ranks lower.
STATE_RANK: Dict[str, int] = {
    "pending": 0,
    "processing": 1,
    "completed": 2,
    "failed": 2,
}

NOT_FOUND_MESSAGE = "Operation not found. It may have expired or the process was restarted."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Job:
    id: str
    kind: str
    remote_handle: Any
    started_at: datetime = field(default_factory=_utcnow)
    status: JobState = "pending"
    params: Dict[str, Any] = field(default_factory=dict)
    artifact: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def elapsed_seconds(self, now: Optional[datetime] = None) -> float:
        return max(0.0, ((now or _utcnow()) - self.started_at).total_seconds())

    def advance(self, new_status: JobState) -> None:
        """
        Move forward in the lifecycle. Backward or out-of-terminal moves are
        ignored, which keeps observations for one id monotonic.
        """
        if self.is_terminal:
            return
        if STATE_RANK[new_status] < STATE_RANK[self.status]:
            return
        self.status = new_status

    def set_artifact(self, path: str) -> None:
        if self.artifact is not None:
            raise RuntimeError(f"Artifact for job {self.id} is already set")
        self.artifact = path


@dataclass
class ProbeOutcome:
    """
    What the prober observed for one id on one tick.

    status is one of pending/processing/completed/failed/not_found.
    result is the raw remote payload, present only for completed.
    """
    job_id: str
    status: ResultStatus
    job: Optional[Job] = None
    result: Any = None
    error: Optional[str] = None


@dataclass
class JobResult:
    id: str
    status: ResultStatus
    kind: Optional[str] = None
    artifact: Optional[str] = None
    error: Optional[str] = None
    warning: Optional[str] = None
    elapsed_seconds: float = 0.0
    attempts: Optional[int] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "completed"

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "kind": self.kind,
            "status": self.status,
            "artifact": self.artifact,
            "error": self.error,
            "warning": self.warning,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "attempts": self.attempts,
        }
        out.update(self.extras)
        return out


@dataclass(frozen=True)
class ProgressEvent:
    """
    Synthetic progress: derived from the attempt count, not from the remote
    service, which only exposes a done flag. Do not present it as accurate.
    """
    job_id: str
    attempt: int
    max_attempts: int
    percent: float
    elapsed_seconds: float
    status: ResultStatus
