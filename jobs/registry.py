from __future__ import annotations

import threading
from typing import Dict, List, Optional

from jobs.models import Job


class JobRegistry:
    """
    In-memory store of outstanding jobs keyed by id.

    Memory only: a fresh process starts empty, so ids from before a restart
    come back as absent. Never raises on unknown ids.
    """

    def __init__(self) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def put(self, job_id: str, job: Job) -> None:
        with self._lock:
            self._jobs[job_id] = job

    def add_if_absent(self, job_id: str, job: Job) -> bool:
        with self._lock:
            if job_id in self._jobs:
                return False
            self._jobs[job_id] = job
            return True

    def get(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.get(job_id)

    def remove(self, job_id: str) -> None:
        with self._lock:
            self._jobs.pop(job_id, None)

    def take(self, job_id: str, job: Job) -> bool:
        """
        Remove job_id only if it still maps to this exact Job object.
        Exactly one caller wins for a given entry.
        """
        with self._lock:
            if self._jobs.get(job_id) is not job:
                return False
            del self._jobs[job_id]
            return True

    def list(self) -> List[Job]:
        with self._lock:
            return list(self._jobs.values())

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
