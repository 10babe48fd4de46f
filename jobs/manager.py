"""jobs/manager.py

Launch, probe and materialize long-running remote jobs.

One JobManager owns one JobRegistry and a set of JobKinds. It is created
once per process by providers.factory and shared by routers and the CLI.

Lifecycle of an entry:
  start_job   -> registry.put (status=pending)
  probe       -> pending becomes processing while the remote says not done
              -> on done, the entry is taken out of the registry *before*
                 anything else happens, so only one caller can ever see the
                 completed payload and materialize it
  materialize -> one fetch + one write into storage
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, Iterable, Optional

from jobs.errors import DownloadFailure, LaunchFailure, TransientPollError
from jobs.models import NOT_FOUND_MESSAGE, Job, JobResult, ProbeOutcome
from jobs.registry import JobRegistry
from providers.jobs import JobKind, RemoteProbe
from providers.storage import StorageProvider

log = logging.getLogger(__name__)


def fallback_job_id(kind: str) -> str:
    return f"{kind}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def _clip(value: Any, max_chars: int = 50) -> str:
    t = str(value or "").strip()
    return t if len(t) <= max_chars else t[:max_chars] + "..."


class JobManager:
    def __init__(
        self,
        kinds: Iterable[JobKind],
        storage: StorageProvider,
        registry: Optional[JobRegistry] = None,
    ) -> None:
        self.kinds: Dict[str, JobKind] = {k.name: k for k in kinds}
        self.storage = storage
        self.registry = registry if registry is not None else JobRegistry()

    def kind(self, name: str) -> JobKind:
        try:
            return self.kinds[name]
        except KeyError:
            raise ValueError(f"Unknown job kind: {name!r}. Known: {sorted(self.kinds)}") from None

    # -----------------------------------------------------------------
    # Launcher
    # -----------------------------------------------------------------

    async def start_job(self, kind: str, params: Dict[str, Any]) -> Job:
        jk = self.kind(kind)
        # bad input surfaces as ValueError; no remote call has been made
        jk.validate(params)
        log.info("Starting %s job: %s", kind, _clip(params.get("prompt") or params.get("query")))

        try:
            started = await jk.start(params)
        except Exception as exc:
            log.error("Error starting %s job: %s", kind, exc)
            raise LaunchFailure(kind, str(exc)) from exc

        job_id = (started.remote_id or "").strip()
        job = Job(id=job_id, kind=kind, remote_handle=started.handle, params=dict(params))

        if not job_id or not self.registry.add_if_absent(job_id, job):
            if job_id:
                log.warning("Remote returned an id already registered (%s); minting a local id", job_id)
            while True:
                job.id = fallback_job_id(kind)
                if self.registry.add_if_absent(job.id, job):
                    break

        log.info("%s job started: %s", kind, job.id)
        return job

    # -----------------------------------------------------------------
    # Prober
    # -----------------------------------------------------------------

    async def probe(self, job_id: str) -> ProbeOutcome:
        job = self.registry.get(job_id)
        if job is None:
            return ProbeOutcome(job_id=job_id, status="not_found", error=NOT_FOUND_MESSAGE)

        jk = self.kind(job.kind)
        log.debug("Checking %s job status: %s", job.kind, job_id)

        try:
            remote: RemoteProbe = await jk.probe(job.remote_handle)
        except Exception as exc:
            raise TransientPollError(job_id, str(exc)) from exc

        if not remote.done:
            # a concurrent probe may have finished the job while we awaited
            if self.registry.get(job_id) is not job:
                return ProbeOutcome(job_id=job_id, status="not_found", error=NOT_FOUND_MESSAGE)
            job.advance("processing")
            return ProbeOutcome(job_id=job_id, status=job.status, job=job)

        if not self.registry.take(job_id, job):
            return ProbeOutcome(job_id=job_id, status="not_found", error=NOT_FOUND_MESSAGE)

        if remote.error:
            job.error = str(remote.error) or "Unknown error"
            job.advance("failed")
            log.warning("%s job failed: %s - %s", job.kind, job_id, job.error)
            return ProbeOutcome(job_id=job_id, status="failed", job=job, error=job.error)

        job.advance("completed")
        log.info("%s job completed: %s", job.kind, job_id)
        return ProbeOutcome(job_id=job_id, status="completed", job=job, result=remote.result)

    # -----------------------------------------------------------------
    # Materializer
    # -----------------------------------------------------------------

    async def materialize(self, job: Job, result: Any) -> Optional[str]:
        """
        One fetch/save attempt for a completed job. Returns the local path,
        None when the result has nothing to fetch, raises DownloadFailure.
        """
        if job.artifact is not None:
            return job.artifact

        jk = self.kind(job.kind)
        try:
            data = await jk.fetch(result)
            if data is None:
                return None
            path = self.storage.put_object(
                jk.artifact_key(job.id, result),
                data,
                content_type=jk.content_type,
            )
        except Exception as exc:
            log.warning("Failed to save artifact for %s job %s: %s", job.kind, job.id, exc)
            raise DownloadFailure(job.id, str(exc)) from exc

        job.set_artifact(str(path))
        log.info("%s job %s saved to: %s", job.kind, job.id, path)
        return job.artifact

    async def finish(self, outcome: ProbeOutcome, attempts: Optional[int] = None) -> JobResult:
        """Turn a probe outcome into a caller-facing result, materializing on completion."""
        job = outcome.job
        res = JobResult(
            id=outcome.job_id,
            status=outcome.status,
            kind=job.kind if job else None,
            error=outcome.error,
            elapsed_seconds=job.elapsed_seconds() if job else 0.0,
            attempts=attempts,
        )
        if job is None or outcome.status != "completed":
            return res

        jk = self.kind(job.kind)
        try:
            res.extras.update(jk.summarize(outcome.result) or {})
        except Exception as exc:
            log.warning("Could not summarize %s job %s: %s", job.kind, job.id, exc)

        try:
            res.artifact = await self.materialize(job, outcome.result)
        except DownloadFailure as exc:
            res.warning = str(exc)
        return res

    async def check_job(self, job_id: str) -> JobResult:
        """Single probe. Raises TransientPollError; everything else is a JobResult."""
        outcome = await self.probe(job_id)
        return await self.finish(outcome)

    def list_jobs(self) -> Iterable[Job]:
        return self.registry.list()
