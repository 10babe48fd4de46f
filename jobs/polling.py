"""jobs/polling.py

Caller-side driver that polls one job until it is terminal.

    Idle -> Polling -> Done | TimedOut | Cancelled

Each tick: check the cancel token, wait one interval, probe once.
- transient probe errors are logged and the loop moves on (the tick still counts)
- pending/processing report synthetic progress and continue
- completed materializes once; failed/not_found return as-is
- running out of attempts returns "timeout" and leaves the registry entry in
  place so a later wait can pick the same id up again
- cancelling stops local polling only; the remote job is never cancelled

Waiting goes through a Ticker so tests can drive the loop without real sleeps.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Union

from jobs.errors import TransientPollError
from jobs.manager import JobManager
from jobs.models import JobResult, ProgressEvent
from core.settings import PollBudget

log = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


class CancelToken:
    """Cooperative, non-cancelling cancel: stops local polling only."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class Ticker:
    """Waits one polling interval; returns early if the token is cancelled."""

    async def wait(self, interval: float, token: Optional[CancelToken] = None) -> None:
        if interval <= 0:
            # still yield so other jobs' loops get a turn
            await asyncio.sleep(0)
            return
        if token is None:
            await asyncio.sleep(interval)
            return
        try:
            await asyncio.wait_for(token.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass


def synthetic_progress(attempt: int, step: float, cap: float = 95.0) -> float:
    return float(min(cap, attempt * step))


async def _emit(on_progress: Optional[ProgressCallback], event: ProgressEvent) -> None:
    if on_progress is None:
        return
    try:
        ret = on_progress(event)
        if asyncio.iscoroutine(ret):
            await ret
    except Exception as exc:
        log.debug("progress callback failed: %s", exc)


async def wait_for_job(
    manager: JobManager,
    job_id: str,
    interval: float,
    max_attempts: int,
    *,
    progress_step: float = 3.0,
    progress_cap: float = 95.0,
    token: Optional[CancelToken] = None,
    ticker: Optional[Ticker] = None,
    on_progress: Optional[ProgressCallback] = None,
    clock: Callable[[], float] = time.monotonic,
) -> JobResult:
    if max_attempts <= 0:
        raise ValueError("max_attempts must be positive")

    ticker = ticker or Ticker()
    loop_started = clock()
    attempts = 0
    last_status = "pending"

    while attempts < max_attempts:
        if token is not None and token.cancelled:
            break

        await ticker.wait(interval, token)
        if token is not None and token.cancelled:
            break

        attempts += 1
        try:
            outcome = await manager.probe(job_id)
        except TransientPollError as exc:
            log.warning("Polling error (attempt %d/%d): %s", attempts, max_attempts, exc)
            continue

        if outcome.status in ("completed", "failed", "not_found"):
            result = await manager.finish(outcome, attempts=attempts)
            log.info("Job %s finished after %d probe(s): %s", job_id, attempts, result.status)
            return result

        last_status = outcome.status
        await _emit(
            on_progress,
            ProgressEvent(
                job_id=job_id,
                attempt=attempts,
                max_attempts=max_attempts,
                percent=synthetic_progress(attempts, progress_step, progress_cap),
                elapsed_seconds=clock() - loop_started,
                status=outcome.status,
            ),
        )

    job = manager.registry.get(job_id)
    elapsed = job.elapsed_seconds() if job else clock() - loop_started

    if token is not None and token.cancelled:
        log.info("Stopped polling %s after %d probe(s); the remote job keeps running", job_id, attempts)
        return JobResult(
            id=job_id,
            status="cancelled",
            kind=job.kind if job else None,
            error="Polling cancelled locally; the job may still complete.",
            elapsed_seconds=elapsed,
            attempts=attempts,
            extras={"last_status": last_status},
        )

    log.warning("Job %s timed out after %d probe(s); it may still be running", job_id, attempts)
    return JobResult(
        id=job_id,
        status="timeout",
        kind=job.kind if job else None,
        error=f"Timed out after {attempts} attempts; the job may still be running.",
        elapsed_seconds=elapsed,
        attempts=attempts,
        extras={"last_status": last_status},
    )


async def wait_with_budget(
    manager: JobManager,
    job_id: str,
    budget: PollBudget,
    **kwargs,
) -> JobResult:
    return await wait_for_job(
        manager,
        job_id,
        budget.interval_seconds,
        budget.max_attempts,
        progress_step=budget.progress_step,
        progress_cap=budget.progress_cap,
        **kwargs,
    )
