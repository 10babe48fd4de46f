import asyncio
from pathlib import Path

import pytest

from conftest import FakeTicker, ScriptedKind
from core.settings import PollBudget
from jobs.polling import CancelToken, Ticker, synthetic_progress, wait_for_job, wait_with_budget
from providers.jobs import RemoteProbe


@pytest.mark.asyncio
async def test_video_job_completes_after_four_probes(make_manager):
    kind = ScriptedKind(
        probes=[
            RemoteProbe(done=False),
            RemoteProbe(done=False),
            RemoteProbe(done=False),
            RemoteProbe(done=True, result={"uri": "https://files/v.mp4"}),
        ],
        fetch_data=b"\x00\x00\x00\x18ftypmp42",
    )
    jobs = make_manager(kind)
    job = await jobs.start_job("video", {"prompt": "a cat playing piano"})
    ticker = FakeTicker()

    res = await wait_for_job(jobs, job.id, interval=10, max_attempts=60, ticker=ticker)

    assert res.status == "completed"
    assert res.attempts == 4
    assert len(kind.probe_calls) == 4
    assert len(kind.fetch_calls) == 1
    assert res.artifact
    assert Path(res.artifact).read_bytes() == b"\x00\x00\x00\x18ftypmp42"
    assert ticker.intervals == [10, 10, 10, 10]


@pytest.mark.asyncio
async def test_research_job_cancelled_remotely_fails_then_not_found(make_manager):
    kind = ScriptedKind(
        name="research",
        probes=[RemoteProbe(done=False), RemoteProbe(done=True, error="cancelled")],
    )
    jobs = make_manager(kind)
    job = await jobs.start_job("research", {"query": "q"})

    res = await wait_for_job(jobs, job.id, interval=30, max_attempts=180, ticker=FakeTicker())

    assert res.status == "failed"
    assert res.error == "cancelled"
    assert res.attempts == 2
    assert len(kind.probe_calls) == 2
    assert kind.fetch_calls == []

    third = await jobs.check_job(job.id)
    assert third.status == "not_found"
    assert len(kind.probe_calls) == 2


@pytest.mark.asyncio
async def test_timeout_keeps_registry_entry(make_manager):
    kind = ScriptedKind(probes=[RemoteProbe(done=False)])
    jobs = make_manager(kind)
    job = await jobs.start_job("video", {"prompt": "x"})

    res = await wait_for_job(jobs, job.id, interval=0, max_attempts=3)

    assert res.status == "timeout"
    assert res.attempts == 3
    assert len(kind.probe_calls) == 3
    assert res.extras["last_status"] == "processing"
    assert jobs.registry.get(job.id) is job

    # a second wait picks the same id up again
    kind.probes = [RemoteProbe(done=True, result={"uri": "x"})]
    again = await wait_for_job(jobs, job.id, interval=0, max_attempts=3)
    assert again.status == "completed"
    assert again.attempts == 1


@pytest.mark.asyncio
async def test_transient_errors_count_as_attempts(make_manager):
    kind = ScriptedKind(
        probes=[
            ConnectionError("reset"),
            RemoteProbe(done=False),
            TimeoutError("slow"),
            RemoteProbe(done=True, result={"uri": "x"}),
        ]
    )
    jobs = make_manager(kind)
    job = await jobs.start_job("video", {"prompt": "x"})

    res = await wait_for_job(jobs, job.id, interval=0, max_attempts=10)

    assert res.status == "completed"
    assert res.attempts == 4


@pytest.mark.asyncio
async def test_transient_errors_can_exhaust_the_budget(make_manager):
    jobs = make_manager(ScriptedKind(probes=[ConnectionError("down")]))
    job = await jobs.start_job("video", {"prompt": "x"})

    res = await wait_for_job(jobs, job.id, interval=0, max_attempts=2)

    assert res.status == "timeout"
    assert res.extras["last_status"] == "pending"
    assert jobs.registry.get(job.id) is job


@pytest.mark.asyncio
async def test_unknown_id_returns_not_found_on_first_tick(make_manager):
    jobs = make_manager(ScriptedKind())
    res = await wait_for_job(jobs, "video-gone", interval=0, max_attempts=5)
    assert res.status == "not_found"
    assert res.attempts == 1


@pytest.mark.asyncio
async def test_cancel_stops_polling_without_touching_the_job(make_manager):
    kind = ScriptedKind(probes=[RemoteProbe(done=False)])
    jobs = make_manager(kind)
    job = await jobs.start_job("video", {"prompt": "x"})
    token = CancelToken()

    def cancel_on_third(n):
        if n == 3:
            token.cancel()

    res = await wait_for_job(
        jobs, job.id, interval=10, max_attempts=60, token=token, ticker=FakeTicker(on_tick=cancel_on_third)
    )

    assert res.status == "cancelled"
    assert res.attempts == 2
    assert len(kind.probe_calls) == 2
    assert jobs.registry.get(job.id) is job
    assert job.status == "processing"


@pytest.mark.asyncio
async def test_already_cancelled_token_never_probes(make_manager):
    kind = ScriptedKind()
    jobs = make_manager(kind)
    job = await jobs.start_job("video", {"prompt": "x"})
    token = CancelToken()
    token.cancel()

    res = await wait_for_job(jobs, job.id, interval=0, max_attempts=5, token=token)

    assert res.status == "cancelled"
    assert res.attempts == 0
    assert kind.probe_calls == []


@pytest.mark.asyncio
async def test_progress_is_monotonic_and_capped(make_manager):
    jobs = make_manager(ScriptedKind(probes=[RemoteProbe(done=False)]))
    job = await jobs.start_job("video", {"prompt": "x"})
    events = []

    res = await wait_for_job(
        jobs, job.id, interval=0, max_attempts=40, progress_step=3.0, on_progress=events.append
    )

    assert res.status == "timeout"
    percents = [e.percent for e in events]
    assert len(percents) == 40
    assert percents[0] == 3.0
    assert percents == sorted(percents)
    assert max(percents) == 95.0
    assert all(e.status == "processing" for e in events)
    assert [e.attempt for e in events] == list(range(1, 41))


@pytest.mark.asyncio
async def test_async_progress_callback_and_broken_callback(make_manager):
    jobs = make_manager(ScriptedKind(probes=[RemoteProbe(done=False), RemoteProbe(done=True)]))
    job = await jobs.start_job("video", {"prompt": "x"})
    seen = []

    async def on_progress(event):
        seen.append(event.attempt)
        raise RuntimeError("ui went away")

    res = await wait_for_job(jobs, job.id, interval=0, max_attempts=5, on_progress=on_progress)

    assert res.status == "completed"
    assert seen == [1]


@pytest.mark.asyncio
async def test_zero_attempts_is_rejected(make_manager):
    jobs = make_manager(ScriptedKind())
    with pytest.raises(ValueError):
        await wait_for_job(jobs, "x", interval=0, max_attempts=0)


@pytest.mark.asyncio
async def test_wait_with_budget_uses_budget_values(make_manager):
    jobs = make_manager(ScriptedKind(name="research", probes=[RemoteProbe(done=False)]))
    job = await jobs.start_job("research", {"query": "q"})
    ticker = FakeTicker()
    events = []

    res = await wait_with_budget(
        jobs,
        job.id,
        PollBudget(interval_seconds=30.0, max_attempts=2, progress_step=2.0),
        ticker=ticker,
        on_progress=events.append,
    )

    assert res.status == "timeout"
    assert ticker.intervals == [30.0, 30.0]
    assert [e.percent for e in events] == [2.0, 4.0]


@pytest.mark.asyncio
async def test_concurrent_loops_do_not_interfere(make_manager):
    kind = ScriptedKind(probes=[RemoteProbe(done=False)])
    other = ScriptedKind(name="research", probes=[RemoteProbe(done=False), RemoteProbe(done=True, error="boom")])
    jobs = make_manager(kind, other)
    a = await jobs.start_job("video", {"prompt": "a"})
    b = await jobs.start_job("research", {"query": "b"})

    ra, rb = await asyncio.gather(
        wait_for_job(jobs, a.id, interval=0, max_attempts=3),
        wait_for_job(jobs, b.id, interval=0, max_attempts=3),
    )

    assert ra.status == "timeout"
    assert rb.status == "failed"
    assert jobs.registry.get(a.id) is a
    assert jobs.registry.get(b.id) is None


@pytest.mark.asyncio
async def test_ticker_returns_early_on_cancel():
    token = CancelToken()
    ticker = Ticker()

    async def cancel_soon():
        await asyncio.sleep(0.01)
        token.cancel()

    asyncio.get_running_loop().create_task(cancel_soon())
    await asyncio.wait_for(ticker.wait(30, token), timeout=2)
    assert token.cancelled


def test_synthetic_progress():
    assert synthetic_progress(1, 3.0) == 3.0
    assert synthetic_progress(10, 2.0) == 20.0
    assert synthetic_progress(100, 3.0) == 95.0
    assert synthetic_progress(5, 30.0, cap=50.0) == 50.0
