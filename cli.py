# cli.py
"""
Command line entrypoint.

    gemini-jobs video "a cat playing piano" --ratio 16:9 --wait
    gemini-jobs research "AI coding assistants comparison" --format outline --wait

Without --wait the job id is printed and the command returns; the job lives
only in this process's memory, so checking it later needs the HTTP server
(or --wait). With --wait, Ctrl+C stops local polling; the remote job keeps
running.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from core.settings import get_settings
from jobs.errors import LaunchFailure
from jobs.models import JobResult, ProgressEvent
from jobs.polling import CancelToken, wait_with_budget
from providers.factory import get_providers

log = logging.getLogger("gemini_jobs.cli")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNFINISHED = 2


def _print_progress(event: ProgressEvent) -> None:
    print(
        f"  {event.percent:5.1f}%  attempt {event.attempt}/{event.max_attempts}"
        f"  ({int(event.elapsed_seconds)}s, {event.status})",
        file=sys.stderr,
    )


def _report(res: JobResult) -> int:
    if res.status == "completed":
        if res.artifact:
            print(f"Saved to: {res.artifact}")
        else:
            print("Completed, but no artifact was saved.")
        if res.warning:
            print(f"Warning: {res.warning}", file=sys.stderr)
        text = res.extras.get("text")
        if text:
            print("")
            print(text)
        return EXIT_OK

    if res.status in ("timeout", "cancelled"):
        print(f"{res.status}: {res.error}", file=sys.stderr)
        print(f"Job id: {res.id}", file=sys.stderr)
        return EXIT_UNFINISHED

    print(f"{res.status}: {res.error or 'Unknown error'}", file=sys.stderr)
    return EXIT_FAILED


async def _run(kind: str, params: dict, wait: bool) -> int:
    providers = get_providers()
    jobs = providers.jobs

    try:
        job = await jobs.start_job(kind, params)
    except (LaunchFailure, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_FAILED

    print(f"Started {kind} job: {job.id}")
    if not wait:
        return EXIT_OK

    budget = providers.settings.polling.for_kind(kind)
    print(
        f"Waiting up to {int(budget.interval_seconds * budget.max_attempts)}s. "
        "Press Ctrl+C to stop waiting (the job continues remotely).",
        file=sys.stderr,
    )

    token = CancelToken()
    loop = asyncio.get_running_loop()
    handler_installed = False
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        # Windows event loops have no signal handlers; Ctrl+C raises instead
        pass

    try:
        res = await wait_with_budget(jobs, job.id, budget, token=token, on_progress=_print_progress)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)
    return _report(res)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gemini-jobs", description="Long-running Gemini jobs")
    sub = parser.add_subparsers(dest="command", required=True)

    v = sub.add_parser("video", help="Generate a video with Veo")
    v.add_argument("prompt", nargs="+", help="Description of the video")
    v.add_argument("--ratio", "-r", choices=["16:9", "9:16"], default="16:9", help="Aspect ratio")
    v.add_argument("--negative", default=None, help='Things to avoid (e.g. "text, watermarks")')
    v.add_argument("--wait", "-w", action="store_true", help="Wait for completion (can take several minutes)")

    r = sub.add_parser("research", help="Run the deep research agent")
    r.add_argument("query", nargs="+", help="Research question")
    r.add_argument("--format", "-f", default="report", help="Output format: report, outline, brief, ...")
    r.add_argument("--wait", "-w", action="store_true", help="Wait for completion (can take 5-60 mins)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, get_settings().log_level, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "video":
        params = {
            "prompt": " ".join(args.prompt),
            "aspect_ratio": args.ratio,
            "negative_prompt": args.negative,
        }
    else:
        params = {"query": " ".join(args.query), "format": args.format}

    try:
        return asyncio.run(_run(args.command, params, args.wait))
    except RuntimeError as exc:
        # missing API key and similar setup errors
        print(str(exc), file=sys.stderr)
        return EXIT_FAILED
    except KeyboardInterrupt:
        return EXIT_UNFINISHED


if __name__ == "__main__":
    sys.exit(main())
