from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else str(v)


def _env_float(name: str, default: float) -> float:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except Exception:
        return default


def _env_int(name: str, default: int) -> int:
    raw = _env(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _env_csv_floats(name: str, default: List[float]) -> List[float]:
    raw = _env(name, "")
    if not raw.strip():
        return default
    out: List[float] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            out.append(float(part))
        except Exception:
            continue
    return out or default


# ---------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class GeminiSettings:
    api_key: str
    api_url: str
    pro_model: str
    video_model: str
    research_agent: str
    timeout_seconds: float
    connect_timeout_seconds: float
    max_attempts: int
    backoff_seconds: List[float]


@dataclass(frozen=True)
class OutputSettings:
    """
    Where generated artifacts land.

    output_dir:
      - "" -> platform default (see core.output_dir)
      - anything else -> used as-is
    """
    output_dir: str = ""


@dataclass(frozen=True)
class PollBudget:
    interval_seconds: float
    max_attempts: int
    progress_step: float
    progress_cap: float = 95.0


@dataclass(frozen=True)
class PollSettings:
    video: PollBudget
    research: PollBudget

    def for_kind(self, kind: str) -> PollBudget:
        if kind == "video":
            return self.video
        if kind == "research":
            return self.research
        raise ValueError(f"No polling budget configured for job kind: {kind!r}")


@dataclass(frozen=True)
class Settings:
    gemini: GeminiSettings
    output: OutputSettings
    polling: PollSettings
    log_level: str


# ---------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------

DEFAULT_API_URL = "https://generativelanguage.googleapis.com/v1beta"


def _load_gemini_settings() -> GeminiSettings:
    api_key = (_env("GEMINI_API_KEY", "") or _env("GOOGLE_API_KEY", "")).strip()
    api_url = (_env("GEMINI_API_URL", "") or DEFAULT_API_URL).strip().rstrip("/")

    pro_model = (_env("GEMINI_PRO_MODEL", "") or "gemini-3-pro-preview").strip()
    video_model = (_env("GEMINI_VIDEO_MODEL", "") or "veo-2.0-generate-001").strip()
    research_agent = (_env("GEMINI_RESEARCH_AGENT", "") or "deep-research-pro-preview-12-2025").strip()

    timeout_seconds = _env_float("GEMINI_TIMEOUT_SECONDS", 120.0)
    connect_timeout_seconds = _env_float("GEMINI_CONNECT_TIMEOUT_SECONDS", 10.0)
    max_attempts = _env_int("GEMINI_MAX_ATTEMPTS", 2)
    backoff_seconds = _env_csv_floats("GEMINI_BACKOFF_SECONDS", [0.5, 1.0])

    timeout_seconds = max(5.0, float(timeout_seconds))
    connect_timeout_seconds = max(1.0, float(connect_timeout_seconds))
    max_attempts = max(1, min(int(max_attempts), 5))
    backoff_seconds = [max(0.0, float(x)) for x in (backoff_seconds or [0.5])] or [0.5]

    return GeminiSettings(
        api_key=api_key,
        api_url=api_url,
        pro_model=pro_model,
        video_model=video_model,
        research_agent=research_agent,
        timeout_seconds=timeout_seconds,
        connect_timeout_seconds=connect_timeout_seconds,
        max_attempts=max_attempts,
        backoff_seconds=backoff_seconds,
    )


def _load_output_settings() -> OutputSettings:
    return OutputSettings(output_dir=(_env("GEMINI_OUTPUT_DIR", "") or "").strip())


def _load_budget(prefix: str, interval: float, attempts: int, step: float) -> PollBudget:
    interval_seconds = _env_float(f"{prefix}_POLL_INTERVAL_SECONDS", interval)
    max_attempts = _env_int(f"{prefix}_POLL_MAX_ATTEMPTS", attempts)

    # interval 0 is allowed (tests, tight loops); attempts must be positive
    interval_seconds = max(0.0, float(interval_seconds))
    if max_attempts <= 0:
        max_attempts = attempts

    return PollBudget(
        interval_seconds=interval_seconds,
        max_attempts=int(max_attempts),
        progress_step=step,
    )


def _load_poll_settings() -> PollSettings:
    """
    Reference budgets:
      video:    10s x 60  (~10 minutes)
      research: 30s x 180 (~90 minutes)
    """
    return PollSettings(
        video=_load_budget("VIDEO", 10.0, 60, 3.0),
        research=_load_budget("RESEARCH", 30.0, 180, 2.0),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        gemini=_load_gemini_settings(),
        output=_load_output_settings(),
        polling=_load_poll_settings(),
        log_level=(_env("LOG_LEVEL", "") or "INFO").strip().upper(),
    )
