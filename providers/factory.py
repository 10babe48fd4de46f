from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.output_dir import get_output_dir
from core.settings import Settings, get_settings
from jobs.manager import JobManager
from research.service import ResearchJobKind
from video.service import VideoJobKind
from .genai import GenAIClient
from .storage import StorageProvider
from providers.impl.genai_http import GeminiHTTPClient
from providers.impl.storage_local_files import LocalFilesStorageProvider


@dataclass(frozen=True)
class Providers:
    """
    Central container for providers.

    One per process: the JobManager inside holds the in-memory registry, so
    building a second container means a second, empty registry.
    """
    settings: Settings
    genai: GenAIClient
    storage: StorageProvider
    jobs: JobManager


def build_providers(
    settings: Settings,
    genai: Optional[GenAIClient] = None,
    storage: Optional[StorageProvider] = None,
) -> Providers:
    genai = genai or GeminiHTTPClient(settings.gemini)
    storage = storage or LocalFilesStorageProvider(get_output_dir())
    jobs = JobManager(
        kinds=[
            VideoJobKind(genai, model=settings.gemini.video_model),
            ResearchJobKind(genai, agent=settings.gemini.research_agent),
        ],
        storage=storage,
    )
    return Providers(settings=settings, genai=genai, storage=storage, jobs=jobs)


_cached: Optional[Providers] = None


def get_providers() -> Providers:
    global _cached
    if _cached is None:
        _cached = build_providers(get_settings())
    return _cached
