from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable, Optional, Dict


@runtime_checkable
class StorageProvider(Protocol):
    """
    Artifact storage abstraction.

    Keys are flat, relative names (e.g. "video-1700000000000-1a2b3c4d.mp4").
    put_object returns the local path the artifact now lives at.
    """

    def put_object(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: Optional[Dict[str, str]] = None,
    ) -> Path: ...
