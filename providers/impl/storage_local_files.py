from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

from providers.storage import StorageProvider

log = logging.getLogger(__name__)


class LocalFilesStorageProvider(StorageProvider):
    """
    Local filesystem storage rooted at the output directory.

    The root is created on first write, not at construction, so building
    providers never touches the filesystem.
    """

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        safe = key.replace("..", "").lstrip("/").replace("/", os.sep)
        if not safe.strip():
            raise ValueError("Storage key must not be empty.")
        return self.root / safe

    def put_object(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: Optional[Dict[str, str]] = None,
    ) -> Path:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        log.info("Saved %s (%d bytes, %s)", path, len(data), content_type)
        return path
