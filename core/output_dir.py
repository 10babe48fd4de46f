"""core/output_dir.py

Resolve the directory generated artifacts are written to.

Precedence:
  1) GEMINI_OUTPUT_DIR (via Settings.output.output_dir)
  2) <config base>/output/<project id>
       config base: %APPDATA%/gemini-mcp on Windows,
                    $XDG_CONFIG_HOME/gemini-mcp or ~/.config/gemini-mcp elsewhere
       project id:  sha256 of the git root (or cwd when not in a repo), 16 hex chars

Resolved once per process and created if absent.
"""

from __future__ import annotations

import hashlib
import logging
import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import Optional

from core.settings import get_settings

log = logging.getLogger(__name__)

APP_DIR_NAME = "gemini-mcp"


def find_git_root(start: Path) -> Optional[Path]:
    d = start
    while d != d.parent:
        if (d / ".git").exists():
            return d
        d = d.parent
    return None


def project_identifier(cwd: Optional[Path] = None) -> str:
    resolved = Path(cwd or os.getcwd()).resolve()
    root = find_git_root(resolved)
    target = root.resolve() if root else resolved
    return hashlib.sha256(str(target).encode("utf-8")).hexdigest()[:16]


def config_base_dir() -> Path:
    if sys.platform == "win32":
        appdata = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(appdata) / APP_DIR_NAME
    xdg = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(xdg) / APP_DIR_NAME


def default_output_dir(cwd: Optional[Path] = None) -> Path:
    return config_base_dir() / "output" / project_identifier(cwd)


def ensure_output_dir(path: Optional[str] = None) -> Path:
    out = Path(path) if path else default_output_dir()
    if not out.exists():
        out.mkdir(parents=True, exist_ok=True)
        log.info("Created output directory: %s", out)
    return out


@lru_cache(maxsize=1)
def get_output_dir() -> Path:
    return ensure_output_dir(get_settings().output.output_dir or None)
