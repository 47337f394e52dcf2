from __future__ import annotations

import os
import sys
from pathlib import Path

APP_HOME_ENV = 'DROIDMEDIA_HOME'


def get_app_root() -> Path:
    """Get the application root directory.

    When frozen (PyInstaller): the directory containing the executable.
    Otherwise ``$DROIDMEDIA_HOME`` if set, else ``~/.droidmedia``.
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).resolve().parent
    override = os.environ.get(APP_HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / '.droidmedia'


def ensure_cache_dir(*parts: str) -> Path:
    cache = get_app_root() / '_cache'
    cache = cache.joinpath(*parts)
    cache.mkdir(parents=True, exist_ok=True)
    return cache
