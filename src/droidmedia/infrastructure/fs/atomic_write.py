from __future__ import annotations

from pathlib import Path


def staging_path_for(dest_path: Path) -> Path:
    # Keeps the suffix so tools that pick a format from the extension still work.
    return dest_path.with_name(f'.{dest_path.stem}.part{dest_path.suffix}')


def has_content(path: Path) -> bool:
    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError:
        return False


def atomic_move(temp_path: Path, dest_path: Path) -> None:
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path.replace(dest_path)


def install_if_nonempty(temp_path: Path, dest_path: Path) -> bool:
    """Move *temp_path* over *dest_path* only when it holds data; drop it otherwise."""
    if has_content(temp_path):
        atomic_move(temp_path, dest_path)
        return True
    temp_path.unlink(missing_ok=True)
    return False
