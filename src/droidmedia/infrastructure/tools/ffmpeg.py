from __future__ import annotations

import subprocess
import sys
from pathlib import Path


CREATE_NO_WINDOW = 0x08000000

FRAME_OFFSET = '00:00:01.000'
FRAME_WIDTH = 320


def _popen_flags() -> dict:
    if sys.platform == 'win32':
        return {'creationflags': CREATE_NO_WINDOW}
    return {}


def ffmpeg_available(ffmpeg_path: str | None) -> bool:
    exe = ffmpeg_path or 'ffmpeg'
    try:
        result = subprocess.run(
            [exe, '-version'],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
            **_popen_flags(),
        )
    except OSError:
        return False
    return result.returncode == 0


def _run_ffmpeg(ffmpeg_path: str | None, args: list[str], log) -> tuple[bool, str]:
    cmd = [ffmpeg_path or 'ffmpeg'] + args
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
            text=True,
            errors='replace',
            **_popen_flags(),
        )
        output = result.stdout or ''
        if output:
            for line in output.splitlines()[-5:]:
                log(f'ffmpeg: {line}')
        return result.returncode == 0, output
    except OSError as exc:
        log(f'ffmpeg error: {exc}')
        return False, ''


def extract_frame(ffmpeg_path: str | None, src: Path, dest: Path, log) -> bool:
    dest.parent.mkdir(parents=True, exist_ok=True)
    args = [
        '-i', str(src),
        '-ss', FRAME_OFFSET,
        '-vframes', '1',
        '-vf', f'scale={FRAME_WIDTH}:-1',
        '-y',
        str(dest),
    ]
    ok, _ = _run_ffmpeg(ffmpeg_path, args, log)
    return ok
