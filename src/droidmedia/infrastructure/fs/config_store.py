from __future__ import annotations

import json
from pathlib import Path
from typing import Any

DEFAULT_CONFIG = {
    'adb_path': 'adb',
    'ffmpeg_path': 'ffmpeg',
    'command_timeout': 30,
    'transfer_timeout': 600,
    'thumbnail_size': 256,
    'default_device_path': '/sdcard',
    'last_destination': '',
    'last_serial': '',
}


def config_path(app_root: Path) -> Path:
    return app_root / 'config.json'


def load_config(app_root: Path) -> dict[str, Any]:
    path = config_path(app_root)
    if not path.exists():
        return DEFAULT_CONFIG.copy()
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, ValueError):
        return DEFAULT_CONFIG.copy()
    if not isinstance(data, dict):
        return DEFAULT_CONFIG.copy()
    cfg = DEFAULT_CONFIG.copy()
    cfg.update({k: v for k, v in data.items() if k in cfg})
    return cfg


def save_config(app_root: Path, data: dict[str, Any]) -> None:
    path = config_path(app_root)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = DEFAULT_CONFIG.copy()
    payload.update({k: v for k, v in data.items() if k in payload})
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding='utf-8')
