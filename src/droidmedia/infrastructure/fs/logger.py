from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


def log_timestamp() -> str:
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


@dataclass
class SessionLogger:
    log_path: Path
    echo: bool = False

    def write(self, message: str) -> None:
        line = f'[{log_timestamp()}] {message}'
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with self.log_path.open('a', encoding='utf-8') as handle:
            handle.write(line + '\n')
        if self.echo:
            print(line)

    __call__ = write


def create_logger(log_dir: Path, serial: str | None = None, echo: bool = False) -> SessionLogger:
    log_dir.mkdir(parents=True, exist_ok=True)
    name = datetime.now().strftime('session_%Y%m%d_%H%M%S.log')
    logger = SessionLogger(log_path=log_dir / name, echo=echo)

    logger.write('=== droidmedia log ===')
    if serial:
        logger.write(f'Device: {serial}')
    logger.write('---')
    return logger
