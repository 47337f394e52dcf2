"""Every adb invocation goes through :class:`AdbGateway`.

Application code never touches ``subprocess`` directly, so tests can hand it a
fake gateway that records calls and returns scripted output.
"""
from __future__ import annotations

import subprocess
import sys
import time
from pathlib import Path
from typing import Sequence

from droidmedia.domain import CancelToken, CommandCancelled, CommandTimeout, ExecutionFailed
from droidmedia.domain.rules import quote_remote_path

CREATE_NO_WINDOW = 0x08000000
POLL_INTERVAL = 0.1

DEFAULT_COMMAND_TIMEOUT = 30.0
DEFAULT_TRANSFER_TIMEOUT = 600.0


def _decode(data: bytes | None) -> str:
    return (data or b'').decode('utf-8', errors='replace')


def _kill(process: subprocess.Popen) -> None:
    try:
        process.kill()
    except OSError:
        pass
    process.communicate()


class AdbGateway:
    def __init__(
        self,
        adb_path: str = 'adb',
        command_timeout: float | None = DEFAULT_COMMAND_TIMEOUT,
        transfer_timeout: float | None = DEFAULT_TRANSFER_TIMEOUT,
    ) -> None:
        self._adb = adb_path
        self.command_timeout = command_timeout
        self.transfer_timeout = transfer_timeout

    def run(
        self,
        args: Sequence[str],
        *,
        timeout: float | None = None,
        cancel_token: CancelToken | None = None,
    ) -> str:
        """Run adb with *args* and return its stdout.

        ``timeout=None`` waits forever. Raises :class:`ExecutionFailed` when the
        process cannot start or exits non-zero; stderr is kept verbatim.
        """
        cmd = [self._adb] + [str(a) for a in args]
        popen_kwargs = dict(stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        if sys.platform == 'win32':
            popen_kwargs['creationflags'] = CREATE_NO_WINDOW
        try:
            process = subprocess.Popen(cmd, **popen_kwargs)
        except OSError as exc:
            raise ExecutionFailed(f'Failed to execute adb: {exc}', args_=cmd) from exc

        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            if cancel_token is not None and cancel_token.cancelled:
                _kill(process)
                raise CommandCancelled('Command cancelled', args_=cmd)
            wait = POLL_INTERVAL if cancel_token is not None else None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    _kill(process)
                    raise CommandTimeout(f'Command timed out after {timeout}s', args_=cmd)
                wait = remaining if wait is None else min(wait, remaining)
            try:
                stdout, stderr = process.communicate(timeout=wait)
                break
            except subprocess.TimeoutExpired:
                continue

        if process.returncode != 0:
            err = _decode(stderr)
            raise ExecutionFailed(
                f'ADB command failed: {err}',
                args_=cmd,
                stderr=err,
                returncode=process.returncode,
            )
        return _decode(stdout)

    def shell(
        self,
        serial: str,
        *args: str,
        timeout: float | None = None,
        cancel_token: CancelToken | None = None,
    ) -> str:
        return self.run(
            ['-s', serial, 'shell', *args],
            timeout=timeout if timeout is not None else self.command_timeout,
            cancel_token=cancel_token,
        )

    def pull(
        self,
        serial: str,
        remote_path: str,
        local_path: Path | str,
        *,
        timeout: float | None = None,
        cancel_token: CancelToken | None = None,
    ) -> str:
        return self.run(
            ['-s', serial, 'pull', remote_path, str(local_path)],
            timeout=timeout if timeout is not None else self.transfer_timeout,
            cancel_token=cancel_token,
        )

    def push(
        self,
        serial: str,
        local_path: Path | str,
        remote_path: str,
        *,
        timeout: float | None = None,
        cancel_token: CancelToken | None = None,
    ) -> str:
        return self.run(
            ['-s', serial, 'push', str(local_path), remote_path],
            timeout=timeout if timeout is not None else self.transfer_timeout,
            cancel_token=cancel_token,
        )

    def file_size(
        self,
        serial: str,
        remote_path: str,
        *,
        cancel_token: CancelToken | None = None,
    ) -> int:
        output = self.shell(
            serial, 'stat', '-c', '%s', quote_remote_path(remote_path), cancel_token=cancel_token
        )
        try:
            return int(output.strip())
        except ValueError:
            raise ExecutionFailed(f'Failed to parse file size for {remote_path}') from None
