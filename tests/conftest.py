from __future__ import annotations

import os
from pathlib import Path

import pytest

from droidmedia.domain import CommandCancelled, ExecutionFailed
from droidmedia.infrastructure.adb import AdbGateway


def unquote(arg: str) -> str:
    if len(arg) >= 2 and arg.startswith("'") and arg.endswith("'"):
        return arg[1:-1].replace("'\\''", "'")
    return arg


class FakeGateway(AdbGateway):
    """In-memory device: ``files`` backs pull/stat, ``shell_outputs`` scripts shell replies.

    ``shell_outputs`` is a list of ``(substring, reply)``; the first substring found
    in the joined shell command wins. A reply that is an exception is raised.
    Unmatched shell commands succeed with empty output.
    """

    def __init__(self, files=None, shell_outputs=None) -> None:
        super().__init__('adb-fake')
        self.files: dict[str, bytes] = dict(files or {})
        self.shell_outputs = list(shell_outputs or [])
        self.calls: list[list[str]] = []

    def run(self, args, *, timeout=None, cancel_token=None) -> str:
        args = [str(a) for a in args]
        self.calls.append(args)
        if cancel_token is not None and cancel_token.cancelled:
            raise CommandCancelled('Command cancelled', args_=args)
        verb = args[2]
        if verb == 'pull':
            return self._pull(args)
        if verb == 'shell':
            return self._shell(args)
        raise ExecutionFailed(f'unsupported verb {verb}', args_=args)

    def _pull(self, args: list[str]) -> str:
        remote, local = args[3], args[4]
        if remote not in self.files:
            stderr = f"adb: error: failed to stat remote object '{remote}': No such file or directory"
            raise ExecutionFailed(f'ADB command failed: {stderr}', args_=args, stderr=stderr, returncode=1)
        Path(local).write_bytes(self.files[remote])
        return f'{remote}: 1 file pulled.'

    def _shell(self, args: list[str]) -> str:
        command = ' '.join(args[3:])
        for marker, reply in self.shell_outputs:
            if marker in command:
                if isinstance(reply, Exception):
                    raise reply
                return reply
        if args[3] == 'stat':
            remote = unquote(args[-1])
            if remote not in self.files:
                raise ExecutionFailed('ADB command failed: stat: No such file', args_=args, returncode=1)
            return f'{len(self.files[remote])}\n'
        if args[3:5] == ['rm', '-f']:
            self.files.pop(args[5], None)
        return ''

    def shell_commands(self) -> list[str]:
        return [' '.join(c[3:]) for c in self.calls if c[2] == 'shell']

    def pulled(self) -> list[str]:
        return [c[3] for c in self.calls if c[2] == 'pull']


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def qt_app():
    os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')
    QtWidgets = pytest.importorskip('PySide6.QtWidgets')
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app
