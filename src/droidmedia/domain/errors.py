from __future__ import annotations

from typing import Sequence


class DroidMediaError(Exception):
    user_guidance = 'An unexpected error occurred.'

    def __init__(self, message_key: str, detail: str | None = None) -> None:
        super().__init__(f'{message_key}: {detail}' if detail else message_key)
        self.message_key = message_key
        self.detail = detail


class ExecutionFailed(DroidMediaError):
    user_guidance = 'Check if ADB is configured correctly and the device is connected.'

    def __init__(
        self,
        detail: str,
        args_: Sequence[str] = (),
        stderr: str = '',
        returncode: int | None = None,
    ) -> None:
        super().__init__('ADB execution failed', detail)
        self.args_ = list(args_)
        self.stderr = stderr
        self.returncode = returncode


class CommandTimeout(ExecutionFailed):
    user_guidance = 'The device did not answer in time. Reconnect it and try again.'


class CommandCancelled(ExecutionFailed):
    user_guidance = 'The operation was cancelled.'


class InvalidPath(DroidMediaError):
    user_guidance = 'The specified path does not exist or is not accessible.'

    def __init__(self, detail: str) -> None:
        super().__init__('Invalid path', detail)


class ThumbnailNotAvailable(DroidMediaError):
    user_guidance = 'Thumbnail preview not available for this media file.'

    def __init__(self, detail: str, file_name: str | None = None) -> None:
        super().__init__('Thumbnail not available', detail)
        self.file_name = file_name


class IoError(DroidMediaError):
    user_guidance = 'A file system operation failed. Check permissions.'

    def __init__(self, detail: str) -> None:
        super().__init__('IO error', detail)
