from droidmedia.domain.errors import (
    CommandCancelled,
    CommandTimeout,
    DroidMediaError,
    ExecutionFailed,
    InvalidPath,
    IoError,
    ThumbnailNotAvailable,
)
from droidmedia.domain.models import (
    IMAGE_EXTS,
    MEDIA_FOLDERS,
    VIDEO_EXTS,
    CancelToken,
    FolderInfo,
    MediaFilter,
    MediaItem,
    MediaTransferResult,
    MediaType,
    classify_extension,
    is_media_folder,
)
from droidmedia.domain.rules import PathMatch
