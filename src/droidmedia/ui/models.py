from __future__ import annotations

from typing import List

from PySide6 import QtCore

from droidmedia.domain import MediaItem

HEADERS = ('Name', 'Type', 'Date', 'Size', 'Path')


def format_bytes(num: int) -> str:
    step = 1024.0
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if num < step:
            return f'{num:.1f} {unit}'
        num /= step
    return f'{num:.1f} PB'


class MediaTableModel(QtCore.QAbstractTableModel):
    PathRole = QtCore.Qt.UserRole + 1
    ThumbnailRole = QtCore.Qt.UserRole + 2

    def __init__(self) -> None:
        super().__init__()
        self._items: List[MediaItem] = []
        self._thumbnails: dict[str, str] = {}

    def set_items(self, items: List[MediaItem]) -> None:
        self.beginResetModel()
        self._items = list(items)
        self._thumbnails = {}
        self.endResetModel()

    def clear_items(self) -> None:
        self.set_items([])

    def get_items(self) -> List[MediaItem]:
        return self._items

    def set_thumbnail(self, remote_path: str, data_url: str) -> None:
        """Attach a resolved thumbnail to the row showing *remote_path*."""
        for row, item in enumerate(self._items):
            if item.path == remote_path:
                self._thumbnails[remote_path] = data_url
                index = self.index(row, 0)
                self.dataChanged.emit(index, index, [self.ThumbnailRole])
                return

    def rowCount(self, parent=QtCore.QModelIndex()) -> int:
        return len(self._items)

    def columnCount(self, parent=QtCore.QModelIndex()) -> int:
        return len(HEADERS)

    def headerData(self, section: int, orientation, role=QtCore.Qt.DisplayRole):
        if role != QtCore.Qt.DisplayRole or orientation != QtCore.Qt.Horizontal:
            return None
        if 0 <= section < len(HEADERS):
            return HEADERS[section]
        return None

    def data(self, index, role=QtCore.Qt.DisplayRole):
        if not index.isValid() or not (0 <= index.row() < len(self._items)):
            return None
        item = self._items[index.row()]
        if role == self.PathRole:
            return item.path
        if role == self.ThumbnailRole:
            return self._thumbnails.get(item.path)
        if role == QtCore.Qt.DisplayRole:
            if index.column() == 0:
                return item.name
            if index.column() == 1:
                return 'Image' if item.is_image else 'Video'
            if index.column() == 2:
                return item.date_taken.strftime('%Y-%m-%d %H:%M') if item.date_taken else '-'
            if index.column() == 3:
                return format_bytes(item.size_bytes)
            if index.column() == 4:
                return item.path
        return None
