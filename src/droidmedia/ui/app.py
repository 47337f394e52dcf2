from __future__ import annotations

import base64
from pathlib import Path

from PySide6 import QtCore, QtGui, QtWidgets

from droidmedia.application.browse_folders import DEFAULT_ROOT
from droidmedia.domain import CancelToken, FolderInfo, MediaFilter, MediaItem
from droidmedia.domain.rules import join_remote_path
from droidmedia.infrastructure.adb import AdbGateway
from droidmedia.infrastructure.fs.config_store import load_config, save_config
from droidmedia.infrastructure.fs.logger import create_logger
from droidmedia.infrastructure.fs.path_utils import ensure_cache_dir, get_app_root
from droidmedia.ui.models import MediaTableModel
from droidmedia.ui.workers import FolderListWorker, MediaListWorker, PullWorker, ThumbnailWorker

PREVIEW_SIZE = 256


def parent_remote_path(path: str) -> str:
    stripped = path.rstrip('/')
    if not stripped or stripped == DEFAULT_ROOT:
        return DEFAULT_ROOT
    parent = stripped.rsplit('/', 1)[0]
    return parent or '/'


def pixmap_from_data_url(data_url: str) -> QtGui.QPixmap:
    pixmap = QtGui.QPixmap()
    _, _, payload = data_url.partition(',')
    pixmap.loadFromData(base64.b64decode(payload))
    return pixmap


class BrowserWindow(QtWidgets.QMainWindow):
    def __init__(self, gateway: AdbGateway | None = None, app_root: Path | None = None) -> None:
        super().__init__()
        self._app_root = app_root or get_app_root()
        self._config = load_config(self._app_root)
        self._gateway = gateway or AdbGateway(
            self._config['adb_path'],
            command_timeout=self._config['command_timeout'],
            transfer_timeout=self._config['transfer_timeout'],
        )
        self._log = create_logger(ensure_cache_dir('logs'))
        self._thumb_dir = ensure_cache_dir('thumbnails')
        self._current_path = self._config['default_device_path'] or DEFAULT_ROOT
        self._cancel_token = CancelToken()
        self._folder_worker: FolderListWorker | None = None
        self._media_worker: MediaListWorker | None = None
        self._thumb_worker: ThumbnailWorker | None = None
        self._pull_worker: PullWorker | None = None
        self._thumb_queue: list[str] = []
        self._last_dest: Path | None = None

        self._build_ui()
        self._connect_signals()
        self.serial_edit.setText(self._config.get('last_serial', ''))

    def _build_ui(self) -> None:
        self.setWindowTitle('droidmedia')
        self.resize(1100, 720)

        central = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(central)

        top = QtWidgets.QHBoxLayout()
        self.serial_edit = QtWidgets.QLineEdit()
        self.serial_edit.setPlaceholderText('Device serial')
        self.path_edit = QtWidgets.QLineEdit(self._current_path)
        self.up_btn = QtWidgets.QPushButton('Up')
        self.go_btn = QtWidgets.QPushButton('Open')
        self.filter_combo = QtWidgets.QComboBox()
        self.filter_combo.addItem('All media', MediaFilter.ALL.value)
        self.filter_combo.addItem('Images', MediaFilter.IMAGES.value)
        self.filter_combo.addItem('Videos', MediaFilter.VIDEOS.value)
        top.addWidget(self.serial_edit)
        top.addWidget(self.path_edit, 1)
        top.addWidget(self.up_btn)
        top.addWidget(self.go_btn)
        top.addWidget(self.filter_combo)

        splitter = QtWidgets.QSplitter(QtCore.Qt.Horizontal)
        self.folder_list = QtWidgets.QListWidget()
        self.model = MediaTableModel()
        self.table = QtWidgets.QTableView()
        self.table.setModel(self.model)
        self.table.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        self.table.horizontalHeader().setStretchLastSection(True)
        self.preview_label = QtWidgets.QLabel()
        self.preview_label.setAlignment(QtCore.Qt.AlignCenter)
        self.preview_label.setMinimumWidth(PREVIEW_SIZE)
        splitter.addWidget(self.folder_list)
        splitter.addWidget(self.table)
        splitter.addWidget(self.preview_label)
        splitter.setStretchFactor(1, 1)

        bottom = QtWidgets.QHBoxLayout()
        self.pull_btn = QtWidgets.QPushButton('Pull selected')
        self.cancel_btn = QtWidgets.QPushButton('Cancel')
        self.open_dest_btn = QtWidgets.QPushButton('Open folder')
        self.open_dest_btn.setEnabled(False)
        self.status_label = QtWidgets.QLabel()
        bottom.addWidget(self.pull_btn)
        bottom.addWidget(self.cancel_btn)
        bottom.addWidget(self.open_dest_btn)
        bottom.addWidget(self.status_label, 1)

        self.log_view = QtWidgets.QPlainTextEdit()
        self.log_view.setReadOnly(True)
        self.log_view.setMaximumHeight(140)

        layout.addLayout(top)
        layout.addWidget(splitter, 1)
        layout.addLayout(bottom)
        layout.addWidget(self.log_view)
        self.setCentralWidget(central)

    def _connect_signals(self) -> None:
        self.go_btn.clicked.connect(lambda: self.navigate(self.path_edit.text().strip()))
        self.path_edit.returnPressed.connect(lambda: self.navigate(self.path_edit.text().strip()))
        self.up_btn.clicked.connect(lambda: self.navigate(parent_remote_path(self._current_path)))
        self.filter_combo.currentIndexChanged.connect(lambda _index: self.navigate(self._current_path))
        self.folder_list.itemDoubleClicked.connect(self._on_folder_activated)
        self.table.selectionModel().currentRowChanged.connect(self._on_row_changed)
        self.pull_btn.clicked.connect(self._choose_destination)
        self.cancel_btn.clicked.connect(self.cancel)
        self.open_dest_btn.clicked.connect(self._open_destination)

    def serial(self) -> str:
        return self.serial_edit.text().strip()

    def media_filter(self) -> MediaFilter:
        return MediaFilter.parse(self.filter_combo.currentData())

    def navigate(self, path: str) -> None:
        serial = self.serial()
        if not serial or self._folder_worker or self._media_worker:
            return
        self._current_path = path or DEFAULT_ROOT
        self.path_edit.setText(self._current_path)
        self._thumb_queue = []
        self._cancel_token = CancelToken()
        self.status_label.setText(f'Loading {self._current_path}...')

        self._folder_worker = FolderListWorker(self._gateway, serial, self._current_path, self._cancel_token)
        self._folder_worker.finished.connect(self._on_folders_loaded)
        self._folder_worker.error.connect(self._on_folders_error)
        self._folder_worker.start()

        self._media_worker = MediaListWorker(
            self._gateway, serial, self._current_path, self.media_filter(), self._cancel_token
        )
        self._media_worker.finished.connect(self._on_media_loaded)
        self._media_worker.error.connect(self._on_media_error)
        self._media_worker.start()

    def cancel(self) -> None:
        self._cancel_token.cancel()
        self._thumb_queue = []

    def _on_folders_loaded(self, folders: list[FolderInfo]) -> None:
        self._folder_worker = _release(self._folder_worker)
        self.folder_list.clear()
        for folder in folders:
            item = QtWidgets.QListWidgetItem(f'* {folder.name}' if folder.is_media_folder else folder.name)
            item.setData(QtCore.Qt.UserRole, folder.path)
            self.folder_list.addItem(item)

    def _on_folders_error(self, message: str) -> None:
        self._folder_worker = _release(self._folder_worker)
        self.folder_list.clear()
        self.append_log(f'ERROR: {message}')

    def _on_folder_activated(self, item: QtWidgets.QListWidgetItem) -> None:
        path = item.data(QtCore.Qt.UserRole) or join_remote_path(self._current_path, item.text())
        self.navigate(path)

    def _on_media_loaded(self, items: list[MediaItem]) -> None:
        self._media_worker = _release(self._media_worker)
        self.model.set_items(items)
        self.preview_label.clear()
        self.status_label.setText(f'{len(items)} media files in {self._current_path}')
        self._thumb_queue = [item.path for item in items]
        self._next_thumbnail()

    def _on_media_error(self, message: str) -> None:
        self._media_worker = _release(self._media_worker)
        self.model.clear_items()
        self.status_label.setText('')
        self.append_log(f'ERROR: {message}')

    def _next_thumbnail(self) -> None:
        if self._thumb_worker or not self._thumb_queue:
            return
        remote_path = self._thumb_queue.pop(0)
        self._thumb_worker = ThumbnailWorker(
            self._gateway,
            self.serial(),
            remote_path,
            self._thumb_dir,
            ffmpeg_path=self._config['ffmpeg_path'],
            thumbnail_size=self._config['thumbnail_size'],
            log=self._log,
            cancel_token=self._cancel_token,
        )
        self._thumb_worker.finished.connect(self._on_thumbnail_ready)
        self._thumb_worker.unavailable.connect(self._on_thumbnail_done)
        self._thumb_worker.error.connect(self._on_thumbnail_done)
        self._thumb_worker.start()

    def _on_thumbnail_ready(self, remote_path: str, data_url: str) -> None:
        self.model.set_thumbnail(remote_path, data_url)
        if self._selected_path() == remote_path:
            self._show_preview(data_url)
        self._on_thumbnail_done(remote_path, '')

    def _on_thumbnail_done(self, remote_path: str, _message: str) -> None:
        self._thumb_worker = _release(self._thumb_worker)
        self._next_thumbnail()

    def _selected_path(self) -> str | None:
        index = self.table.currentIndex()
        if not index.isValid():
            return None
        return self.model.data(index, MediaTableModel.PathRole)

    def _on_row_changed(self, current: QtCore.QModelIndex, _previous) -> None:
        data_url = self.model.data(current, MediaTableModel.ThumbnailRole)
        if data_url:
            self._show_preview(data_url)
        else:
            self.preview_label.clear()

    def _show_preview(self, data_url: str) -> None:
        pixmap = pixmap_from_data_url(data_url)
        self.preview_label.setPixmap(
            pixmap.scaled(PREVIEW_SIZE, PREVIEW_SIZE, QtCore.Qt.KeepAspectRatio, QtCore.Qt.SmoothTransformation)
        )

    def selected_paths(self) -> list[str]:
        rows = sorted({index.row() for index in self.table.selectionModel().selectedRows()})
        items = self.model.get_items()
        return [items[row].path for row in rows]

    def _choose_destination(self) -> None:
        paths = self.selected_paths()
        if not paths:
            return
        start = self._config.get('last_destination') or str(Path.home())
        folder = QtWidgets.QFileDialog.getExistingDirectory(self, 'Pull to folder', start)
        if folder:
            self.start_pull(paths, Path(folder))

    def start_pull(self, remote_paths: list[str], dest_dir: Path) -> None:
        if self._pull_worker or not remote_paths:
            return
        self._cancel_token = CancelToken()
        self._last_dest = dest_dir
        self._config['last_destination'] = str(dest_dir)
        self.pull_btn.setEnabled(False)
        self._pull_worker = PullWorker(self._gateway, self.serial(), remote_paths, dest_dir, self._cancel_token)
        self._pull_worker.log.connect(self.append_log)
        self._pull_worker.finished.connect(self._on_pull_finished)
        self._pull_worker.error.connect(self._on_pull_error)
        self._pull_worker.start()

    def _on_pull_finished(self, results) -> None:
        self._pull_worker = _release(self._pull_worker)
        self.pull_btn.setEnabled(True)
        self.open_dest_btn.setEnabled(self._last_dest is not None)
        failed = sum(1 for r in results if not r.success)
        self.status_label.setText(f'Pulled {len(results) - failed} of {len(results)}')

    def _on_pull_error(self, message: str) -> None:
        self._pull_worker = _release(self._pull_worker)
        self.pull_btn.setEnabled(True)
        QtWidgets.QMessageBox.warning(self, 'droidmedia', message)

    def append_log(self, line: str) -> None:
        self._log(line)
        self.log_view.appendPlainText(line)

    def _open_destination(self) -> None:
        if not self._last_dest:
            return
        QtGui.QDesktopServices.openUrl(QtCore.QUrl.fromLocalFile(str(self._last_dest)))

    def closeEvent(self, event) -> None:
        self.cancel()
        self._config['last_serial'] = self.serial()
        save_config(self._app_root, self._config)
        super().closeEvent(event)


def _release(worker: QtCore.QThread | None) -> None:
    # Signals arrive queued; let run() return before the thread object is dropped.
    if worker is not None:
        worker.wait()
    return None
