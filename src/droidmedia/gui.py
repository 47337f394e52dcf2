from __future__ import annotations

import sys

from PySide6 import QtWidgets

from droidmedia.ui.app import BrowserWindow


def main() -> int:
    app = QtWidgets.QApplication(sys.argv)
    app.setApplicationName('droidmedia')
    window = BrowserWindow()
    window.show()
    return app.exec()


if __name__ == '__main__':
    raise SystemExit(main())
