"""
Application entry point and dark-theme stylesheet.

Usage:
    python -m image_toolkit.app
    image-toolkit          (after pip install)

Set ``IMAGE_TOOLKIT_LOG_LEVEL`` (DEBUG, INFO, WARNING, ...) to change the
log verbosity.
"""

import logging
import os
import sys

from PyQt6.QtWidgets import QApplication

from image_toolkit.main_window import MainWindow

LOG_LEVEL_ENV = "IMAGE_TOOLKIT_LOG_LEVEL"

DARK_STYLESHEET = """
    QMainWindow { background: #2b2b2b; }
    QWidget { background: #2b2b2b; color: #ddd; font-size: 10pt; }
    QListWidget { background: #1e1e1e; border: 1px solid #444; }
    QListWidget::item { padding: 4px; }
    QGroupBox { border: 1px solid #555; border-radius: 4px; margin-top: 8px; padding-top: 12px; font-weight: bold; }
    QGroupBox::title { subcontrol-origin: margin; left: 8px; padding: 0 4px; }
    QPushButton { background: #3a3a3a; border: 1px solid #555; border-radius: 4px; padding: 6px 12px; }
    QPushButton:hover { background: #4a4a4a; }
    QPushButton:pressed { background: #2a2a2a; }
    QPushButton:checked { background: #3a6ea5; border-color: #5a8ec5; }
    QPushButton:disabled { color: #666; }
    QLineEdit, QSpinBox, QComboBox { background: #1e1e1e; border: 1px solid #555; border-radius: 3px; padding: 3px; }
    QTabWidget::pane { border: 1px solid #444; }
    QTabBar::tab { background: #333; padding: 6px 14px; border: 1px solid #444; border-bottom: none; }
    QTabBar::tab:selected { background: #3a6ea5; }
    QStatusBar { background: #333; border-top: 1px solid #444; }
    QProgressDialog { background: #2b2b2b; }
"""


def configure_logging():
    level_name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def main():
    configure_logging()

    app = QApplication(sys.argv)
    app.setStyleSheet(DARK_STYLESHEET)

    window = MainWindow()
    window.show()

    try:
        sys.exit(app.exec())
    except (SystemExit, KeyboardInterrupt):
        pass


if __name__ == "__main__":
    main()
