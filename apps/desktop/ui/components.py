"""
Reusable UI components for the launcher window.
"""

from __future__ import annotations

import time

from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtWidgets import QLabel, QPushButton, QVBoxLayout, QWidget

from packages.shared.config import TileConfig

from .theme import TILE_SIZE


class TileButton(QPushButton):
    """Service tile: large icon over the service name."""

    def __init__(self, tile: TileConfig, icon_font_size: str, large: bool = True, parent=None):
        super().__init__(parent)
        self.setObjectName("TileButton")
        self.tile = tile
        self.setProperty("loading", False)
        self.setCursor(Qt.PointingHandCursor)

        side = TILE_SIZE["large" if large else "compact"]
        self.setFixedSize(side, int(side * 0.8))

        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignCenter)

        self.icon_label = QLabel(tile.icon)
        self.icon_label.setAlignment(Qt.AlignCenter)
        self.icon_label.setStyleSheet(f"font-size: {icon_font_size}; background: transparent;")
        self.icon_label.setAttribute(Qt.WA_TransparentForMouseEvents)
        layout.addWidget(self.icon_label)

        self.name_label = QLabel(tile.name)
        self.name_label.setAlignment(Qt.AlignCenter)
        self.name_label.setStyleSheet("background: transparent;")
        self.name_label.setAttribute(Qt.WA_TransparentForMouseEvents)
        layout.addWidget(self.name_label)

    def is_loading(self) -> bool:
        return bool(self.property("loading"))

    def set_loading(self, loading: bool) -> None:
        self.setProperty("loading", loading)
        # Re-polish so the [loading="true"] selector is re-evaluated
        self.style().unpolish(self)
        self.style().polish(self)


class ToolbarButton(QPushButton):
    def __init__(self, text: str = "", parent=None):
        super().__init__(text, parent)
        self.setObjectName("ToolbarButton")


class ClockLabel(QLabel):
    """Time and date, refreshed every second."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("ClockLabel")
        self.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        self._timer = QTimer(self)
        self._timer.timeout.connect(self._refresh)
        self._timer.start(1000)
        self._refresh()

    def _refresh(self) -> None:
        now = time.localtime()
        self.setText(f"{time.strftime('%I:%M %p', now)}\n{time.strftime('%A, %b %d', now)}")


class Toast(QLabel):
    """Transient notification pinned to the top-right of its parent."""

    def __init__(self, parent: QWidget):
        super().__init__(parent)
        self.setObjectName("ToastInfo")
        self.setWordWrap(True)
        self.setMaximumWidth(480)
        self.hide()
        self._hide_timer = QTimer(self)
        self._hide_timer.setSingleShot(True)
        self._hide_timer.timeout.connect(self.hide)

    def show_message(self, message: str, severity: str = "info", duration_ms: int = 3000) -> None:
        self.setObjectName("ToastError" if severity == "error" else "ToastInfo")
        self.style().unpolish(self)
        self.style().polish(self)
        self.setText(message)
        self.adjustSize()
        parent = self.parentWidget()
        if parent is not None:
            self.move(parent.width() - self.width() - 32, 32)
        self.raise_()
        self.show()
        self._hide_timer.start(duration_ms)


class CornerButton(QWidget):
    """Small always-on-top window that brings the launcher back."""

    clicked = Signal()

    def __init__(self, stay_on_top: bool = True, parent=None):
        flags = Qt.FramelessWindowHint | Qt.Tool
        if stay_on_top:
            flags |= Qt.WindowStaysOnTopHint
        super().__init__(parent, flags)
        self.setAttribute(Qt.WA_TranslucentBackground)
        self.setWindowTitle("Back to launcher")

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)
        self.button = QPushButton("⌂")
        self.button.setObjectName("CornerButton")
        self.button.setToolTip("Back to launcher")
        self.button.clicked.connect(self.clicked.emit)
        layout.addWidget(self.button)

    def show_in_corner(self) -> None:
        self.adjustSize()
        screen = self.screen() or (self.parentWidget().screen() if self.parentWidget() else None)
        if screen is not None:
            geo = screen.availableGeometry()
            self.move(geo.right() - self.width(), geo.bottom() - self.height())
        self.show()
        self.raise_()
