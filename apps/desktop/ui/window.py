"""
Fullscreen launcher window.
Shows the service tiles and acts as the UI surface driven by the launch supervisor.
"""

from __future__ import annotations

import logging
from PySide6.QtCore import QEvent, Qt
from PySide6.QtGui import QKeyEvent, QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QDialog,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QVBoxLayout,
    QWidget,
)

from packages.shared.config import AppConfig
from packages.shared.store import ConfigStore
from packages.core.supervisor.catalog import build_request
from packages.core.supervisor.errors import CatalogError
from packages.core.supervisor.reconciler import Reconciler, Severity
from packages.core.supervisor.supervisor import LaunchSupervisor

from .theme import Theme
from .components import ClockLabel, CornerButton, TileButton, Toast, ToolbarButton
from .qt_scheduler import QtScheduler

log = logging.getLogger(__name__)

GRID_COLUMNS = 4
MAX_SHORTCUT_TILES = 8


class SettingsDialog(QDialog):
    """Display preferences, applied and saved as soon as they change."""

    def __init__(self, window: "LauncherWindow") -> None:
        super().__init__(window)
        self.setWindowTitle("Settings")
        self.setModal(True)
        self._window = window
        cfg = window.cfg

        layout = QVBoxLayout(self)
        layout.setContentsMargins(32, 32, 32, 32)
        layout.setSpacing(16)

        title = QLabel("Settings")
        title.setObjectName("TitleLabel")
        layout.addWidget(title)

        self.chk_show_time = QCheckBox("Show clock")
        self.chk_show_time.setChecked(cfg.show_time)
        self.chk_show_time.toggled.connect(self._changed)
        layout.addWidget(self.chk_show_time)

        self.chk_large_tiles = QCheckBox("Large tiles")
        self.chk_large_tiles.setChecked(cfg.large_tiles)
        self.chk_large_tiles.toggled.connect(self._changed)
        layout.addWidget(self.chk_large_tiles)

        self.chk_close_app = QCheckBox("Close the running app when returning to the launcher")
        self.chk_close_app.setChecked(cfg.close_app_on_return)
        self.chk_close_app.toggled.connect(self._changed)
        layout.addWidget(self.chk_close_app)

        hint = QLabel("Esc closes this dialog. Ctrl+Q quits. Keys 1-8 launch a tile.")
        hint.setObjectName("HintLabel")
        layout.addWidget(hint)

        btn_close = ToolbarButton("Close")
        btn_close.clicked.connect(self.accept)
        layout.addWidget(btn_close, alignment=Qt.AlignRight)

    def _changed(self) -> None:
        self._window.apply_settings(
            show_time=self.chk_show_time.isChecked(),
            large_tiles=self.chk_large_tiles.isChecked(),
            close_app_on_return=self.chk_close_app.isChecked(),
        )


class LauncherWindow(QMainWindow):
    """Main launcher window; implements the supervisor's LauncherSurface."""

    def __init__(self, dev_mode: bool = False) -> None:
        super().__init__()
        self.setWindowTitle("Streaming Launcher")
        self.dev_mode = dev_mode
        if dev_mode:
            self.resize(1280, 800)

        self.theme = Theme()

        self.store = ConfigStore()
        self.cfg: AppConfig = self.store.load()

        self.scheduler = QtScheduler(self)
        self.supervisor = LaunchSupervisor(
            config=self.cfg.to_supervisor_config(),
            scheduler=self.scheduler,
            reconciler=Reconciler(self),
        )
        self.supervisor.on_event(self._on_supervisor_event)

        self.corner = CornerButton(stay_on_top=not dev_mode)
        self.corner.setStyleSheet(self.theme.get_stylesheet())
        self.corner.clicked.connect(self.return_to_launcher)

        self.tiles: dict[str, TileButton] = {}

        self._build_ui()
        self._apply_theme()
        self._render_tiles()
        self._install_shortcuts()

    # UI construction

    def _apply_theme(self) -> None:
        self.setStyleSheet(self.theme.get_stylesheet())

    def _build_ui(self) -> None:
        root = QWidget()
        self.setCentralWidget(root)
        main_layout = QVBoxLayout(root)
        main_layout.setContentsMargins(48, 40, 48, 40)
        main_layout.setSpacing(32)

        header = QHBoxLayout()
        self.title_label = QLabel("Streaming")
        self.title_label.setObjectName("TitleLabel")
        header.addWidget(self.title_label)
        header.addStretch()

        self.clock = ClockLabel()
        self.clock.setVisible(self.cfg.show_time)
        header.addWidget(self.clock)

        self.btn_settings = ToolbarButton("Settings")
        self.btn_settings.clicked.connect(self.show_settings)
        header.addWidget(self.btn_settings)

        self.btn_quit = ToolbarButton("Quit")
        self.btn_quit.clicked.connect(self.quit_launcher)
        header.addWidget(self.btn_quit)
        main_layout.addLayout(header)

        grid_host = QWidget()
        self.grid = QGridLayout(grid_host)
        self.grid.setSpacing(24)
        self.grid.setAlignment(Qt.AlignCenter)
        main_layout.addWidget(grid_host, 1)

        hint = QLabel("Use the ⌂ button in the corner to come back here.")
        hint.setObjectName("HintLabel")
        hint.setAlignment(Qt.AlignCenter)
        main_layout.addWidget(hint)

        self.toast = Toast(root)

    def _render_tiles(self) -> None:
        while self.grid.count():
            item = self.grid.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()
        self.tiles.clear()

        large = self.cfg.large_tiles
        icon_size = self.theme.tile_icon_size(large)
        for idx, tile in enumerate(self.cfg.tiles):
            button = TileButton(tile, icon_size, large=large)
            button.clicked.connect(lambda _checked=False, tid=tile.id: self.launch_tile(tid))
            self.grid.addWidget(button, idx // GRID_COLUMNS, idx % GRID_COLUMNS)
            self.tiles[tile.id] = button

    def _install_shortcuts(self) -> None:
        quit_shortcut = QShortcut(QKeySequence("Ctrl+Q"), self)
        quit_shortcut.activated.connect(self.quit_launcher)

    # LauncherSurface

    def show_primary(self) -> None:
        self.corner.hide()
        if self.dev_mode:
            self.showNormal()
        else:
            self.showFullScreen()
        self.raise_()
        self.activateWindow()

    def hide_primary(self) -> None:
        self.corner.show_in_corner()
        self.hide()

    def set_tile_loading(self, tile_id: str, loading: bool) -> None:
        button = self.tiles.get(tile_id)
        if button is not None:
            button.set_loading(loading)

    def notify(self, message: str, severity: Severity) -> None:
        self.toast.show_message(message, severity)

    # Actions

    def launch_tile(self, tile_id: str) -> None:
        try:
            request = build_request(self.cfg, tile_id)
        except CatalogError as e:
            log.error("Cannot launch %s: %s", tile_id, e)
            self.notify(f"Cannot launch {tile_id}: {e}", "error")
            return

        self.set_tile_loading(tile_id, True)
        try:
            self.supervisor.launch(request)
        except Exception:
            log.exception("Launch of %s failed", tile_id)
            self.set_tile_loading(tile_id, False)
            self.notify(f"Failed to launch {request.display_name}", "error")

    def return_to_launcher(self) -> None:
        session = self.supervisor.cancel(reason="user")
        if self.cfg.close_app_on_return:
            self.supervisor.terminate(session)
        self._clear_loading()
        self.show_primary()

    def show_settings(self) -> None:
        SettingsDialog(self).exec()

    def apply_settings(self, show_time: bool, large_tiles: bool, close_app_on_return: bool) -> None:
        rerender = large_tiles != self.cfg.large_tiles
        self.cfg.show_time = show_time
        self.cfg.large_tiles = large_tiles
        self.cfg.close_app_on_return = close_app_on_return
        self.clock.setVisible(show_time)
        if rerender:
            self._render_tiles()
        self.store.save(self.cfg)

    def quit_launcher(self) -> None:
        self.close()
        QApplication.quit()

    def _clear_loading(self) -> None:
        for button in self.tiles.values():
            if button.is_loading():
                button.set_loading(False)

    def _on_supervisor_event(self, evt: dict) -> None:
        t = evt.get("type")
        target = evt.get("target")
        reason = evt.get("reason")
        if t == "CEILING_REACHED":
            # The corner button stays up so the user can still get back
            log.warning("Stopped watching %s: %s", target, reason)
        else:
            log.info("%s: %s%s", t, target, f" ({reason})" if reason else "")

    # Qt events

    def keyPressEvent(self, event: QKeyEvent) -> None:
        key = event.key()
        if key == Qt.Key_Escape:
            self.show_settings()
            return
        if Qt.Key_1 <= key <= Qt.Key_8:
            idx = key - Qt.Key_1
            if idx < min(len(self.cfg.tiles), MAX_SHORTCUT_TILES):
                self.launch_tile(self.cfg.tiles[idx].id)
            return
        super().keyPressEvent(event)

    def changeEvent(self, event: QEvent) -> None:
        # Regaining focus with nothing running means any loading state is stale
        if event.type() == QEvent.ActivationChange and self.isActiveWindow():
            if self.supervisor.active_session is None:
                self._clear_loading()
        super().changeEvent(event)

    def closeEvent(self, event) -> None:
        self.supervisor.shutdown()
        self.corner.close()
        super().closeEvent(event)
