"""Main window: tabs (Servers, Settings), Start/Stop, tray with notifications."""
import logging
from pathlib import Path
from queue import Empty, Queue

from PySide6.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QTabWidget,
    QPushButton,
    QHBoxLayout,
    QSystemTrayIcon,
    QApplication,
    QMenu,
)
from PySide6.QtCore import QTimer
from PySide6.QtGui import QIcon, QAction, QPixmap, QColor

from core.config import (
    load_config,
    save_config,
    load_endpoints,
    store_endpoints,
    interval_from,
    timeout_from,
    max_concurrency_from,
    flag_from,
)
from core.endpoints import EndpointStore
from core.monitor import Monitor
from core.notify import CallbackSink
from core.state import Notification, Severity

from gui.servers_tab import ServersTab
from gui.settings_tab import SettingsTab

logger = logging.getLogger("portwatch.gui")

# Posted by the monitor thread; the UI thread drains it on a timer.
CYCLE_COMPLETE = object()

TRAY_MESSAGE_MS = 5000
SHUTDOWN_WAIT_S = 1.0


def _fallback_icon() -> QIcon:
    pixmap = QPixmap(16, 16)
    pixmap.fill(QColor(60, 179, 113))
    return QIcon(pixmap)


class MainWindow(QMainWindow):
    def __init__(self, close_to_tray: bool | None = None):
        super().__init__()
        self.setWindowTitle("Portwatch – Server Monitor")
        self.resize(800, 500)
        self._config = load_config()
        self.close_to_tray = (close_to_tray if close_to_tray is not None else flag_from(self._config, "close_to_tray", True))
        self._events: Queue = Queue()
        self._stopping = False
        self._sink = CallbackSink(self._post_notification)
        self.store = EndpointStore(load_endpoints(self._config))
        self.monitor = Monitor(
            self.store,
            sink=self._sink if flag_from(self._config, "notifications_enabled", True) else None,
            on_cycle_complete=lambda: self._events.put(CYCLE_COMPLETE),
            interval=interval_from(self._config),
            timeout_ms=timeout_from(self._config),
            max_concurrency=max_concurrency_from(self._config),
        )

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)

        btn_layout = QHBoxLayout()
        self.start_btn = QPushButton("Start monitoring")
        self.start_btn.clicked.connect(self._start_monitor)
        self.stop_btn = QPushButton("Stop monitoring")
        self.stop_btn.clicked.connect(self._stop_monitor)
        btn_layout.addWidget(self.start_btn)
        btn_layout.addWidget(self.stop_btn)
        btn_layout.addStretch()
        layout.addLayout(btn_layout)

        tabs = QTabWidget()
        self.servers_tab = ServersTab(self.store, on_endpoints_changed=self._save_endpoints)
        self.settings_tab = SettingsTab(
            get_config_cb=lambda: self._config,
            set_config_cb=self._set_config,
            on_startup_toggle=self._on_startup_toggle_cb,
        )
        tabs.addTab(self.servers_tab, "Servers")
        tabs.addTab(self.settings_tab, "Settings")
        layout.addWidget(tabs)

        self.servers_tab.refresh_table()
        self.settings_tab.load_from_config(self._config)

        icon_path = Path(__file__).parent.parent / "resources" / "icon.png"
        icon = QIcon(str(icon_path)) if icon_path.exists() else _fallback_icon()
        self.setWindowIcon(icon)
        self.tray_icon = None
        if QSystemTrayIcon.isSystemTrayAvailable():
            self.tray_icon = QSystemTrayIcon(icon, self)
            self.tray_icon.setToolTip("Portwatch")
            tray_menu = QMenu(self)
            show_action = QAction("Show", self)
            show_action.triggered.connect(self.show_from_tray)
            quit_action = QAction("Quit", self)
            quit_action.triggered.connect(self._quit_app)
            tray_menu.addAction(show_action)
            tray_menu.addSeparator()
            tray_menu.addAction(quit_action)
            self.tray_icon.setContextMenu(tray_menu)
            self.tray_icon.activated.connect(self._on_tray_activated)
            self.tray_icon.show()

        self._poll_timer = QTimer(self)
        self._poll_timer.timeout.connect(self._drain_events)
        self._poll_timer.start(200)

        self._start_monitor()

    def _post_notification(self, title: str, body: str, severity: Severity):
        # Called on the monitor thread.
        self._events.put(Notification(title, body, severity))

    def _drain_events(self):
        refresh = False
        while True:
            try:
                item = self._events.get_nowait()
            except Empty:
                break
            if item is CYCLE_COMPLETE:
                refresh = True
            elif isinstance(item, Notification):
                self._show_notification(item)
        self._sync_buttons()
        if refresh:
            self.servers_tab.refresh_table()

    def _show_notification(self, n: Notification):
        if self.tray_icon is None:
            logger.info("Notify (no tray): %s - %s", n.title, n.body)
            return
        icon = (
            QSystemTrayIcon.MessageIcon.Warning
            if n.severity is Severity.WARNING
            else QSystemTrayIcon.MessageIcon.Information
        )
        self.tray_icon.showMessage(n.title, n.body, icon, TRAY_MESSAGE_MS)

    def _save_endpoints(self):
        store_endpoints(self._config, self.store.snapshot())
        try:
            save_config(self._config)
        except OSError as e:
            logger.error("Could not save config: %s", e)

    def _set_config(self, config: dict):
        self._config = config
        self.close_to_tray = flag_from(config, "close_to_tray", True)
        self.monitor.interval = interval_from(config)
        self.monitor.timeout_ms = timeout_from(config)
        self.monitor.max_concurrency = max_concurrency_from(config)
        self.monitor.sink = self._sink if flag_from(config, "notifications_enabled", True) else None
        self._save_endpoints()
        logger.info("Settings changed")

    def _on_startup_toggle_cb(self, enabled: bool):
        try:
            from app_main import run_at_startup_enable
            run_at_startup_enable(enabled)
        except OSError as e:
            logger.warning("Run at startup toggle failed: %s", e)

    def _start_monitor(self):
        if self.monitor.is_running:
            return
        self.monitor.start()
        self._sync_buttons()
        logger.info("Monitoring started")

    def _stop_monitor(self):
        # Doesn't block the UI; _sync_buttons re-enables Start once the last cycle is done.
        if not self.monitor.is_running or self._stopping:
            return
        self._stopping = True
        self.monitor.stop(wait=False)
        self._sync_buttons()
        logger.info("Stopping monitoring")

    def _sync_buttons(self):
        running = self.monitor.is_running
        if self._stopping and not running:
            self._stopping = False
            logger.info("Monitoring stopped")
        self.start_btn.setEnabled(not running)
        self.stop_btn.setEnabled(running and not self._stopping)

    def show_from_tray(self):
        self.showNormal()
        self.raise_()
        self.activateWindow()

    def _on_tray_activated(self, reason):
        if reason == QSystemTrayIcon.ActivationReason.DoubleClick:
            self.show_from_tray()

    def closeEvent(self, event):
        if self.close_to_tray and self.tray_icon is not None:
            self.hide()
            event.ignore()
        else:
            self._shutdown()
            event.accept()
            QApplication.quit()

    def _shutdown(self):
        # Bounded wait; the monitor thread is a daemon.
        if not self.monitor.stop(timeout=SHUTDOWN_WAIT_S):
            logger.info("Monitor still finishing a cycle at exit")
        self._save_endpoints()

    def _quit_app(self):
        self._shutdown()
        QApplication.quit()
