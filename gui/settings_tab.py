"""Settings: check interval, probe timeout, concurrency, notifications, tray/close, startup, log path."""
from PySide6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QFormLayout,
    QSpinBox,
    QCheckBox,
    QLineEdit,
    QPushButton,
    QFileDialog,
    QGroupBox,
)

from core.config import (
    DEFAULT_INTERVAL_S,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_MAX_CONCURRENCY,
    MIN_INTERVAL_S,
    MIN_TIMEOUT_MS,
    get_config_dir,
    interval_from,
    timeout_from,
    max_concurrency_from,
    flag_from,
    log_dir_from,
)


class SettingsTab(QWidget):
    def __init__(self, get_config_cb, set_config_cb, on_startup_toggle=None):
        super().__init__()
        self.get_config = get_config_cb
        self.set_config = set_config_cb
        self.on_startup_toggle = on_startup_toggle or (lambda v: None)
        self._loading = False
        self._build_ui()

    def _build_ui(self):
        layout = QVBoxLayout(self)

        grp = QGroupBox("Monitoring")
        form = QFormLayout(grp)
        self.interval = QSpinBox()
        self.interval.setRange(MIN_INTERVAL_S, 3600)
        self.interval.setSuffix(" s")
        self.interval.setValue(DEFAULT_INTERVAL_S)
        form.addRow("Check every:", self.interval)
        self.timeout = QSpinBox()
        self.timeout.setRange(MIN_TIMEOUT_MS, 60000)
        self.timeout.setSingleStep(500)
        self.timeout.setSuffix(" ms")
        self.timeout.setValue(DEFAULT_TIMEOUT_MS)
        form.addRow("Connect timeout:", self.timeout)
        self.max_concurrency = QSpinBox()
        self.max_concurrency.setRange(0, 1000)
        self.max_concurrency.setSpecialValueText("Unlimited")
        self.max_concurrency.setValue(DEFAULT_MAX_CONCURRENCY)
        form.addRow("Parallel checks:", self.max_concurrency)
        layout.addWidget(grp)

        grp2 = QGroupBox("Notifications")
        form2 = QFormLayout(grp2)
        self.notifications_enabled = QCheckBox("Notify when a server goes online or offline")
        self.notifications_enabled.setChecked(True)
        form2.addRow(self.notifications_enabled)
        layout.addWidget(grp2)

        grp3 = QGroupBox("Behavior")
        form3 = QFormLayout(grp3)
        self.close_to_tray = QCheckBox("Minimize to tray when window is closed")
        self.close_to_tray.setChecked(True)
        form3.addRow(self.close_to_tray)
        self.run_at_startup = QCheckBox("Run at startup (Windows)")
        self.run_at_startup.setChecked(False)
        self.run_at_startup.toggled.connect(self._on_startup_changed)
        form3.addRow(self.run_at_startup)
        layout.addWidget(grp3)

        grp4 = QGroupBox("Logging")
        form4 = QFormLayout(grp4)
        path_layout = QHBoxLayout()
        self.log_path = QLineEdit()
        self.log_path.setPlaceholderText("(default: AppData/Portwatch/logs)")
        path_layout.addWidget(self.log_path)
        browse = QPushButton("Browse...")
        browse.clicked.connect(self._browse_log_path)
        path_layout.addWidget(browse)
        form4.addRow("Log directory:", path_layout)
        layout.addWidget(grp4)

        layout.addStretch()

        for spin in (self.interval, self.timeout, self.max_concurrency):
            spin.valueChanged.connect(self._apply)
        for box in (self.notifications_enabled, self.close_to_tray):
            box.toggled.connect(self._apply)
        self.log_path.editingFinished.connect(self._apply)

    def _on_startup_changed(self, checked: bool):
        if self._loading:
            return
        self.on_startup_toggle(checked)
        self._apply()

    def _browse_log_path(self):
        path = QFileDialog.getExistingDirectory(self, "Select log directory", str(get_config_dir()))
        if path:
            self.log_path.setText(path)
            self._apply()

    def _apply(self):
        if self._loading:
            return
        c = self.get_config()
        c["interval_s"] = self.interval.value()
        c["timeout_ms"] = self.timeout.value()
        c["max_concurrency"] = self.max_concurrency.value()
        c["notifications_enabled"] = self.notifications_enabled.isChecked()
        c["close_to_tray"] = self.close_to_tray.isChecked()
        c["run_at_startup"] = self.run_at_startup.isChecked()
        c["log_path"] = self.log_path.text().strip()
        self.set_config(c)

    def load_from_config(self, config: dict):
        self._loading = True
        try:
            self.interval.setValue(int(interval_from(config)))
            self.timeout.setValue(timeout_from(config))
            self.max_concurrency.setValue(max_concurrency_from(config))
            self.notifications_enabled.setChecked(flag_from(config, "notifications_enabled", True))
            self.close_to_tray.setChecked(flag_from(config, "close_to_tray", True))
            self.run_at_startup.setChecked(flag_from(config, "run_at_startup", False))
            self.log_path.setText(log_dir_from(config) or "")
        finally:
            self._loading = False
