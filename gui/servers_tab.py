"""Servers tab: add form (name, host, port) and a status table (name, host, port, status, last check)."""
from datetime import datetime

from PySide6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QTableWidget,
    QTableWidgetItem,
    QPushButton,
    QHeaderView,
    QMessageBox,
    QLineEdit,
    QLabel,
)
from PySide6.QtGui import QColor

from core.endpoints import Endpoint, EndpointStore

ONLINE_COLOR = QColor(46, 139, 87)
OFFLINE_COLOR = QColor(178, 34, 34)


def status_text(ep: Endpoint) -> str:
    return "√ Online" if ep.online else "× Offline"


def last_check_text(ep: Endpoint) -> str:
    if ep.first_check or ep.last_checked is None:
        return "Waiting..."
    return datetime.fromtimestamp(ep.last_checked).strftime("%H:%M:%S")


class ServersTab(QWidget):
    def __init__(self, store: EndpointStore, on_endpoints_changed=None):
        super().__init__()
        self.store = store
        self.on_endpoints_changed = on_endpoints_changed or (lambda: None)
        self._row_ids: list[int] = []
        self._build_ui()

    def _build_ui(self):
        layout = QVBoxLayout(self)

        form = QHBoxLayout()
        self.name_edit = QLineEdit("Example")
        self.host_edit = QLineEdit("127.0.0.1")
        self.port_edit = QLineEdit("25565")
        self.port_edit.setMaximumWidth(80)
        add_btn = QPushButton("Add")
        add_btn.clicked.connect(self._add_endpoint)
        delete_btn = QPushButton("Delete selected")
        delete_btn.setStyleSheet("color: red;")
        delete_btn.clicked.connect(self._remove_selected)
        form.addWidget(QLabel("Name:"))
        form.addWidget(self.name_edit)
        form.addWidget(QLabel("Host:"))
        form.addWidget(self.host_edit)
        form.addWidget(QLabel("Port:"))
        form.addWidget(self.port_edit)
        form.addWidget(add_btn)
        form.addWidget(delete_btn)
        layout.addLayout(form)

        self.table = QTableWidget(0, 5)
        self.table.setHorizontalHeaderLabels(["Name", "Host", "Port", "Status", "Last check"])
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.table.setSelectionMode(QTableWidget.SelectionMode.SingleSelection)
        self.table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.table.verticalHeader().setDefaultSectionSize(24)
        layout.addWidget(self.table)

    def refresh_table(self):
        """Redraw from a store snapshot, keeping the selected endpoint selected."""
        selected_id = self._selected_id()
        endpoints = self.store.snapshot()
        self._row_ids = [ep.id for ep in endpoints]
        self.table.setRowCount(len(endpoints))
        for i, ep in enumerate(endpoints):
            self.table.setItem(i, 0, QTableWidgetItem(ep.name))
            self.table.setItem(i, 1, QTableWidgetItem(ep.host))
            self.table.setItem(i, 2, QTableWidgetItem(str(ep.port)))
            status = QTableWidgetItem(status_text(ep))
            if not ep.first_check:
                status.setForeground(ONLINE_COLOR if ep.online else OFFLINE_COLOR)
            self.table.setItem(i, 3, status)
            self.table.setItem(i, 4, QTableWidgetItem(last_check_text(ep)))
        if selected_id in self._row_ids:
            self.table.selectRow(self._row_ids.index(selected_id))

    def _selected_id(self) -> int | None:
        row = self.table.currentRow()
        if 0 <= row < len(self._row_ids):
            return self._row_ids[row]
        return None

    def _add_endpoint(self):
        name = self.name_edit.text().strip()
        host = self.host_edit.text().strip()
        port = self.port_edit.text().strip()
        if not name or not host or not port:
            QMessageBox.information(self, "Add server", "Please fill in name, host and port.")
            return
        if not port.isdigit():
            QMessageBox.information(self, "Add server", "Port must be a number.")
            return
        try:
            self.store.add(Endpoint(name=name, host=host, port=int(port)))
        except ValueError as e:
            QMessageBox.warning(self, "Add server", str(e))
            return
        self.name_edit.clear()
        self.host_edit.clear()
        self.refresh_table()
        self.on_endpoints_changed()

    def _remove_selected(self):
        endpoint_id = self._selected_id()
        if endpoint_id is None:
            QMessageBox.information(self, "Delete", "Select a row first.")
            return
        confirm = QMessageBox.question(self, "Confirm", "Delete the selected server?")
        if confirm != QMessageBox.StandardButton.Yes:
            return
        if self.store.remove(endpoint_id):
            self.refresh_table()
            self.on_endpoints_changed()
