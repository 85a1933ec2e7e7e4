"""
Portwatch – TCP server monitor. Entry point.
- GUI mode (default) or --headless
- Minimize to tray when closed (configurable)
- Run at startup (Windows registry Run key, current user)
"""
import argparse
import logging
import signal
import subprocess
import sys
import threading
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from core.config import (
    load_config,
    save_config,
    load_endpoints,
    store_endpoints,
    interval_from,
    timeout_from,
    max_concurrency_from,
    log_dir_from,
    flag_from,
)
from core.endpoints import EndpointStore
from core.logging_setup import setup_logging, teardown_logging
from core.monitor import Monitor
from core.notify import LoggingSink

RUN_KEY = r"HKCU\Software\Microsoft\Windows\CurrentVersion\Run"
RUN_VALUE = "Portwatch"


def run_headless(verbose: bool = False):
    config = load_config()
    logger = setup_logging(log_dir_from(config), verbose=verbose)
    logger.info("Portwatch started (headless)")
    store = EndpointStore(load_endpoints(config))
    monitor = Monitor(
        store,
        sink=LoggingSink() if flag_from(config, "notifications_enabled", True) else None,
        interval=interval_from(config),
        timeout_ms=timeout_from(config),
        max_concurrency=max_concurrency_from(config),
    )
    done = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: done.set())
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, lambda *_: done.set())
    monitor.start()
    try:
        while not done.wait(0.5):
            if not monitor.is_running:
                break
    finally:
        monitor.stop()
        store_endpoints(config, store.snapshot())
        save_config(config)
    logger.info("Portwatch stopped (headless)")
    teardown_logging()


def run_gui(verbose: bool = False):
    from PySide6.QtWidgets import QApplication
    from gui.main_window import MainWindow

    config = load_config()
    setup_logging(log_dir_from(config), verbose=verbose)
    logging.getLogger("portwatch").info("Portwatch started (GUI)")

    app = QApplication(sys.argv)
    app.setQuitOnLastWindowClosed(False)
    win = MainWindow()
    win.show()
    code = app.exec()
    logging.getLogger("portwatch").info("Portwatch stopped (GUI)")
    sys.exit(code)


def run_at_startup_enable(enable: bool):
    """Windows only: add/remove the per-user Run entry (no admin needed)."""
    if sys.platform != "win32":
        return
    if enable:
        if getattr(sys, "frozen", False):
            command = f'"{sys.executable}"'
        else:
            command = f'"{sys.executable}" "{Path(__file__).resolve()}"'
        cmd = ["reg", "add", RUN_KEY, "/v", RUN_VALUE, "/d", command, "/f"]
    else:
        cmd = ["reg", "delete", RUN_KEY, "/v", RUN_VALUE, "/f"]
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise OSError(f"reg exited with {result.returncode}: {result.stderr.strip()}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Portwatch – TCP server monitor")
    parser.add_argument("--headless", action="store_true", help="Run monitoring without GUI")
    parser.add_argument("--verbose", action="store_true", help="Show debug output (every check) on the console")
    args = parser.parse_args()
    if args.headless:
        run_headless(args.verbose)
    else:
        run_gui(args.verbose)
