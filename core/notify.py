"""
Notification sinks. The monitor only decides that a transition happened and what it says;
the sink decides how it is shown (tray balloon in the GUI, log line when headless).
Sink failures are isolated: logged and dropped, never raised into the monitor.
"""
import logging
from typing import Callable, Optional, Protocol

from core.state import Notification, Severity

logger = logging.getLogger("portwatch.notify")


class NotificationSink(Protocol):
    def notify(self, title: str, body: str, severity: Severity) -> None:
        ...


class LoggingSink:
    """Headless sink: warnings for offline, info for online."""

    def notify(self, title: str, body: str, severity: Severity) -> None:
        level = logging.WARNING if severity is Severity.WARNING else logging.INFO
        logger.log(level, "Notify [%s]: %s - %s", severity.value, title, body)


class CallbackSink:
    """Adapts cb(title, body, severity), e.g. the GUI's tray bridge."""

    def __init__(self, callback: Callable[[str, str, Severity], None]) -> None:
        self._callback = callback

    def notify(self, title: str, body: str, severity: Severity) -> None:
        self._callback(title, body, severity)


def dispatch(sink: Optional[NotificationSink], notification: Notification) -> bool:
    """Best-effort delivery. Returns False if the sink raised."""
    if sink is None:
        return True
    try:
        sink.notify(notification.title, notification.body, notification.severity)
    except Exception as e:
        logger.exception("Notification failed: %s", e)
        return False
    return True
