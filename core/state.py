"""
Reachability transitions per endpoint.
States: ONLINE, OFFLINE (a plain bool on the endpoint).
Transitions are edge-triggered: an event fires only when the probed state differs
from the stored one, and never on the endpoint's first check.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"


class Event(Enum):
    CAME_ONLINE = "came_online"
    WENT_OFFLINE = "went_offline"

    @property
    def severity(self) -> Severity:
        return Severity.INFO if self is Event.CAME_ONLINE else Severity.WARNING


@dataclass(frozen=True)
class Transition:
    """Outcome of one probe applied to one endpoint."""
    online: bool
    first_check: bool
    event: Optional[Event] = None


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    severity: Severity


def evaluate(previous_online: bool, first_check: bool, probed_online: bool) -> Transition:
    """
    Apply a probe result to the stored state.

    The new state always takes the probed value and always leaves first-check mode.
    An event is produced only for a real change seen after the first check.
    """
    event = None
    if not first_check and previous_online != probed_online:
        event = Event.CAME_ONLINE if probed_online else Event.WENT_OFFLINE
    return Transition(online=probed_online, first_check=False, event=event)


def build_notification(event: Event, name: str) -> Notification:
    if event is Event.CAME_ONLINE:
        return Notification("Server is online!", f"[{name}] is finally online, go connect!", event.severity)
    return Notification("Server went offline...", f"[{name}] just lost connection.", event.severity)
