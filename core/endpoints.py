"""
Endpoint records and the lock-guarded collection shared by the UI and the monitor.
The lock covers membership and per-endpoint state only; it is never held while probing.
"""
import itertools
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from core.state import Transition, evaluate

MIN_PORT = 1
MAX_PORT = 65535

_ids = itertools.count(1)


def parse_port(value) -> int:
    """Accept an int or a string of digits; anything else (floats, bools, None) is rejected."""
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Invalid port: {value!r}")
    if not MIN_PORT <= value <= MAX_PORT:
        raise ValueError(f"Port must be between {MIN_PORT} and {MAX_PORT}, got {value}")
    return value


@dataclass
class Endpoint:
    """A named host/port pair and its last known reachability."""
    name: str
    host: str
    port: int
    online: bool = False
    first_check: bool = True
    last_checked: Optional[float] = field(default=None, compare=False)
    id: int = field(default_factory=lambda: next(_ids), compare=False)

    def __post_init__(self) -> None:
        self.name = str(self.name).strip()
        self.host = str(self.host).strip()
        if not self.name:
            raise ValueError("Endpoint name must not be empty")
        if not self.host:
            raise ValueError("Endpoint host must not be empty")
        self.port = parse_port(self.port)
        if not isinstance(self.online, bool) or not isinstance(self.first_check, bool):
            raise ValueError("online and first_check must be booleans")

    @property
    def address(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


class EndpointStore:
    """
    Insertion-ordered endpoints keyed by id. All reads return copies so callers
    never observe a half-applied result.
    """

    def __init__(self, endpoints: Iterable[Endpoint] = ()) -> None:
        self._lock = threading.Lock()
        self._items: dict[int, Endpoint] = {}
        for ep in endpoints:
            self._items[ep.id] = ep

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def add(self, endpoint: Endpoint) -> Endpoint:
        with self._lock:
            self._items[endpoint.id] = endpoint
            return replace(endpoint)

    def remove(self, endpoint_id: int) -> bool:
        with self._lock:
            return self._items.pop(endpoint_id, None) is not None

    def get(self, endpoint_id: int) -> Optional[Endpoint]:
        with self._lock:
            ep = self._items.get(endpoint_id)
            return replace(ep) if ep is not None else None

    def snapshot(self) -> list[Endpoint]:
        with self._lock:
            return [replace(ep) for ep in self._items.values()]

    def apply_result(self, endpoint_id: int, reachable: bool) -> Optional[Transition]:
        """
        Evaluate a probe result against the stored state and write both fields together.
        Returns None when the endpoint was removed while its probe was in flight.
        """
        with self._lock:
            ep = self._items.get(endpoint_id)
            if ep is None:
                return None
            transition = evaluate(ep.online, ep.first_check, reachable)
            ep.online = transition.online
            ep.first_check = transition.first_check
            ep.last_checked = time.time()
            return transition
