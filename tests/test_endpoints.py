"""Unit tests for endpoint records and the shared store (core.endpoints)."""
import threading

import pytest
from core.endpoints import Endpoint, EndpointStore
from core.state import Event


@pytest.fixture
def store():
    return EndpointStore()


def test_new_endpoint_defaults():
    ep = Endpoint("Lobby", "127.0.0.1", 25565)
    assert ep.online is False
    assert ep.first_check is True
    assert ep.last_checked is None


def test_endpoint_strips_and_converts():
    ep = Endpoint("  Lobby ", " mc.example.org ", "25565")
    assert ep.name == "Lobby"
    assert ep.host == "mc.example.org"
    assert ep.port == 25565


@pytest.mark.parametrize("name,host,port", [
    ("", "127.0.0.1", 25565),
    ("   ", "127.0.0.1", 25565),
    ("Lobby", "", 25565),
    ("Lobby", "127.0.0.1", 0),
    ("Lobby", "127.0.0.1", 65536),
    ("Lobby", "127.0.0.1", "abc"),
    ("Lobby", "127.0.0.1", None),
    ("Lobby", "127.0.0.1", True),
    ("Lobby", "127.0.0.1", 80.7),
    ("Lobby", "127.0.0.1", 80.0),
    ("Lobby", "127.0.0.1", "80.5"),
    ("Lobby", "127.0.0.1", -1),
])
def test_invalid_endpoint(name, host, port):
    with pytest.raises(ValueError):
        Endpoint(name, host, port)


def test_port_bounds_accepted():
    assert Endpoint("a", "h", 1).port == 1
    assert Endpoint("a", "h", 65535).port == 65535


def test_ids_are_unique():
    a = Endpoint("Lobby", "127.0.0.1", 25565)
    b = Endpoint("Lobby", "127.0.0.1", 25565)
    assert a.id != b.id


def test_address_ipv6():
    assert Endpoint("v6", "::1", 80).address == "[::1]:80"
    assert Endpoint("v4", "10.0.0.1", 80).address == "10.0.0.1:80"


def test_snapshot_returns_copies(store):
    ep = store.add(Endpoint("Lobby", "127.0.0.1", 25565))
    snap = store.snapshot()
    snap[0].online = True
    assert store.get(ep.id).online is False


def test_snapshot_keeps_insertion_order(store):
    names = ["a", "b", "c"]
    for n in names:
        store.add(Endpoint(n, "127.0.0.1", 1000))
    assert [ep.name for ep in store.snapshot()] == names


def test_remove(store):
    ep = store.add(Endpoint("Lobby", "127.0.0.1", 25565))
    assert store.remove(ep.id) is True
    assert store.remove(ep.id) is False
    assert len(store) == 0
    assert store.get(ep.id) is None


def test_apply_result_first_check(store):
    ep = store.add(Endpoint("Lobby", "127.0.0.1", 25565))
    t = store.apply_result(ep.id, False)
    assert t.event is None
    current = store.get(ep.id)
    assert current.online is False
    assert current.first_check is False
    assert current.last_checked is not None


def test_apply_result_transition(store):
    ep = store.add(Endpoint("Lobby", "127.0.0.1", 25565, online=False, first_check=False))
    t = store.apply_result(ep.id, True)
    assert t.event is Event.CAME_ONLINE
    assert store.get(ep.id).online is True


def test_apply_result_removed_is_discarded(store):
    ep = store.add(Endpoint("Lobby", "127.0.0.1", 25565))
    store.remove(ep.id)
    readded = store.add(Endpoint("Lobby", "127.0.0.1", 25565))
    assert store.apply_result(ep.id, True) is None
    current = store.get(readded.id)
    assert current.first_check is True
    assert current.online is False


def test_concurrent_add_remove_while_applying(store):
    ep = store.add(Endpoint("busy", "127.0.0.1", 1, first_check=False))
    stop = threading.Event()

    def churn():
        while not stop.is_set():
            extra = store.add(Endpoint("tmp", "127.0.0.1", 2))
            store.snapshot()
            store.remove(extra.id)

    t = threading.Thread(target=churn)
    t.start()
    try:
        for i in range(500):
            store.apply_result(ep.id, i % 2 == 0)
    finally:
        stop.set()
        t.join()
    current = store.get(ep.id)
    assert current.first_check is False
    assert current.online is False


def test_port_from_digit_string():
    assert Endpoint("a", "h", " 8080 ").port == 8080


@pytest.mark.parametrize("field", ["online", "first_check"])
@pytest.mark.parametrize("value", ["false", 0, 1, None])
def test_state_flags_must_be_bool(field, value):
    with pytest.raises(ValueError):
        Endpoint("a", "h", 80, **{field: value})
