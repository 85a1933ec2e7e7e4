"""
TCP reachability probe: open a connection, close it right away, report whether the
handshake finished within the timeout. Nothing is sent, so any TCP listener works.
Every failure collapses to reachable=False; only cancellation propagates.
"""
import asyncio
import logging
import socket
import time
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("portwatch.probe")

PROBE_TIMEOUT_MS = 3000


@dataclass
class ProbeResult:
    reachable: bool
    latency_ms: Optional[float]  # None if failed
    reason: str  # "OK", "TIMEOUT", "REFUSED", "UNRESOLVED", "UNREACHABLE", "ERROR:<name>"


async def probe_endpoint(host: str, port: int, timeout_ms: int = PROBE_TIMEOUT_MS) -> ProbeResult:
    """Connect once to host:port. Returns ProbeResult with reachable, latency_ms and reason."""
    start = time.perf_counter()
    writer = None
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout=timeout_ms / 1000.0
        )
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        return ProbeResult(reachable=True, latency_ms=round(elapsed_ms, 1), reason="OK")
    except asyncio.TimeoutError:
        return ProbeResult(reachable=False, latency_ms=None, reason="TIMEOUT")
    except ConnectionRefusedError:
        return ProbeResult(reachable=False, latency_ms=None, reason="REFUSED")
    except socket.gaierror:
        return ProbeResult(reachable=False, latency_ms=None, reason="UNRESOLVED")
    except OSError:
        return ProbeResult(reachable=False, latency_ms=None, reason="UNREACHABLE")
    except Exception as e:
        return ProbeResult(reachable=False, latency_ms=None, reason=f"ERROR:{type(e).__name__}")
    finally:
        if writer is not None:
            await _close(writer)


async def _close(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await writer.wait_closed()
    except (OSError, asyncio.IncompleteReadError) as e:
        # Peer reset during close; the handshake already succeeded.
        logger.debug("Error closing probe connection: %s", e)


async def probe(host: str, port: int, timeout_ms: int = PROBE_TIMEOUT_MS) -> bool:
    result = await probe_endpoint(host, port, timeout_ms)
    logger.debug("Probe %s:%s -> %s", host, port, result.reason)
    return result.reachable
