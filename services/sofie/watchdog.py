"""systemd integration for the take poller.

The poller runs as a Type=notify unit: READY=1 once the Core client is up,
then WATCHDOG=1 plus a STATUS= line with the poll/take counters on every
heartbeat, and STOPPING=1 on the way out.  Outside systemd (NOTIFY_SOCKET
unset) every call is a no-op.

A notify socket that has gone away (stale env after a unit restart, a
container without the socket mounted) is logged and ignored; it must never
take the poll loop down.
"""

import asyncio
import logging
import os
import socket

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 20


def _notify_address() -> str | None:
    addr = os.environ.get("NOTIFY_SOCKET")
    if not addr:
        return None
    # Abstract namespace sockets are announced with a leading '@'
    if addr.startswith("@"):
        return "\0" + addr[1:]
    return addr


def sd_notify(*fields: str) -> bool:
    """Send KEY=VALUE fields in one datagram.  Returns True if it was delivered."""
    addr = _notify_address()
    if addr is None or not fields:
        return False
    payload = "\n".join(fields).encode()
    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM) as sock:
            sock.sendto(payload, addr)
    except OSError as e:
        logger.warning("systemd notify failed (%s): %s", os.environ.get("NOTIFY_SOCKET"), e)
        return False
    return True


def notify_status(text: str) -> bool:
    return sd_notify(f"STATUS={text}")


async def watchdog_loop(interval: float = DEFAULT_INTERVAL, status=None):
    """Heartbeat task.  *status* is an optional callable giving the STATUS= text.

    Run with asyncio.create_task() and cancel on shutdown.
    """
    sd_notify("READY=1")
    logger.info("Watchdog heartbeat every %ss", interval)
    while True:
        fields = ["WATCHDOG=1"]
        if status is not None:
            fields.append(f"STATUS={status()}")
        sd_notify(*fields)
        await asyncio.sleep(interval)
