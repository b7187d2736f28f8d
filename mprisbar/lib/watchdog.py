"""systemd notification for the mprisbar user service.

Messages go to the socket named by NOTIFY_SOCKET.  Everything silently
no-ops when it is unset (started from waybar directly, or in tests).

Usage:
    from mprisbar.lib.watchdog import sd_notify, watchdog_loop
    sd_notify("READY=1")
    asyncio.create_task(watchdog_loop())
"""

import asyncio
import logging
import os
import socket

logger = logging.getLogger(__name__)


def sd_notify(msg: str) -> bool:
    """Send *msg* to the systemd notify socket.  Returns True if sent."""
    addr = os.environ.get("NOTIFY_SOCKET")
    if not addr:
        return False
    if addr[0] == "@":
        addr = "\0" + addr[1:]
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
    try:
        sock.sendto(msg.encode(), addr)
        return True
    except OSError as e:
        logger.debug("sd_notify(%r) failed: %s", msg, e)
        return False
    finally:
        sock.close()


def watchdog_interval(default: float = 20.0) -> float:
    """Half of WATCHDOG_USEC in seconds, or *default* when unset."""
    usec = os.environ.get("WATCHDOG_USEC", "")
    try:
        return max(int(usec) / 2_000_000, 1.0)
    except ValueError:
        return default


async def watchdog_loop(interval: float | None = None):
    """Send WATCHDOG=1 every *interval* seconds.  Call as asyncio.create_task()."""
    if not os.environ.get("NOTIFY_SOCKET"):
        return
    interval = interval or watchdog_interval()
    logger.info("Watchdog started (interval=%.1fs)", interval)
    while True:
        sd_notify("WATCHDOG=1")
        await asyncio.sleep(interval)
