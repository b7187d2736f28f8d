#!/usr/bin/env python3
# mprisbar
# SPDX-License-Identifier: GPL-3.0-or-later

"""
mprisbar status service.

Follows the MPRIS players on the session bus and prints the now-playing line
for a waybar custom module.  Logs go to stderr; stdout is the status line.

waybar config:

    "custom/mpris": {
        "exec": "mprisbar",
        "return-type": "json"
    }

As systemd user service (Type=notify, WatchdogSec=...): READY=1 is sent once
the existing players are registered.
"""

import asyncio
import logging
import os
import signal
import sys

from .lib.config import cfg
from .lib.cover_art import REFRESH_SIGNAL, REFRESH_TARGET, CoverArtCache
from .lib.display import MAX_WIDTH, DisplayEngine, StatusLine
from .lib.provider import ProviderError
from .lib.registry import SessionRegistry
from .lib.watchdog import sd_notify, watchdog_loop
from .providers.mpris import MprisProvider

log = logging.getLogger("mprisbar")

TICK_INTERVAL = 0.1  # seconds per marquee step


def _cover_art_from_config() -> CoverArtCache | None:
    if not cfg("cover_art", "enabled", default=True):
        log.info("Cover art disabled")
        return None
    path = cfg("cover_art", "path")
    return CoverArtCache(
        os.path.expanduser(path) if path else None,
        refresh_target=cfg("cover_art", "refresh_target", default=REFRESH_TARGET),
        refresh_signal=cfg("cover_art", "refresh_signal", default=REFRESH_SIGNAL),
    )


class StatusService:
    """Owns the display pipeline, the provider and the loop tasks."""

    def __init__(self, stream=None, provider_factory=MprisProvider):
        self.output = StatusLine(stream)
        self.cover_art = _cover_art_from_config()
        self.engine = DisplayEngine(
            self.output, self.cover_art,
            max_width=cfg("display", "max_width", default=MAX_WIDTH))
        self.registry = SessionRegistry(self.engine)
        self.provider = provider_factory(self.registry)
        self.tick_interval = cfg("display", "tick_interval", default=TICK_INTERVAL)

        self._tasks: list[asyncio.Task] = []
        self._stop_event = asyncio.Event()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    async def start(self):
        """Start the provider, then the marquee ticker and watchdog.

        Raises ProviderError if the provider cannot connect.
        """
        await self.provider.start()
        self._tasks.append(asyncio.create_task(self._tick_loop()))
        self._tasks.append(asyncio.create_task(watchdog_loop()))
        log.info("Tracking %d player(s)", len(self.registry))
        sd_notify(f"READY=1\nSTATUS=Tracking {len(self.registry)} player(s)")

    async def _tick_loop(self):
        while True:
            await asyncio.sleep(self.tick_interval)
            try:
                self.engine.tick()
            except Exception:
                log.exception("Marquee tick failed")

    def request_stop(self):
        """Ask run() to shut down.  Repeated requests are ignored."""
        if self._stop_event.is_set():
            return
        log.info("Exiting cleanly...")
        self._stop_event.set()

    async def stop(self):
        sd_notify("STOPPING=1")
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                log.debug("Task %s ended with error: %s", task.get_name(), e)
        self._tasks.clear()
        await self.provider.stop()

    async def run(self):
        """Convenience entry-point: start + wait for signal + stop."""
        await self.start()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.request_stop)
        try:
            await self._stop_event.wait()
        finally:
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.remove_signal_handler(sig)
            await self.stop()


def main():
    logging.basicConfig(
        level=str(cfg("log_level", default="INFO")).upper(),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    try:
        asyncio.run(StatusService().run())
    except ProviderError as e:
        log.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
