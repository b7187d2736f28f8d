# mprisbar
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Cover-art cache for the status bar.

The selected player's artwork is published as a symlink at a fixed path in
the user's cache directory (``~/.cache/mpris-cover.png`` by default), which a
waybar ``image`` module displays.  Only local ``file://`` artwork is linked;
remote URLs leave no artifact.  After every change waybar is sent
``SIGRTMIN+5`` so it re-reads the image.

Cover art is best-effort: filesystem and signal errors are logged, never
raised.
"""

import logging
import os
import shutil
import subprocess
from urllib.parse import unquote, urlparse

log = logging.getLogger(__name__)

COVER_FILENAME = "mpris-cover.png"
REFRESH_TARGET = "waybar"
REFRESH_SIGNAL = 5  # offset from SIGRTMIN


def default_cache_path() -> str:
    cache_dir = os.environ.get("XDG_CACHE_HOME") or os.path.expanduser("~/.cache")
    return os.path.join(cache_dir, COVER_FILENAME)


def local_path(art_url: str) -> str | None:
    """Return the filesystem path of a ``file://`` URL, or None."""
    if not art_url.startswith("file://"):
        return None
    return unquote(urlparse(art_url).path) or None


class CoverArtCache:

    def __init__(self, path: str | None = None,
                 refresh_target: str = REFRESH_TARGET,
                 refresh_signal: int = REFRESH_SIGNAL):
        self.path = path or default_cache_path()
        self.refresh_target = refresh_target
        self.refresh_signal = refresh_signal

    def update(self, art_url: str) -> None:
        """Point the cache artifact at *art_url* (or clear it) and refresh waybar."""
        try:
            self._clear()
            src = local_path(art_url)
            if src:
                os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
                os.symlink(src, self.path)
                log.info("Cover art -> %s", src)
            else:
                log.debug("No local cover art for %r", art_url)
        except OSError as e:
            log.error("Error updating cover art: %s", e)

        self.refresh()

    def _clear(self) -> None:
        if not os.path.lexists(self.path):
            return
        if os.path.isdir(self.path) and not os.path.islink(self.path):
            shutil.rmtree(self.path)
        else:
            try:
                os.remove(self.path)
            except FileNotFoundError:
                pass

    def refresh(self) -> bool:
        """Ask the status bar to re-read the artifact.  Returns True on success."""
        cmd = ["pkill", f"-RTMIN+{self.refresh_signal}", self.refresh_target]
        try:
            result = subprocess.run(cmd, capture_output=True, check=False)
        except OSError as e:
            log.error("Failed to send %s signal: %s", self.refresh_target, e)
            return False
        if result.returncode != 0:
            log.error("Failed to send %s signal (pkill exit %d)",
                      self.refresh_target, result.returncode)
            return False
        return True
