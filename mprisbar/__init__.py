# mprisbar
# SPDX-License-Identifier: GPL-3.0-or-later

"""
mprisbar: MPRIS now-playing status line for waybar.

Watches every media player on the D-Bus session bus, follows one selected
player, and prints a JSON status line per change on stdout:

    {"text":"Song ~ Artist"}

Long titles scroll as a marquee; paused players render in italics.  The
current cover art is published as a symlink under the user's cache directory.
"""

__version__ = "0.1.0"
