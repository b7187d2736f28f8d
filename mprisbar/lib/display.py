# mprisbar
# SPDX-License-Identifier: GPL-3.0-or-later

"""
DisplayEngine: turns the selected session into waybar status lines.

States:
  EMPTY      no session selected, empty text
  STATIC     "title ~ artist" fits in max_width codepoints
  SCROLLING  longer text, scrolled one codepoint per tick as a marquee

Output is one JSON object per line on stdout:

    {"text":"Song ~ Artist"}
    {"text":"<i>Song ~ Artist</i>"}      (paused or stopped)
"""

import enum
import logging
import sys

from .encoding import encode
from .session import MediaSession, SessionHandler

log = logging.getLogger(__name__)

MAX_WIDTH = 50
SEPARATOR = " ~ "


class DisplayState(enum.Enum):
    EMPTY = "empty"
    STATIC = "static"
    SCROLLING = "scrolling"


class StatusLine:
    """Writes status lines to a stream, flushing each one."""

    def __init__(self, stream=None):
        self._stream = stream if stream is not None else sys.stdout

    def emit(self, payload: str) -> None:
        # payload is already escaped; written verbatim
        self._stream.write('{"text":"' + payload + '"}\n')
        self._stream.flush()


class DisplayEngine(SessionHandler):

    def __init__(self, output: StatusLine, cover_art=None,
                 max_width: int = MAX_WIDTH):
        self._output = output
        self._cover_art = cover_art
        self.max_width = max_width

        self.last_title = ""
        self.last_artist = ""
        self.last_art_url = ""
        self.is_playing = False

        self.state = DisplayState.EMPTY
        self.display_text = ""   # escaped when STATIC, raw when SCROLLING
        self.display_length = 0  # codepoints of the raw text
        self.scroll_offset = 0

    @property
    def needs_scrolling(self) -> bool:
        return self.state is DisplayState.SCROLLING

    # ── SessionHandler ──

    def on_selected(self, session: MediaSession) -> None:
        log.debug("Display follows %s", session.identity)
        self.update(session)

    def on_state_changed(self, session: MediaSession) -> None:
        if not session.is_selected:
            return
        self.update(session)

    def on_empty(self) -> None:
        self.state = DisplayState.EMPTY
        self.display_text = ""
        self.display_length = 0
        self.scroll_offset = 0
        self.last_title = ""
        self.last_artist = ""
        self.is_playing = False
        if self.last_art_url:
            self._update_cover_art("")
        self._output.emit("")

    # ── Updates ──

    def update(self, session: MediaSession) -> None:
        """Re-render for *session* if anything visible changed."""
        meta = session.metadata
        playing = session.is_playing

        if meta.art_url != self.last_art_url:
            self._update_cover_art(meta.art_url)

        if meta.title == self.last_title and meta.artist == self.last_artist:
            if playing != self.is_playing:
                self.is_playing = playing
                self.render()
            return

        self.scroll_offset = 0
        self.last_title = meta.title
        self.last_artist = meta.artist
        self._compose(meta.title, meta.artist)
        self.is_playing = playing
        self.render()

    def _update_cover_art(self, art_url: str) -> None:
        self.last_art_url = art_url
        if self._cover_art is not None:
            self._cover_art.update(art_url)

    def _compose(self, title: str, artist: str) -> None:
        sep = SEPARATOR if title and artist else ""
        raw = title + sep + artist
        self.display_length = len(raw)
        if self.display_length <= self.max_width:
            self.state = DisplayState.STATIC
            self.display_text = encode(title) + sep + encode(artist)
        else:
            self.state = DisplayState.SCROLLING
            self.display_text = raw
            log.debug("Scrolling %d codepoints: %s", self.display_length, raw)

    def tick(self) -> None:
        """Advance the marquee by one codepoint."""
        if self.state is not DisplayState.SCROLLING:
            return
        self.scroll_offset += 1
        self.render()

    # ── Rendering ──

    def render(self) -> None:
        if self.state is DisplayState.SCROLLING:
            body = self.window()
        else:
            body = self.display_text
        if not self.is_playing:
            body = f"<i>{body}</i>"
        self._output.emit(body)

    def window(self) -> str:
        """Escaped slice of the scrolling text at the current offset.

        One cycle is the text plus one separator; past the separator the
        offset snaps back to 0.
        """
        raw = self.display_text
        length = self.display_length
        width = self.max_width
        offset = self.scroll_offset

        if offset < length:
            remaining = length - offset
            if remaining >= width:
                return encode(raw[offset:offset + width])
            left_over = width - remaining
            if left_over <= len(SEPARATOR):
                return encode(raw[offset:length]) + SEPARATOR[:left_over]
            return (encode(raw[offset:length]) + SEPARATOR
                    + encode(raw[:left_over - len(SEPARATOR)]))

        sep_offset = offset - length
        if sep_offset > len(SEPARATOR) - 1:
            self.scroll_offset = 0
            return encode(raw[:width])
        sep_size = len(SEPARATOR) - sep_offset
        return SEPARATOR[sep_offset:] + encode(raw[:width - sep_size])
