# mprisbar
# SPDX-License-Identifier: GPL-3.0-or-later

"""
MediaSession: live mirror of one MPRIS player.

A session is seeded once from a ``SessionState`` snapshot the provider reads
when the player appears, then kept in sync through ``apply_changes`` batches.
Only the selected session reports changes to its handler; background players
update their state silently.

Handler contract (implemented by the display engine):

    class MyHandler(SessionHandler):
        def on_state_changed(self, session): ...   # selected session changed
        def on_selected(self, session): ...        # session became selected
        def on_empty(self): ...                    # last session vanished
"""

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

log = logging.getLogger(__name__)


class PlayerSource(enum.Enum):
    NONE = 0
    DBUS = 1
    GENERIC = 2


class PlaybackStatus(enum.Enum):
    PLAYING = "Playing"
    PAUSED = "Paused"
    STOPPED = "Stopped"

    @classmethod
    def parse(cls, value) -> "PlaybackStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.STOPPED


class LoopStatus(enum.Enum):
    NONE = "None"
    TRACK = "Track"
    PLAYLIST = "Playlist"

    @classmethod
    def parse(cls, value) -> "LoopStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.NONE


class FieldKind(enum.Enum):
    """Player properties a session tracks."""
    METADATA = "Metadata"
    PLAYBACK_STATUS = "PlaybackStatus"
    LOOP_STATUS = "LoopStatus"
    VOLUME = "Volume"
    SHUFFLE = "Shuffle"


@dataclass(frozen=True)
class SessionIdentity:
    """Registry key: player name plus where it was found."""
    name: str
    source: PlayerSource = PlayerSource.DBUS

    def __str__(self):
        return f"{self.name} ({self.source.name.lower()})"


@dataclass
class Metadata:
    length: int = 0          # microseconds
    track_id: str = ""
    title: str = ""
    album: str = ""
    artist: str = ""         # multiple artists joined with ", "
    art_url: str = ""
    url: str = ""


@dataclass
class SessionState:
    metadata: Metadata = field(default_factory=Metadata)
    playback_status: PlaybackStatus = PlaybackStatus.STOPPED
    loop_status: LoopStatus = LoopStatus.NONE
    volume: float = 0.0
    shuffle: bool = False


class SessionHandler(ABC):
    """Receives changes of the selected session."""

    @abstractmethod
    def on_state_changed(self, session: "MediaSession") -> None: ...

    @abstractmethod
    def on_selected(self, session: "MediaSession") -> None: ...

    @abstractmethod
    def on_empty(self) -> None: ...


# FieldKind -> MediaSession attribute updated by a change of that kind
_FIELD_ATTRS = {
    FieldKind.METADATA: "metadata",
    FieldKind.PLAYBACK_STATUS: "playback_status",
    FieldKind.LOOP_STATUS: "loop_status",
    FieldKind.VOLUME: "volume",
    FieldKind.SHUFFLE: "shuffle",
}


class MediaSession:

    def __init__(self, identity: SessionIdentity, state: SessionState,
                 handler: SessionHandler):
        self.identity = identity
        self.metadata: Metadata = state.metadata
        self.playback_status: PlaybackStatus = state.playback_status
        self.loop_status: LoopStatus = state.loop_status
        self.volume: float = state.volume
        self.shuffle: bool = state.shuffle
        self.is_selected: bool = False
        self._handler = handler

    def __repr__(self):
        return (f"<MediaSession {self.identity} {self.playback_status.name}"
                f"{' selected' if self.is_selected else ''}>")

    @property
    def is_playing(self) -> bool:
        return self.playback_status is PlaybackStatus.PLAYING

    # ── Provider events ──

    def apply_changes(self, changes: dict) -> None:
        """Apply a batch of ``{FieldKind: value}`` property changes.

        The handler is told once per batch, and only while this session is
        the selected one.
        """
        if not changes:
            return
        for kind, value in changes.items():
            attr = _FIELD_ATTRS.get(kind)
            if attr is None:
                log.debug("%s: ignoring change of %r", self.identity, kind)
                continue
            setattr(self, attr, value)

        if self.is_selected:
            self._handler.on_state_changed(self)

    def seeked(self, position: int) -> None:
        log.debug("%s: seeked to %d µs", self.identity, position)

    # ── Selection ──

    def select(self) -> None:
        """Mark selected and notify the handler (no-op if already selected)."""
        if self.is_selected:
            return
        self.is_selected = True
        self._handler.on_selected(self)

    def deselect(self) -> None:
        self.is_selected = False
