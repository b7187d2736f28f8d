"""
Pytest configuration and shared fixtures for mprisbar tests.
"""
import io
import json

import pytest

from mprisbar.lib import config
from mprisbar.lib.display import DisplayEngine, StatusLine
from mprisbar.lib.registry import SessionRegistry
from mprisbar.lib.session import (
    Metadata,
    PlaybackStatus,
    SessionHandler,
    SessionIdentity,
    SessionState,
)


class RecordingHandler(SessionHandler):
    """SessionHandler that records every call as (event, identity)."""

    def __init__(self):
        self.events = []

    def on_state_changed(self, session):
        self.events.append(("state", session.identity))

    def on_selected(self, session):
        self.events.append(("select", session.identity))

    def on_empty(self):
        self.events.append(("empty", None))


class FakeCoverArt:
    """Records cover art updates instead of touching the filesystem."""

    def __init__(self):
        self.urls = []

    def update(self, art_url):
        self.urls.append(art_url)


def make_state(title="", artist="", status=PlaybackStatus.PLAYING, art_url=""):
    return SessionState(
        metadata=Metadata(title=title, artist=artist, art_url=art_url),
        playback_status=status,
    )


def ident(name):
    return SessionIdentity(name)


def read_lines(stream):
    """Parsed JSON objects written to *stream* so far."""
    return [json.loads(line) for line in stream.getvalue().splitlines()]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config search at an empty directory and drop the cache."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.delenv("NOTIFY_SOCKET", raising=False)
    monkeypatch.setattr(config, "_config", None)
    yield
    config._config = None


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def cover_art():
    return FakeCoverArt()


@pytest.fixture
def engine(stream, cover_art):
    return DisplayEngine(StatusLine(stream), cover_art)


@pytest.fixture
def registry(engine):
    """Registry wired to a real DisplayEngine writing to ``stream``."""
    return SessionRegistry(engine)
