"""
Tests for SessionRegistry and MediaSession - selection, dedup, change routing.
"""
import pytest

from mprisbar.lib.registry import SessionRegistry
from mprisbar.lib.session import (
    FieldKind,
    LoopStatus,
    Metadata,
    PlaybackStatus,
    PlayerSource,
    SessionIdentity,
)

from conftest import ident, make_state


def selected_names(registry):
    return [s.identity.name for s in registry if s.is_selected]


def names(registry):
    return [s.identity.name for s in registry]


@pytest.fixture
def abc(handler):
    """Registry holding sessions A, B and C (A selected)."""
    reg = SessionRegistry(handler)
    for name in "ABC":
        reg.add_session(ident(name), make_state(title=name))
    return reg


class TestSessionIdentity:

    def test_equal_when_both_fields_match(self):
        assert SessionIdentity("spotify") == SessionIdentity("spotify", PlayerSource.DBUS)

    def test_source_distinguishes(self):
        """Same name from a different source is a different session."""
        a = SessionIdentity("spotify", PlayerSource.DBUS)
        b = SessionIdentity("spotify", PlayerSource.GENERIC)
        assert a != b
        assert len({a, b}) == 2

    def test_immutable(self):
        identity = SessionIdentity("vlc")
        with pytest.raises(AttributeError):
            identity.name = "mpv"


class TestAddSession:

    def test_first_session_selected(self, handler):
        """First session becomes selected and the handler is told."""
        reg = SessionRegistry(handler)
        session = reg.add_session(ident("A"), make_state())
        assert session.is_selected
        assert reg.selected_session() is session
        assert handler.events == [("select", ident("A"))]

    def test_later_sessions_not_selected(self, abc, handler):
        """Only the first session is selected; no further notifications."""
        assert selected_names(abc) == ["A"]
        assert handler.events == [("select", ident("A"))]

    def test_duplicate_rejected(self, abc):
        """Adding an existing identity leaves the registry unchanged."""
        assert abc.add_session(ident("B"), make_state()) is None
        assert len(abc) == 3
        assert names(abc) == ["A", "B", "C"]

    def test_membership(self, abc):
        assert ident("B") in abc
        assert ident("Z") not in abc
        assert abc.get(ident("Z")) is None


class TestRemoveSession:

    def test_remove_selected_moves_to_next(self, abc, handler):
        """[A, B, C] with B selected: removing B leaves [A, C] with C selected."""
        abc._select(abc.get(ident("B")))
        handler.events.clear()

        assert abc.remove_session(ident("B"))
        assert names(abc) == ["A", "C"]
        assert selected_names(abc) == ["C"]
        assert handler.events == [("select", ident("C"))]

    def test_remove_last_selected_wraps(self, abc, handler):
        """Removing the selected last session wraps to the first."""
        abc._select(abc.get(ident("C")))
        handler.events.clear()

        abc.remove_session(ident("C"))
        assert names(abc) == ["A", "B"]
        assert selected_names(abc) == ["A"]
        assert handler.events == [("select", ident("A"))]

    def test_remove_unselected_keeps_selection(self, abc, handler):
        """Removing an earlier unselected session never moves the selection."""
        abc._select(abc.get(ident("C")))
        handler.events.clear()

        abc.remove_session(ident("A"))
        assert selected_names(abc) == ["C"]
        assert abc.selected_session().identity == ident("C")

        abc.remove_session(ident("B"))
        assert abc.selected_session().identity == ident("C")
        assert handler.events == []

    def test_remove_only_session_empties(self, handler):
        reg = SessionRegistry(handler)
        reg.add_session(ident("A"), make_state())
        handler.events.clear()

        assert reg.remove_session(ident("A"))
        assert len(reg) == 0
        assert reg.selected_session() is None
        assert handler.events == [("empty", None)]

    def test_remove_missing_ignored(self, abc, handler):
        """Removing an unknown identity is logged and ignored."""
        handler.events.clear()
        assert not abc.remove_session(ident("nope"))
        assert len(abc) == 3
        assert selected_names(abc) == ["A"]
        assert handler.events == []

    def test_removed_session_deselected(self, abc):
        session = abc.get(ident("A"))
        abc.remove_session(ident("A"))
        assert not session.is_selected

    def test_selection_invariant_through_churn(self, handler):
        """Exactly one selected while non-empty, none when empty."""
        reg = SessionRegistry(handler)
        ops = [("add", "A"), ("add", "B"), ("add", "C"), ("rm", "A"),
               ("add", "D"), ("rm", "C"), ("rm", "B"), ("add", "E"),
               ("add", "B"), ("rm", "D"), ("rm", "E"), ("rm", "B")]
        for op, name in ops:
            if op == "add":
                reg.add_session(ident(name), make_state())
            else:
                reg.remove_session(ident(name))
            expected = 1 if len(reg) else 0
            assert len(selected_names(reg)) == expected
        assert reg.selected_session() is None


class TestMediaSession:

    def test_seeded_from_state(self, abc):
        session = abc.get(ident("B"))
        assert session.metadata.title == "B"
        assert session.playback_status is PlaybackStatus.PLAYING
        assert session.is_playing

    def test_changes_update_state(self, abc):
        session = abc.get(ident("B"))
        abc.apply_changes(ident("B"), {
            FieldKind.PLAYBACK_STATUS: PlaybackStatus.PAUSED,
            FieldKind.LOOP_STATUS: LoopStatus.PLAYLIST,
            FieldKind.VOLUME: 0.5,
            FieldKind.SHUFFLE: True,
            FieldKind.METADATA: Metadata(title="New"),
        })
        assert session.playback_status is PlaybackStatus.PAUSED
        assert not session.is_playing
        assert session.loop_status is LoopStatus.PLAYLIST
        assert session.volume == 0.5
        assert session.shuffle is True
        assert session.metadata.title == "New"

    def test_background_changes_silent(self, abc, handler):
        """Changes to unselected sessions do not reach the handler."""
        handler.events.clear()
        abc.apply_changes(ident("C"), {FieldKind.VOLUME: 0.1})
        assert abc.get(ident("C")).volume == 0.1
        assert handler.events == []

    def test_selected_changes_notify_once_per_batch(self, abc, handler):
        handler.events.clear()
        abc.apply_changes(ident("A"), {
            FieldKind.VOLUME: 0.1,
            FieldKind.SHUFFLE: True,
        })
        assert handler.events == [("state", ident("A"))]

    def test_empty_batch_ignored(self, abc, handler):
        handler.events.clear()
        abc.apply_changes(ident("A"), {})
        assert handler.events == []

    def test_unknown_session_changes_dropped(self, abc, handler):
        handler.events.clear()
        abc.apply_changes(ident("ghost"), {FieldKind.VOLUME: 1.0})
        assert handler.events == []

    def test_select_idempotent(self, abc, handler):
        """Selecting an already selected session does not notify again."""
        handler.events.clear()
        abc.get(ident("A")).select()
        assert handler.events == []

    def test_seeked_is_noop(self, abc, handler):
        handler.events.clear()
        abc.seeked(ident("A"), 1_000_000)
        assert handler.events == []


class TestStatusParsing:

    @pytest.mark.parametrize("value,expected", [
        ("Playing", PlaybackStatus.PLAYING),
        ("Paused", PlaybackStatus.PAUSED),
        ("Stopped", PlaybackStatus.STOPPED),
        ("Buffering", PlaybackStatus.STOPPED),
    ])
    def test_playback_status(self, value, expected):
        assert PlaybackStatus.parse(value) is expected

    def test_loop_status_unknown(self):
        assert LoopStatus.parse("Track") is LoopStatus.TRACK
        assert LoopStatus.parse("Forever") is LoopStatus.NONE
