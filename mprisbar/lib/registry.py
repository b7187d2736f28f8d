# mprisbar
# SPDX-License-Identifier: GPL-3.0-or-later

"""
SessionRegistry: the set of known players and which one is selected.

Sessions are kept in the order they appeared.  The selected session is
tracked by identity, so removing an unrelated player never moves the
selection.  When the selected player vanishes, the selection moves to the
player that takes its place in the list, wrapping around to the first one.
"""

import logging

from .session import MediaSession, SessionHandler, SessionIdentity, SessionState

log = logging.getLogger(__name__)


class SessionRegistry:

    def __init__(self, handler: SessionHandler):
        self._handler = handler
        self._sessions: list[MediaSession] = []
        self._selected: SessionIdentity | None = None

    def __len__(self):
        return len(self._sessions)

    def __iter__(self):
        return iter(list(self._sessions))

    def __contains__(self, identity):
        return self._index_of(identity) is not None

    def _index_of(self, identity: SessionIdentity) -> int | None:
        for i, session in enumerate(self._sessions):
            if session.identity == identity:
                return i
        return None

    def get(self, identity: SessionIdentity) -> MediaSession | None:
        idx = self._index_of(identity)
        return self._sessions[idx] if idx is not None else None

    def selected_session(self) -> MediaSession | None:
        if self._selected is None:
            return None
        return self.get(self._selected)

    # ── Lifecycle ──

    def add_session(self, identity: SessionIdentity,
                    state: SessionState) -> MediaSession | None:
        """Track a new player.  Duplicates are logged and ignored."""
        if identity in self:
            log.warning("Session %s already registered, ignoring", identity)
            return None

        session = MediaSession(identity, state, self._handler)
        self._sessions.append(session)
        log.info("Session added: %s (%d total)", identity, len(self._sessions))

        if self._selected is None:
            self._select(session)
        return session

    def remove_session(self, identity: SessionIdentity) -> bool:
        """Forget a player, moving the selection on if it was selected."""
        idx = self._index_of(identity)
        if idx is None:
            log.warning("Session %s not registered, cannot remove", identity)
            return False

        session = self._sessions.pop(idx)
        was_selected = identity == self._selected
        session.deselect()
        log.info("Session removed: %s (%d left)", identity, len(self._sessions))

        if not was_selected:
            return True

        self._selected = None
        if not self._sessions:
            log.info("No sessions left")
            self._handler.on_empty()
            return True

        if idx >= len(self._sessions):
            idx = 0
        self._select(self._sessions[idx])
        return True

    def _select(self, session: MediaSession) -> None:
        previous = self.selected_session()
        if previous is not None and previous is not session:
            previous.deselect()
        self._selected = session.identity
        log.info("Selected session: %s", session.identity)
        session.select()

    # ── Property events ──

    def apply_changes(self, identity: SessionIdentity, changes: dict) -> None:
        session = self.get(identity)
        if session is None:
            log.debug("Changes for unknown session %s dropped", identity)
            return
        session.apply_changes(changes)

    def seeked(self, identity: SessionIdentity, position: int) -> None:
        session = self.get(identity)
        if session is not None:
            session.seeked(position)
