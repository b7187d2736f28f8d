# mprisbar
# SPDX-License-Identifier: GPL-3.0-or-later

"""
MPRIS session provider (dbus-next).

Discovers every ``org.mpris.MediaPlayer2.*`` name on the session bus, follows
NameOwnerChanged to learn about players appearing and vanishing, and
subscribes to each player's PropertiesChanged and Seeked signals.

Property values arrive as D-Bus variants.  The ``parse_*`` helpers turn them
into session types and never raise: missing or mistyped values become empty
values.
"""

import asyncio
import logging

from dbus_next import BusType, Variant
from dbus_next.aio import MessageBus
from dbus_next.errors import DBusError, InterfaceNotFoundError

from ..lib.provider import ProviderError, SessionError, SessionProvider
from ..lib.registry import SessionRegistry
from ..lib.session import (
    FieldKind,
    LoopStatus,
    Metadata,
    PlaybackStatus,
    PlayerSource,
    SessionIdentity,
    SessionState,
)

log = logging.getLogger(__name__)

MPRIS_PREFIX = "org.mpris.MediaPlayer2."
MPRIS_PATH = "/org/mpris/MediaPlayer2"
PLAYER_IFACE = "org.mpris.MediaPlayer2.Player"
PROPERTIES_IFACE = "org.freedesktop.DBus.Properties"
DBUS_NAME = "org.freedesktop.DBus"
DBUS_PATH = "/org/freedesktop/DBus"


# ---------------------------------------------------------------------------
# Variant parsing
# ---------------------------------------------------------------------------

def _lookup(values: dict, key: str, *signatures: str):
    """Value of *key* if it is a variant with one of *signatures*, else None."""
    variant = values.get(key)
    if isinstance(variant, Variant) and variant.signature in signatures:
        return variant.value
    return None


def _track_id(metadata: dict) -> str:
    track_id = _lookup(metadata, "mpris:trackid", "o")
    if track_id is None:
        log.debug("mpris:trackid is not an object path, trying string")
        track_id = _lookup(metadata, "mpris:trackid", "s")
    return track_id or ""


def _artist(metadata: dict) -> str:
    artists = _lookup(metadata, "xesam:artist", "as", "s")
    if isinstance(artists, list):
        return ", ".join(artists)
    return artists or ""


def parse_metadata(metadata: dict) -> Metadata:
    """Build Metadata from an MPRIS ``a{sv}`` metadata dict."""
    length = _lookup(metadata, "mpris:length", "x", "t") or 0
    return Metadata(
        length=max(int(length), 0),
        track_id=_track_id(metadata),
        title=_lookup(metadata, "xesam:title", "s") or "",
        album=_lookup(metadata, "xesam:album", "s") or "",
        artist=_artist(metadata),
        art_url=_lookup(metadata, "mpris:artUrl", "s") or "",
        url=_lookup(metadata, "xesam:url", "s") or "",
    )


# FieldKind -> (accepted signatures, converter)
_PARSERS = {
    FieldKind.METADATA: (("a{sv}",), parse_metadata),
    FieldKind.PLAYBACK_STATUS: (("s",), PlaybackStatus.parse),
    FieldKind.LOOP_STATUS: (("s",), LoopStatus.parse),
    FieldKind.VOLUME: (("d", "i", "x", "u", "t"), float),
    FieldKind.SHUFFLE: (("b",), bool),
}


def parse_changes(properties: dict) -> dict:
    """Turn player properties into a ``{FieldKind: value}`` batch.

    Properties the session does not track, and values with an unexpected
    signature, are skipped.
    """
    changes = {}
    for name, variant in properties.items():
        try:
            kind = FieldKind(name)
        except ValueError:
            continue
        signatures, convert = _PARSERS[kind]
        if not isinstance(variant, Variant) or variant.signature not in signatures:
            log.debug("Ignoring %s with unexpected value %r", name, variant)
            continue
        changes[kind] = convert(variant.value)
    return changes


def parse_state(properties: dict) -> SessionState:
    """Seed state from a ``GetAll`` on the player interface."""
    changes = parse_changes(properties)
    state = SessionState()
    state.metadata = changes.get(FieldKind.METADATA, state.metadata)
    state.playback_status = changes.get(FieldKind.PLAYBACK_STATUS, state.playback_status)
    state.loop_status = changes.get(FieldKind.LOOP_STATUS, state.loop_status)
    state.volume = changes.get(FieldKind.VOLUME, state.volume)
    state.shuffle = changes.get(FieldKind.SHUFFLE, state.shuffle)
    return state


def identity_for(bus_name: str) -> SessionIdentity:
    """``org.mpris.MediaPlayer2.spotify`` -> SessionIdentity("spotify", DBUS)."""
    return SessionIdentity(bus_name[len(MPRIS_PREFIX):], PlayerSource.DBUS)


# ---------------------------------------------------------------------------
# Per-player signal subscriptions
# ---------------------------------------------------------------------------

class PlayerLink:
    """Signal subscriptions of one player, routed to the registry."""

    def __init__(self, identity: SessionIdentity, properties, player):
        self.identity = identity
        self._properties = properties
        self._player = player
        self._registry: SessionRegistry | None = None

    def connect(self, registry: SessionRegistry) -> None:
        self._registry = registry
        self._properties.on_properties_changed(self._on_properties_changed)
        if hasattr(self._player, "on_seeked"):
            self._player.on_seeked(self._on_seeked)

    def disconnect(self) -> None:
        if self._registry is None:
            return
        self._properties.off_properties_changed(self._on_properties_changed)
        if hasattr(self._player, "off_seeked"):
            self._player.off_seeked(self._on_seeked)
        self._registry = None

    def _on_properties_changed(self, interface_name, changed, invalidated):
        if interface_name != PLAYER_IFACE or self._registry is None:
            return
        if invalidated:
            log.debug("%s: invalidated %s", self.identity, ", ".join(invalidated))
        try:
            changes = parse_changes(changed)
            if changes:
                self._registry.apply_changes(self.identity, changes)
        except Exception:
            log.exception("Error handling property change from %s", self.identity)

    def _on_seeked(self, position):
        if self._registry is not None:
            self._registry.seeked(self.identity, position)


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class MprisProvider(SessionProvider):

    def __init__(self, registry: SessionRegistry, bus_type: BusType = BusType.SESSION):
        super().__init__(registry)
        self.bus_type = bus_type
        self._bus: MessageBus | None = None
        self._dbus = None
        self._links: dict[str, PlayerLink] = {}
        self._pending: dict[str, asyncio.Task] = {}

    async def start(self):
        try:
            self._bus = await MessageBus(bus_type=self.bus_type).connect()
            introspection = await self._bus.introspect(DBUS_NAME, DBUS_PATH)
            obj = self._bus.get_proxy_object(DBUS_NAME, DBUS_PATH, introspection)
            self._dbus = obj.get_interface(DBUS_NAME)
            self._dbus.on_name_owner_changed(self._on_name_owner_changed)
            names = await self._dbus.call_list_names()
        except Exception as e:
            raise ProviderError(f"Cannot connect to D-Bus {self.bus_type.name.lower()} bus: {e}") from e

        log.info("Connected to D-Bus %s bus", self.bus_type.name.lower())
        tasks = [self._track(name) for name in names if name.startswith(MPRIS_PREFIX)]
        await asyncio.gather(*tasks, return_exceptions=True)

    async def stop(self):
        for task in list(self._pending.values()):
            task.cancel()
        self._pending.clear()

        for link in self._links.values():
            link.disconnect()
        self._links.clear()

        if self._dbus is not None:
            self._dbus.off_name_owner_changed(self._on_name_owner_changed)
            self._dbus = None

        if self._bus is not None:
            self._bus.disconnect()
            try:
                await self._bus.wait_for_disconnect()
            except Exception as e:
                log.debug("Bus disconnected with error: %s", e)
            self._bus = None

    # ── Bus name tracking ──

    def _on_name_owner_changed(self, name, old_owner, new_owner):
        if not name.startswith(MPRIS_PREFIX):
            return
        if old_owner:
            self._player_vanished(name)
        if new_owner:
            log.info("Player appeared: %s", name)
            self._track(name)

    def _track(self, name: str) -> asyncio.Task:
        """Resolve and add *name* in a task a vanish of the name can cancel."""
        task = asyncio.create_task(self._add_player(name))
        self._pending[name] = task
        return task

    def _player_vanished(self, name: str) -> None:
        log.info("Player vanished: %s", name)
        task = self._pending.pop(name, None)
        if task is not None:
            task.cancel()
            return
        link = self._links.pop(name, None)
        if link is not None:
            link.disconnect()
        self.registry.remove_session(identity_for(name))

    async def _add_player(self, name: str) -> None:
        task = asyncio.current_task()
        tracked = self._pending.get(name) is task
        try:
            link, state = await self._resolve(name)
            if tracked and self._pending.get(name) is not task:
                log.debug("%s vanished while resolving", name)
                return
            if self.registry.add_session(link.identity, state) is None:
                return
            link.connect(self.registry)
            self._links[name] = link
        except SessionError as e:
            log.error("Cannot track player %s", e)
        except Exception:
            log.exception("Unexpected error adding player %s", name)
        finally:
            if self._pending.get(name) is asyncio.current_task():
                del self._pending[name]

    async def _resolve(self, name: str) -> tuple[PlayerLink, SessionState]:
        """Get proxies and the current state of *name*.  Raises SessionError."""
        try:
            introspection = await self._bus.introspect(name, MPRIS_PATH)
            obj = self._bus.get_proxy_object(name, MPRIS_PATH, introspection)
            properties = obj.get_interface(PROPERTIES_IFACE)
            player = obj.get_interface(PLAYER_IFACE)
            values = await properties.call_get_all(PLAYER_IFACE)
        except DBusError as e:
            raise SessionError(name, e.text) from e
        except InterfaceNotFoundError as e:
            raise SessionError(name, str(e)) from e
        return PlayerLink(identity_for(name), properties, player), parse_state(values)
