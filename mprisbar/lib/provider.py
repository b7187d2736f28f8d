# mprisbar
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Abstract base class for session providers.

A provider discovers media players and feeds the registry:

    registry.add_session(identity, state)       player appeared
    registry.remove_session(identity)           player vanished
    registry.apply_changes(identity, changes)   {FieldKind: value} batch
    registry.seeked(identity, position)         position jump (ignored)
"""

from abc import ABC, abstractmethod

from .registry import SessionRegistry


class ProviderError(Exception):
    """The provider could not connect.  Fatal at startup."""


class SessionError(Exception):
    """A player name could not be resolved to a live player object."""

    def __init__(self, name: str, message: str):
        super().__init__(f"{name}: {message}")
        self.name = name


class SessionProvider(ABC):
    """Interface every session provider must implement."""

    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    @abstractmethod
    async def start(self) -> None:
        """Connect, register every existing player, and start listening.

        Raises ProviderError if the connection cannot be made.
        """

    @abstractmethod
    async def stop(self) -> None: ...
