"""Game domain services: matchmaking, sessions, scoring and timers.

This package contains the in-memory game engine that the Socket.IO
handlers call into, keeping transport concerns separated from core game
mechanics.
"""

from .facts import CountryFactProvider, FactProvider, NoPlayableCountry
from .rules import GameRules
from .server import GameServer

__all__ = ['CountryFactProvider', 'FactProvider', 'GameRules', 'GameServer', 'NoPlayableCountry']
