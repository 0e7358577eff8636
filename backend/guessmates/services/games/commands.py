"""Inbound client messages as a closed set of command types.

``parse_command`` turns a Socket.IO event name and its JSON payload into one
of the command dataclasses below, or raises ``InvalidCommand``.
"""

from dataclasses import dataclass
from typing import Any, Optional


class InvalidCommand(ValueError):
    pass


@dataclass(frozen=True)
class FindOpponent:
    sid: str


@dataclass(frozen=True)
class SubmitGuess:
    sid: str
    game_id: str
    guess: str
    player_id: str


@dataclass(frozen=True)
class RequestFact:
    sid: str
    game_id: str
    player_id: str


@dataclass(frozen=True)
class RequestNextRound:
    sid: str
    game_id: str


@dataclass(frozen=True)
class RequestRematch:
    sid: str
    game_id: str


@dataclass(frozen=True)
class LeaveGame:
    sid: str
    game_id: Optional[str]


@dataclass(frozen=True)
class Disconnect:
    sid: str


def _payload(data: Any) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidCommand('payload must be an object')
    return data


def _game_id(data: dict) -> str:
    game_id = data.get('gameId')
    if not isinstance(game_id, str) or not game_id:
        raise InvalidCommand('gameId is required')
    return game_id


def _player_id(data: dict, sid: str) -> str:
    player_id: Optional[str] = data.get('playerId')
    if player_id is None:
        return sid
    if not isinstance(player_id, str):
        raise InvalidCommand('playerId must be a string')
    return player_id


def parse_command(event: str, sid: str, data: Any = None):
    if event == 'player:findOpponent':
        return FindOpponent(sid=sid)
    if event == 'disconnect':
        return Disconnect(sid=sid)

    data = _payload(data)
    if event == 'game:guess':
        guess = data.get('guess')
        if not isinstance(guess, str):
            raise InvalidCommand('guess must be a string')
        return SubmitGuess(sid=sid, game_id=_game_id(data), guess=guess, player_id=_player_id(data, sid))
    if event == 'game:requestFact':
        return RequestFact(sid=sid, game_id=_game_id(data), player_id=_player_id(data, sid))
    if event == 'game:requestNextRound':
        return RequestNextRound(sid=sid, game_id=_game_id(data))
    if event == 'game:requestRematch':
        return RequestRematch(sid=sid, game_id=_game_id(data))
    if event == 'game:leaveGame':
        # leaving is always acknowledged, even without a usable game id
        game_id = data.get('gameId')
        return LeaveGame(sid=sid, game_id=game_id if isinstance(game_id, str) else None)
    raise InvalidCommand(f'unknown event {event}')
