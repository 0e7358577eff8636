import logging
import threading
import uuid
from typing import Callable, Dict, List, Optional

from .commands import (
    Disconnect,
    FindOpponent,
    LeaveGame,
    RequestFact,
    RequestNextRound,
    RequestRematch,
    SubmitGuess,
)
from .facts import FactProvider
from .matchmaking import MatchmakingQueue
from .models import Connection, Player
from .registry import SessionRegistry
from .rules import GameRules
from .session import GameSession

logger = logging.getLogger(__name__)


def guest_name(sid: str) -> str:
    return f'Guest-{sid[:4]}'


class GameServer:
    """Routes client commands to the matchmaking queue and game sessions.

    Owns the registry, the queue and the connection table. Every command and
    every timer callback runs under ``lock``, so game state is only ever
    mutated by one handler at a time.
    """

    def __init__(
        self,
        broadcaster,
        facts: FactProvider,
        scheduler,
        rules: Optional[GameRules] = None,
        lock=None,
        id_factory: Callable[[], str] = None,
    ):
        self.broadcaster = broadcaster
        self.facts = facts
        self.scheduler = scheduler
        self.rules = rules or GameRules()
        self.lock = lock or threading.RLock()
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self.registry = SessionRegistry()
        self.connections: Dict[str, Connection] = {}
        self.queue = MatchmakingQueue(self.registry, broadcaster, self._create_session)
        self._handlers = {
            FindOpponent: self._find_opponent,
            SubmitGuess: self._guess,
            RequestFact: self._request_fact,
            RequestNextRound: self._request_next_round,
            RequestRematch: self._request_rematch,
            LeaveGame: self._leave_game,
            Disconnect: self._disconnect,
        }

    # ---- entry points ----
    def connect(self, sid: str, username: Optional[str] = None) -> Connection:
        with self.lock:
            conn = Connection(sid=sid, username=(username or '').strip() or guest_name(sid))
            self.connections[sid] = conn
            logger.info(f"[connect] player={sid} username={conn.username}")
            return conn

    def dispatch(self, command) -> None:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f'unsupported command {command!r}')
        with self.lock:
            handler(command)

    def stats(self):
        with self.lock:
            return {
                'active_sessions': self.registry.active_count,
                'finished_sessions': self.registry.finished_count,
                'waiting_players': len(self.queue),
                'connections': len(self.connections),
            }

    # ---- helpers ----
    def _create_session(self, connections: List[Connection]) -> GameSession:
        return GameSession(
            self.id_factory(),
            [Player.from_connection(c) for c in connections],
            broadcaster=self.broadcaster,
            facts=self.facts,
            scheduler=self.scheduler,
            registry=self.registry,
            rules=self.rules,
        )

    def _active_session(self, game_id: str, sid: str) -> Optional[GameSession]:
        session = self.registry.get(game_id)
        if session is None:
            logger.warning(f"[stale-game] player={sid} game={game_id}")
        return session

    def _owns(self, command) -> bool:
        # clients may only act for their own connection
        if command.player_id != command.sid:
            logger.warning(f"[player-mismatch] sid={command.sid} claimed={command.player_id}")
            return False
        return True

    # ---- handlers ----
    def _find_opponent(self, cmd: FindOpponent) -> None:
        conn = self.connections.get(cmd.sid)
        if conn is None:
            logger.warning(f"[queue-ignored] unknown connection {cmd.sid}")
            return
        # a player is in at most one game: joining the queue abandons any previous one
        for session in self.registry.sessions_with_player(cmd.sid):
            session.remove_player(cmd.sid, 'left')
        session = self.queue.enqueue(conn)
        if session is not None:
            session.schedule_first_round(self.rules.match_start_delay_sec)

    def _guess(self, cmd: SubmitGuess) -> None:
        session = self._active_session(cmd.game_id, cmd.sid)
        if session is not None and self._owns(cmd):
            session.guess(cmd.player_id, cmd.guess)

    def _request_fact(self, cmd: RequestFact) -> None:
        session = self._active_session(cmd.game_id, cmd.sid)
        if session is not None and self._owns(cmd):
            session.request_fact(cmd.player_id)

    def _request_next_round(self, cmd: RequestNextRound) -> None:
        session = self._active_session(cmd.game_id, cmd.sid)
        if session is not None:
            session.request_next_round(cmd.sid)

    def _request_rematch(self, cmd: RequestRematch) -> None:
        session = self.registry.find(cmd.game_id)
        if session is None:
            logger.warning(f"[stale-game] player={cmd.sid} game={cmd.game_id} (rematch)")
            return
        session.request_rematch(cmd.sid)

    def _leave_game(self, cmd: LeaveGame) -> None:
        session = self.registry.find(cmd.game_id) if cmd.game_id else None
        if session is None:
            logger.warning(f"[leave] player={cmd.sid} game={cmd.game_id} not found")
        elif not session.remove_player(cmd.sid, 'left'):
            logger.warning(f"[leave] player={cmd.sid} not in game={cmd.game_id}")
        self.broadcaster.to_player(cmd.sid, 'game:leftSuccess')

    def _disconnect(self, cmd: Disconnect) -> None:
        conn = self.connections.pop(cmd.sid, None)
        if conn is not None:
            conn.connected = False
            self.queue.remove(conn)
        for session in self.registry.sessions_with_player(cmd.sid):
            session.remove_player(cmd.sid, 'disconnected')
        logger.info(f"[disconnect] player={cmd.sid}")
