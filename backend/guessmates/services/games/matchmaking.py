import logging
from typing import Callable, List, Optional

from .models import Connection

logger = logging.getLogger(__name__)


class MatchmakingQueue:
    """FIFO wait list that pairs the two oldest connections into a game.

    Best effort: nothing here raises to the caller. A pairing that finds a
    stale (disconnected) entry puts the live one back and waits for the next
    arrival to try again.
    """

    def __init__(self, registry, broadcaster, session_factory: Callable[[List[Connection]], object]):
        self.registry = registry
        self.broadcaster = broadcaster
        self.session_factory = session_factory
        self._waiting: List[Connection] = []

    def __len__(self):
        return len(self._waiting)

    def __contains__(self, conn: Connection):
        return any(c.sid == conn.sid for c in self._waiting)

    def waiting(self) -> List[Connection]:
        return list(self._waiting)

    def enqueue(self, conn: Connection):
        """Queue a connection and pair if possible. Returns the new session, if one was created."""
        # a retried request must not leave two entries behind
        self.remove(conn)
        self._waiting.append(conn)
        self.broadcaster.to_player(conn.sid, 'player:waiting')
        logger.info(f"[queue] player={conn.sid} username={conn.username} waiting={len(self._waiting)}")
        return self._try_pair()

    def remove(self, conn: Connection) -> None:
        self._waiting = [c for c in self._waiting if c.sid != conn.sid]

    def _try_pair(self) -> Optional[object]:
        if len(self._waiting) < 2:
            return None
        first = self._waiting.pop(0)
        second = self._waiting.pop(0)

        if not (first.connected and second.connected):
            logger.info(f"[match-abort] stale entry among {first.sid}, {second.sid}")
            for c in (first, second):
                if c.connected:
                    self._waiting.append(c)
            return None

        session = self.session_factory([first, second])
        self.registry.add(session)
        for c in (first, second):
            self.broadcaster.join(c.sid, session.id)
        self.broadcaster.to_room(session.id, 'player:matched', session.id)
        logger.info(f"[match] game={session.id} players={first.username},{second.username}")
        return session
