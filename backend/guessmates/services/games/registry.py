from typing import Dict, List


class SessionRegistry:
    """In-memory index of game sessions by id.

    Sessions in play are "active". A session whose game just ended with both
    players still present is moved to the "finished" area, where it can only
    be found for a rematch (or a leave) until it is discarded.
    """

    def __init__(self):
        self._active: Dict[str, object] = {}
        self._finished: Dict[str, object] = {}

    def add(self, session) -> None:
        self._finished.pop(session.id, None)
        self._active[session.id] = session

    def get(self, game_id: str):
        """Active session by id, or None."""
        return self._active.get(game_id)

    def find(self, game_id: str):
        """Active or finished session by id, or None."""
        return self._active.get(game_id) or self._finished.get(game_id)

    def remove(self, game_id: str) -> None:
        self._active.pop(game_id, None)

    def retire(self, session) -> None:
        self._active.pop(session.id, None)
        self._finished[session.id] = session

    def restore(self, session) -> None:
        self.add(session)

    def discard(self, game_id: str) -> None:
        self._active.pop(game_id, None)
        self._finished.pop(game_id, None)

    def sessions_with_player(self, player_id: str) -> List:
        return [
            s for s in list(self._active.values()) + list(self._finished.values())
            if s.get_player(player_id) is not None
        ]

    @property
    def active_count(self) -> int:
        return len(self._active)

    @property
    def finished_count(self) -> int:
        return len(self._finished)

    def __len__(self) -> int:
        return len(self._active)
