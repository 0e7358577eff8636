from typing import Any, Optional

_NO_PAYLOAD = object()


def room_for(game_id: str) -> str:
    return f"game:{game_id}"


class Broadcaster:
    """Delivery of game events to connections and per-game rooms."""

    def to_room(self, game_id: str, event: str, payload: Any = _NO_PAYLOAD, skip: Optional[str] = None) -> None:
        raise NotImplementedError

    def to_player(self, sid: str, event: str, payload: Any = _NO_PAYLOAD) -> None:
        raise NotImplementedError

    def join(self, sid: str, game_id: str) -> None:
        raise NotImplementedError

    def leave(self, sid: str, game_id: str) -> None:
        raise NotImplementedError


class SocketIOBroadcaster(Broadcaster):
    """Broadcaster backed by a Flask-SocketIO server.

    Uses ``socketio.emit`` and the underlying server's room API so it works
    outside a request context (timer ticks run as background tasks).
    """

    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def _emit(self, event, payload, **kwargs):
        if payload is _NO_PAYLOAD:
            self.socketio.emit(event, namespace=self.namespace, **kwargs)
        else:
            self.socketio.emit(event, payload, namespace=self.namespace, **kwargs)

    def to_room(self, game_id, event, payload=_NO_PAYLOAD, skip=None):
        self._emit(event, payload, to=room_for(game_id), skip_sid=skip)

    def to_player(self, sid, event, payload=_NO_PAYLOAD):
        self._emit(event, payload, to=sid)

    def join(self, sid, game_id):
        self.socketio.server.enter_room(sid, room_for(game_id), namespace=self.namespace)

    def leave(self, sid, game_id):
        self.socketio.server.leave_room(sid, room_for(game_id), namespace=self.namespace)
