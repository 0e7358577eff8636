from flask import current_app, request
from flask_socketio import emit

from guessmates import socketio
from guessmates.services.games.commands import InvalidCommand, parse_command


def _server():
    return current_app.extensions['guessmates']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _dispatch(event, data=None):
    sid = _get_sid()
    try:
        command = parse_command(event, sid, data)
    except InvalidCommand as exc:
        current_app.logger.warning(f"[bad-command] event={event} player={sid}: {exc}")
        return
    _server().dispatch(command)


def handle_connect(auth=None):
    conn = _server().connect(_get_sid(), request.args.get('username'))
    emit('connected', {'id': conn.sid, 'username': conn.username})


def handle_disconnect(reason=None):
    _dispatch('disconnect')


def handle_find_opponent(data=None):
    _dispatch('player:findOpponent', data)


def handle_guess(data=None):
    _dispatch('game:guess', data)


def handle_request_fact(data=None):
    _dispatch('game:requestFact', data)


def handle_request_next_round(data=None):
    _dispatch('game:requestNextRound', data)


def handle_request_rematch(data=None):
    _dispatch('game:requestRematch', data)


def handle_leave_game(data=None):
    _dispatch('game:leaveGame', data)


_EVENT_HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'player:findOpponent': handle_find_opponent,
    'game:guess': handle_guess,
    'game:requestFact': handle_request_fact,
    'game:requestNextRound': handle_request_next_round,
    'game:requestRematch': handle_request_rematch,
    'game:leaveGame': handle_leave_game,
}


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the given namespace."""
    for event, handler in _EVENT_HANDLERS.items():
        socketio.on_event(event, handler, namespace=namespace)
