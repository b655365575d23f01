from flask_socketio import emit
from arcade import socketio

NAMESPACE = '/ws'


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_ping(data):
    emit('pong', data or {})


def notify(event: str, payload) -> None:
    """Push a change notification to every client on the namespace."""
    socketio.emit(event, payload, namespace=NAMESPACE)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'.

    Clients only listen; the server pushes ``broadcast``, ``settings_update``
    and ``levels_update`` as the HTTP endpoints change state.
    """
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
