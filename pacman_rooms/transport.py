import logging

logger = logging.getLogger(__name__)


class SocketIOTransport:
    """Fire-and-forget event channel on top of a Flask-SocketIO server.

    Rooms only ever talk to clients through this object, so the game logic
    never touches Flask request context.
    """

    def __init__(self, socketio, namespace='/'):
        self.socketio = socketio
        self.namespace = namespace

    def _emit(self, message, **kwargs):
        self.socketio.emit(message.event, message.payload(), namespace=self.namespace, **kwargs)

    def send(self, sid, message):
        """Unicast to a single connection"""
        self._emit(message, to=sid)

    def broadcast(self, room, message):
        """Send to every connection joined to a room"""
        self._emit(message, to=room)

    def broadcast_all(self, message):
        self._emit(message)

    def join(self, sid, room):
        self.socketio.server.enter_room(sid, room, namespace=self.namespace)

    def leave(self, sid, room):
        self.socketio.server.leave_room(sid, room, namespace=self.namespace)

    def start_background_task(self, target, *args, **kwargs):
        return self.socketio.start_background_task(target, *args, **kwargs)

    def sleep(self, seconds):
        self.socketio.sleep(seconds)
