from flask_socketio import SocketIO

from diceroom.models import RoomState

STATE_EVENT = 'gameStateUpdate'
ERROR_EVENT = 'error'


class SocketIOBroadcaster:
    """Delivers room snapshots over Socket.IO.

    Usable from background tasks: everything goes through the server
    object rather than the request-bound ``emit``/``join_room`` helpers.
    """

    def __init__(self, socketio: SocketIO, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def join(self, sid: str, room_id: str) -> None:
        self.socketio.server.enter_room(sid, room_id, namespace=self.namespace)

    def leave(self, sid: str, room_id: str) -> None:
        self.socketio.server.leave_room(sid, room_id, namespace=self.namespace)

    def send_state(self, sid: str, state: RoomState) -> None:
        self.socketio.emit(STATE_EVENT, state.to_dict(), to=sid, namespace=self.namespace)

    def broadcast_state(self, room_id: str, state: RoomState) -> None:
        self.socketio.emit(STATE_EVENT, state.to_dict(), to=room_id, namespace=self.namespace)

    def send_error(self, sid: str, message: str) -> None:
        self.socketio.emit(ERROR_EVENT, {'message': message}, to=sid, namespace=self.namespace)
