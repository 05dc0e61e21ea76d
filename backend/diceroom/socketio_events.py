from typing import Dict, Optional

from flask import current_app, request
from flask_socketio import emit

from diceroom import EXTENSION_KEY, socketio
from diceroom.services.rooms.actions import RoomActions

# Connection -> room binding for this process. A connection belongs to at
# most one room at a time.
_sid_to_room: Dict[str, str] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _actions() -> RoomActions:
    return current_app.extensions[EXTENSION_KEY]


def _bound_room(action: str) -> Optional[str]:
    sid = _get_sid()
    room_id = _sid_to_room.get(sid)
    if not room_id:
        current_app.logger.info(f"[{action}-ignored] sid={sid} is not in a room")
    return room_id


def handle_connect():
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    room_id = _sid_to_room.pop(sid, None)
    current_app.logger.info(f"[disconnect] sid={sid} room={room_id} reason={reason}")
    if room_id:
        _actions().disconnect(room_id, sid)


def handle_join_room(room_id=None, player_name=None):
    if isinstance(room_id, dict):
        data = room_id
        room_id = data.get('roomId')
        player_name = data.get('playerName', player_name)
    if not room_id or not isinstance(room_id, str):
        emit('error', {'message': 'roomId is required'})
        return
    sid = _get_sid()
    actions = _actions()

    previous = _sid_to_room.get(sid)
    if previous and previous != room_id:
        # Joining elsewhere counts as leaving the old room
        _sid_to_room.pop(sid, None)
        actions.broadcaster.leave(sid, previous)
        actions.disconnect(previous, sid)

    if actions.join_room(room_id, sid, player_name if isinstance(player_name, str) else None):
        _sid_to_room[sid] = room_id


def handle_leave_room(*_args):
    sid = _get_sid()
    room_id = _sid_to_room.pop(sid, None)
    if not room_id:
        return
    actions = _actions()
    actions.broadcaster.leave(sid, room_id)
    actions.disconnect(room_id, sid)


def handle_roll_dice(*_args):
    room_id = _bound_room('roll')
    if room_id:
        _actions().roll_dice(room_id, _get_sid())


def handle_keep_dice(index=None, *_args):
    if isinstance(index, dict):
        index = index.get('index')
    room_id = _bound_room('keep')
    if room_id:
        _actions().keep_dice(room_id, _get_sid(), index)


def handle_end_turn(*_args):
    room_id = _bound_room('end-turn')
    if room_id:
        _actions().end_turn(room_id, _get_sid())


def handle_play_again(*_args):
    room_id = _bound_room('play-again')
    if room_id:
        _actions().play_again(room_id, _get_sid())


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the given namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('joinRoom', handle_join_room, namespace=namespace)
    socketio.on_event('leaveRoom', handle_leave_room, namespace=namespace)
    socketio.on_event('rollDice', handle_roll_dice, namespace=namespace)
    socketio.on_event('keepDice', handle_keep_dice, namespace=namespace)
    socketio.on_event('endTurn', handle_end_turn, namespace=namespace)
    socketio.on_event('playAgain', handle_play_again, namespace=namespace)
