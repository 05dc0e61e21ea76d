from flask import Blueprint, current_app, jsonify

from diceroom import EXTENSION_KEY
from diceroom.services.rooms.store import StoreError

rooms = Blueprint('rooms', __name__)


def _actions():
    return current_app.extensions[EXTENSION_KEY]


@rooms.route('/create-room', methods=['POST'])
def create_room():
    try:
        room_id = _actions().create_room()
    except StoreError:
        current_app.logger.exception("[create-room] failed to save initial state")
        return jsonify({'message': 'Failed to create room'}), 500
    return jsonify({'roomId': room_id})


@rooms.route('/rooms/<string:room_id>', methods=['GET'])
def get_room_state(room_id):
    try:
        state = _actions().store.get(room_id)
    except StoreError:
        current_app.logger.exception(f"[room-state] failed to load room={room_id}")
        return jsonify({'message': 'Failed to load room'}), 500
    if state is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(state.to_dict())
