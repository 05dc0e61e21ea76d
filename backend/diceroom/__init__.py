import json

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config

socketio = SocketIO(async_mode=None)

EXTENSION_KEY = 'diceroom'


def _parse_delays_ms(raw) -> tuple:
    if isinstance(raw, (list, tuple)):
        return tuple(float(v) / 1000.0 for v in raw)
    return tuple(float(part) / 1000.0 for part in str(raw or '').split(',') if part.strip())


def _build_store(flask_app):
    from diceroom.services.rooms.store import MemoryRoomStore, RedisRoomStore

    cfg = flask_app.config
    ttl = int(cfg.get('ROOM_TTL_SEC', 60 * 60 * 24))
    backend = cfg.get('ROOM_STORE', 'redis')
    if backend == 'memory':
        return MemoryRoomStore(ttl_sec=ttl)
    if backend == 'redis':
        return RedisRoomStore.from_url(
            cfg['REDIS_URL'], ttl_sec=ttl, prefix=cfg.get('ROOM_KEY_PREFIX', 'room:')
        )
    raise ValueError(f"Unknown ROOM_STORE {backend!r}")


def create_app(config_class=Config, store=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    origins = flask_app.config.get('CORS_ORIGINS', '*')
    if origins != '*':
        origins = [o.strip() for o in origins.split(',') if o.strip()]
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    # The process cannot serve rooms without its store, so a failed ping is fatal
    if store is None:
        store = _build_store(flask_app)
    store.ping()
    flask_app.logger.info(f"[startup] room store={type(store).__name__}")

    from diceroom.services.rooms.actions import RoomActions
    from diceroom.services.rooms.broadcast import SocketIOBroadcaster

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    testing = flask_app.config.get('TESTING', False)
    flask_app.extensions[EXTENSION_KEY] = RoomActions(
        store,
        SocketIOBroadcaster(socketio, namespace=namespace),
        roll_delay=float(flask_app.config.get('ROLL_DELAY_SEC', 1.0)),
        join_retry_delays=_parse_delays_ms(flask_app.config.get('JOIN_RETRY_DELAYS_MS', '250')),
        recover_missing_rooms=bool(flask_app.config.get('JOIN_RECOVER_MISSING_ROOM', False)),
        # Roll completion runs inline under test for determinism
        spawn=None if testing else socketio.start_background_task,
        sleep=socketio.sleep,
    )

    # Import and register blueprints here
    from diceroom.routes import main
    flask_app.register_blueprint(main)

    from diceroom.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api')

    from diceroom.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    @click.command('room-show')
    @click.argument('room_id')
    def room_show_command(room_id):
        """Prints the stored state of a room."""
        state = store.get(room_id)
        if state is None:
            click.echo('Room not found')
            return
        click.echo(json.dumps(state.to_dict(), indent=2))

    @click.command('room-delete')
    @click.argument('room_id')
    def room_delete_command(room_id):
        """Deletes the stored state of a room."""
        store.delete(room_id)
        click.echo(f'Room {room_id} deleted.')

    flask_app.cli.add_command(room_show_command)
    flask_app.cli.add_command(room_delete_command)

    return flask_app
