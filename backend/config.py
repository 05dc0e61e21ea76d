import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Room state store: 'redis' (shared between instances) or 'memory' (single process)
    ROOM_STORE = os.environ.get('ROOM_STORE', 'redis')
    REDIS_URL = os.environ.get('REDIS_URL') or 'redis://localhost:6379/0'
    ROOM_KEY_PREFIX = os.environ.get('ROOM_KEY_PREFIX', 'room:')
    # Rooms untouched for this long expire from the store (seconds)
    ROOM_TTL_SEC = int(os.environ.get('ROOM_TTL_SEC', str(60 * 60 * 24)))
    # Simulated roll animation window (seconds)
    ROLL_DELAY_SEC = float(os.environ.get('ROLL_DELAY_SEC', '1.0'))
    # Join fetch retries to absorb store replication lag (comma separated ms)
    JOIN_RETRY_DELAYS_MS = os.environ.get('JOIN_RETRY_DELAYS_MS', '250')
    # Recreate an empty room when a join still finds nothing after retries
    JOIN_RECOVER_MISSING_ROOM = os.environ.get('JOIN_RECOVER_MISSING_ROOM', '0').lower() in ('1', 'true', 'yes')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
