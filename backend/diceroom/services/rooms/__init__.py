"""Room domain services: turn rotation, scoring, storage and actions.

This package contains the game mechanics that socket handlers and HTTP
routes call into, keeping transport concerns separated from the rules.
"""

from .actions import PendingRoll, RoomActions
from .store import MemoryRoomStore, RedisRoomStore, RoomStore, StoreError

__all__ = [
    'MemoryRoomStore',
    'PendingRoll',
    'RedisRoomStore',
    'RoomActions',
    'RoomStore',
    'StoreError',
]
