import json
import logging
import time
from typing import Dict, Optional, Tuple

import redis

from diceroom.models import RoomState

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The room store could not be reached or returned an unreadable record."""


class RoomStore:
    """Key-value persistence of one RoomState per room, with expiry.

    Every ``save`` refreshes the record's time-to-live; a missing key means
    the room no longer exists.
    """

    def __init__(self, ttl_sec: int = 60 * 60 * 24):
        self.ttl_sec = ttl_sec

    def get(self, room_id: str) -> Optional[RoomState]:
        raise NotImplementedError

    def save(self, room_id: str, state: RoomState) -> None:
        raise NotImplementedError

    def delete(self, room_id: str) -> None:
        raise NotImplementedError

    def ping(self) -> None:
        pass

    @staticmethod
    def _decode(room_id: str, raw) -> RoomState:
        try:
            return RoomState.from_dict(json.loads(raw))
        except (TypeError, ValueError, AttributeError) as exc:
            logger.error(f"[store-corrupt] room={room_id} record={raw!r}")
            raise StoreError(f"Unreadable state for room {room_id}") from exc


class RedisRoomStore(RoomStore):
    def __init__(self, client: redis.Redis, ttl_sec: int = 60 * 60 * 24, prefix: str = 'room:'):
        super().__init__(ttl_sec)
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, **kwargs) -> 'RedisRoomStore':
        return cls(redis.Redis.from_url(url, decode_responses=True), **kwargs)

    def key(self, room_id: str) -> str:
        return f"{self.prefix}{room_id}"

    def get(self, room_id: str) -> Optional[RoomState]:
        try:
            raw = self.client.get(self.key(room_id))
        except redis.RedisError as exc:
            raise StoreError(f"Could not read room {room_id}") from exc
        if raw is None:
            return None
        return self._decode(room_id, raw)

    def save(self, room_id: str, state: RoomState) -> None:
        payload = json.dumps(state.to_dict())
        try:
            self.client.set(self.key(room_id), payload, ex=self.ttl_sec)
        except redis.RedisError as exc:
            raise StoreError(f"Could not save room {room_id}") from exc

    def delete(self, room_id: str) -> None:
        try:
            self.client.delete(self.key(room_id))
        except redis.RedisError as exc:
            raise StoreError(f"Could not delete room {room_id}") from exc

    def ping(self) -> None:
        try:
            self.client.ping()
        except redis.RedisError as exc:
            raise StoreError("Redis is unreachable") from exc


class MemoryRoomStore(RoomStore):
    """Process-local store for single-instance runs and tests.

    Records are kept serialized so callers never share a live RoomState.
    """

    def __init__(self, ttl_sec: int = 60 * 60 * 24, clock=time.monotonic):
        super().__init__(ttl_sec)
        self._clock = clock
        self._records: Dict[str, Tuple[str, Optional[float]]] = {}

    def get(self, room_id: str) -> Optional[RoomState]:
        record = self._records.get(room_id)
        if record is None:
            return None
        raw, expires_at = record
        if expires_at is not None and self._clock() >= expires_at:
            self._records.pop(room_id, None)
            return None
        return self._decode(room_id, raw)

    def save(self, room_id: str, state: RoomState) -> None:
        expires_at = self._clock() + self.ttl_sec if self.ttl_sec else None
        self._records[room_id] = (json.dumps(state.to_dict()), expires_at)

    def delete(self, room_id: str) -> None:
        self._records.pop(room_id, None)

    def __contains__(self, room_id: str) -> bool:
        return self.get(room_id) is not None
