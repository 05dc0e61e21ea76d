import functools
import logging
import random
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from diceroom.models import DICE_COUNT, Player, RoomState
from .scoring import compute_turn_score
from .store import RoomStore, StoreError
from .turns import (
    check_round_end,
    determine_round_winner,
    get_next_player,
    reset_turn_state,
    start_new_round,
)

logger = logging.getLogger(__name__)

ROOM_NOT_FOUND = 'Room not found'
ROOM_DATA_MISSING = 'Game room data not found. Please rejoin.'
STORE_UNAVAILABLE = 'Room storage unavailable. Please try again.'


@dataclass(frozen=True)
class PendingRoll:
    """Identity captured when a roll starts, re-checked when it completes."""
    room_id: str
    player_id: str


def _run_inline(fn, *args):
    return fn(*args)


def store_guarded(method):
    """Abort the action on store failure and tell the acting player."""
    @functools.wraps(method)
    def wrapper(self, room_id, player_id, *args, **kwargs):
        try:
            return method(self, room_id, player_id, *args, **kwargs)
        except StoreError:
            logger.exception(f"[store-error] action={method.__name__} room={room_id} player={player_id}")
            self.broadcaster.send_error(player_id, STORE_UNAVAILABLE)
            return None
    return wrapper


class RoomActions:
    """Validate, apply, persist and broadcast player actions for a room.

    Each action loads the authoritative state, silently ignores requests
    that do not fit the current turn, mutates, saves and then broadcasts.
    Nothing is locked: concurrent actions on one room are last-writer-wins.
    """

    def __init__(
        self,
        store: RoomStore,
        broadcaster,
        roll_delay: float = 1.0,
        join_retry_delays: Sequence[float] = (0.25,),
        recover_missing_rooms: bool = False,
        spawn: Optional[Callable] = None,
        sleep: Optional[Callable[[float], None]] = None,
        rng=None,
    ):
        self.store = store
        self.broadcaster = broadcaster
        self.roll_delay = roll_delay
        self.join_retry_delays = tuple(join_retry_delays)
        self.recover_missing_rooms = recover_missing_rooms
        self.spawn = spawn or _run_inline
        self.sleep = sleep or time.sleep
        self.rng = rng or random.Random()

    # ---- helpers ----

    def _load(self, room_id: str, player_id: str, action: str) -> Optional[RoomState]:
        state = self.store.get(room_id)
        if state is None:
            logger.warning(f"[{action}] room={room_id} not found for player={player_id}")
            self.broadcaster.send_error(player_id, ROOM_DATA_MISSING)
        return state

    def _commit(self, room_id: str, state: RoomState) -> None:
        self.store.save(room_id, state)
        self.broadcaster.broadcast_state(room_id, state)

    def _fetch_for_join(self, room_id: str) -> Optional[RoomState]:
        state = self.store.get(room_id)
        for delay in self.join_retry_delays:
            if state is not None:
                break
            logger.info(f"[join-retry] room={room_id} not found, retrying in {delay}s")
            self.sleep(delay)
            state = self.store.get(room_id)
        return state

    # ---- actions ----

    def create_room(self) -> str:
        room_id = str(uuid.uuid4())
        self.store.save(room_id, RoomState())
        logger.info(f"[create] room={room_id}")
        return room_id

    @store_guarded
    def join_room(self, room_id: str, player_id: str, player_name: Optional[str] = None) -> bool:
        state = self._fetch_for_join(room_id)
        if state is None:
            if not self.recover_missing_rooms:
                logger.warning(f"[join] room={room_id} still missing for player={player_id}")
                self.broadcaster.send_error(player_id, ROOM_NOT_FOUND)
                return False
            logger.warning(f"[join] room={room_id} missing after retries, recreating empty state")
            state = RoomState()

        name = (player_name or '').strip() or f"Player_{player_id[:4]}"
        state.players[player_id] = Player(id=player_id, name=name)
        state.scores.setdefault(player_id, 0)
        state.round_scores.setdefault(player_id, 0)
        if player_id not in state.player_order:
            state.player_order.append(player_id)
        if not state.current_player:
            state.current_player = player_id
            reset_turn_state(state)
            logger.info(f"[join] room={room_id} player={player_id} takes the first turn")

        self.store.save(room_id, state)
        self.broadcaster.join(player_id, room_id)
        self.broadcaster.send_state(player_id, state)
        self.broadcaster.broadcast_state(room_id, state)
        logger.info(f"[join] room={room_id} player={player_id} name={name!r} players={len(state.players)}")
        return True

    @store_guarded
    def roll_dice(self, room_id: str, player_id: str) -> None:
        state = self._load(room_id, player_id, 'roll')
        if state is None:
            return
        if state.current_player != player_id:
            logger.info(f"[roll-ignored] room={room_id} player={player_id} not their turn")
            return
        if state.must_keep_die:
            logger.info(f"[roll-ignored] room={room_id} player={player_id} must keep a die first")
            return
        if all(state.kept_dice) and state.roll_count > 0:
            logger.info(f"[roll-ignored] room={room_id} player={player_id} all dice kept")
            return

        state.is_rolling = True
        self._commit(room_id, state)
        self.spawn(self._finish_roll_later, PendingRoll(room_id, player_id))

    def _finish_roll_later(self, pending: PendingRoll) -> None:
        if self.roll_delay > 0:
            self.sleep(self.roll_delay)
        self.complete_roll(pending.room_id, pending.player_id)

    @store_guarded
    def complete_roll(self, room_id: str, player_id: str) -> None:
        state = self.store.get(room_id)
        if state is None or state.current_player != player_id or not state.is_rolling:
            logger.info(f"[roll-cancelled] room={room_id} player={player_id} state changed during roll")
            return

        for i in range(DICE_COUNT):
            if not state.kept_dice[i]:
                state.dice[i] = self.rng.randint(1, 6)
        state.roll_count += 1
        state.must_keep_die = True
        state.is_rolling = False
        self._commit(room_id, state)
        logger.info(f"[roll] room={room_id} player={player_id} dice={state.dice} roll={state.roll_count}")

    @store_guarded
    def keep_dice(self, room_id: str, player_id: str, index) -> None:
        state = self._load(room_id, player_id, 'keep')
        if state is None:
            return
        if state.current_player != player_id:
            logger.info(f"[keep-ignored] room={room_id} player={player_id} not their turn")
            return
        if state.roll_count == 0:
            logger.info(f"[keep-ignored] room={room_id} player={player_id} has not rolled")
            return
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < DICE_COUNT:
            logger.info(f"[keep-ignored] room={room_id} player={player_id} bad index {index!r}")
            return
        if state.dice[index] == 0:
            logger.info(f"[keep-ignored] room={room_id} player={player_id} die {index} is unrolled")
            return

        state.kept_dice[index] = not state.kept_dice[index]
        if state.kept_dice[index]:
            state.must_keep_die = False
        elif not any(state.kept_dice):
            state.must_keep_die = True
        self._commit(room_id, state)
        logger.info(f"[keep] room={room_id} player={player_id} kept={state.kept_dice}")

    @store_guarded
    def end_turn(self, room_id: str, player_id: str) -> None:
        state = self._load(room_id, player_id, 'end-turn')
        if state is None:
            return
        if state.current_player != player_id:
            logger.info(f"[end-turn-ignored] room={room_id} player={player_id} not their turn")
            return

        turn_score = compute_turn_score(state.dice, state.kept_dice)
        state.turn_score = turn_score
        state.scores[player_id] = state.scores.get(player_id, 0) + turn_score
        state.round_scores[player_id] = turn_score
        state.players_played.add(player_id)
        logger.info(f"[end-turn] room={room_id} player={player_id} score={turn_score} total={state.scores[player_id]}")

        if check_round_end(state):
            state.round_ended = True
            state.round_winner = determine_round_winner(state)
            logger.info(f"[round-end] room={room_id} winner={state.round_winner or 'tie'}")
            self._commit(room_id, state)
            return

        next_player = get_next_player(state)
        state.current_player = next_player
        if next_player:
            reset_turn_state(state)
        else:
            state.current_player = None
            logger.error(f"[end-turn] room={room_id} no next player but round has not ended")
        self._commit(room_id, state)

    @store_guarded
    def play_again(self, room_id: str, player_id: str) -> None:
        state = self._load(room_id, player_id, 'play-again')
        if state is None:
            return
        if not state.round_ended:
            logger.info(f"[play-again-ignored] room={room_id} player={player_id} round still running")
            return

        start_new_round(state)
        self._commit(room_id, state)
        logger.info(f"[new-round] room={room_id} first={state.current_player}")

    @store_guarded
    def disconnect(self, room_id: str, player_id: str) -> None:
        state = self.store.get(room_id)
        if state is None:
            logger.info(f"[leave] room={room_id} already gone for player={player_id}")
            return

        was_current = state.current_player == player_id
        state.players.pop(player_id, None)
        state.scores.pop(player_id, None)
        state.round_scores.pop(player_id, None)
        state.player_order = [pid for pid in state.player_order if pid != player_id]
        state.players_played.discard(player_id)

        if was_current:
            next_player = get_next_player(state)
            state.current_player = next_player
            # A roll in flight belonged to the departed player
            state.is_rolling = False
            if next_player:
                reset_turn_state(state)

        if state.players:
            self._commit(room_id, state)
            logger.info(f"[leave] room={room_id} player={player_id} remaining={len(state.players)}")
        else:
            self.store.delete(room_id)
            logger.info(f"[leave] room={room_id} empty, deleted")
