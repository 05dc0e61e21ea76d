from typing import Optional

from diceroom.models import DICE_COUNT, RoomState


def reset_turn_state(state: RoomState) -> None:
    """Clear dice for the start of a turn."""
    state.dice = [0] * DICE_COUNT
    state.kept_dice = [False] * DICE_COUNT
    state.roll_count = 0
    state.turn_score = 0
    state.must_keep_die = False


def get_next_player(state: RoomState) -> Optional[str]:
    order = state.player_order
    if not order:
        return None
    if state.current_player not in order:
        return order[0]
    idx = order.index(state.current_player)
    return order[(idx + 1) % len(order)]


def check_round_end(state: RoomState) -> bool:
    # Live membership: a player joining mid-round keeps the round open
    return len(state.players_played) >= len(state.players)


def determine_round_winner(state: RoomState) -> Optional[str]:
    """Return the player with the strictly highest round score, or None on a tie."""
    highest = None
    leaders = []
    for player_id, score in state.round_scores.items():
        if highest is None or score > highest:
            highest = score
            leaders = [player_id]
        elif score == highest:
            leaders.append(player_id)
    return leaders[0] if len(leaders) == 1 else None


def start_new_round(state: RoomState) -> None:
    """Reset round bookkeeping; the previous winner (if still here) goes first."""
    state.round_ended = False
    state.players_played = set()
    state.round_scores = {}
    for player_id in state.scores:
        state.scores[player_id] = 0

    winner = state.round_winner
    if winner and winner in state.players:
        if winner in state.player_order:
            state.player_order = [winner] + [pid for pid in state.player_order if pid != winner]
        state.current_player = winner
    else:
        state.current_player = state.player_order[0] if state.player_order else None

    reset_turn_state(state)
