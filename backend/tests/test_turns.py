from diceroom.models import Player, RoomState
from diceroom.services.rooms.scoring import compute_turn_score
from diceroom.services.rooms.turns import (
    check_round_end,
    determine_round_winner,
    get_next_player,
    reset_turn_state,
    start_new_round,
)


def _state_with(*ids, **overrides):
    state = RoomState()
    for pid in ids:
        state.players[pid] = Player(id=pid, name=pid.lower())
        state.scores[pid] = 0
        state.round_scores[pid] = 0
        state.player_order.append(pid)
    for key, value in overrides.items():
        setattr(state, key, value)
    return state


def test_turn_score_excludes_one_qualifying_pair():
    dice = [1, 4, 2, 3, 0, 0]
    kept = [True, True, True, False, False, False]
    assert compute_turn_score(dice, kept) == 2
    kept[3] = True
    assert compute_turn_score(dice, kept) == 5


def test_turn_score_zero_without_a_four():
    assert compute_turn_score([1, 2, 3, 5, 6, 6], [True] * 6) == 0


def test_turn_score_counts_extra_ones_and_fours():
    assert compute_turn_score([1, 1, 4, 4, 6, 2], [True] * 6) == 1 + 4 + 6 + 2


def test_turn_score_ignores_unkept_dice():
    dice = [1, 4, 6, 6, 6, 6]
    kept = [True, False, True, True, True, True]
    assert compute_turn_score(dice, kept) == 0


def test_next_player_rotates_and_wraps():
    state = _state_with('A', 'B', 'C', current_player='B')
    assert get_next_player(state) == 'C'
    state.current_player = 'C'
    assert get_next_player(state) == 'A'


def test_next_player_falls_back_to_first_or_none():
    state = _state_with('A', 'B', current_player='gone')
    assert get_next_player(state) == 'A'
    assert get_next_player(RoomState()) is None


def test_next_player_follows_order_not_player_map():
    state = _state_with('A', 'B', 'C', current_player='A')
    state.player_order = ['C', 'A', 'B']
    assert get_next_player(state) == 'B'


def test_round_end_uses_live_membership():
    state = _state_with('A', 'B', players_played={'A'})
    assert check_round_end(state) is False
    state.players_played.add('B')
    assert check_round_end(state) is True
    state.players['C'] = Player(id='C', name='c')
    assert check_round_end(state) is False


def test_round_winner_unique_max_or_tie():
    state = _state_with('A', 'B')
    state.round_scores = {'A': 10, 'B': 10}
    assert determine_round_winner(state) is None
    state.round_scores = {'A': 12, 'B': 7}
    assert determine_round_winner(state) == 'A'


def test_round_winner_tie_after_earlier_leader():
    state = _state_with('A', 'B', 'C')
    state.round_scores = {'A': 3, 'B': 9, 'C': 9}
    assert determine_round_winner(state) is None
    assert determine_round_winner(RoomState()) is None


def test_reset_turn_state_clears_dice():
    state = _state_with('A', dice=[1, 2, 3, 4, 5, 6], kept_dice=[True] * 6,
                        roll_count=2, turn_score=7, must_keep_die=True)
    reset_turn_state(state)
    assert state.dice == [0] * 6
    assert state.kept_dice == [False] * 6
    assert state.roll_count == 0
    assert state.turn_score == 0
    assert state.must_keep_die is False


def test_new_round_puts_winner_first():
    state = _state_with('A', 'B', 'C', round_ended=True, round_winner='B',
                        players_played={'A', 'B', 'C'}, roll_count=3)
    state.scores = {'A': 4, 'B': 9, 'C': 1}
    state.round_scores = {'A': 4, 'B': 9, 'C': 1}
    start_new_round(state)
    assert state.player_order == ['B', 'A', 'C']
    assert state.current_player == 'B'
    assert state.scores == {'A': 0, 'B': 0, 'C': 0}
    assert state.round_scores == {}
    assert state.players_played == set()
    assert state.round_ended is False
    assert state.roll_count == 0


def test_new_round_without_winner_starts_with_first_in_order():
    state = _state_with('A', 'B', round_ended=True, round_winner=None, current_player='B')
    start_new_round(state)
    assert state.current_player == 'A'
    state = _state_with('A', 'B', round_ended=True, round_winner='gone')
    start_new_round(state)
    assert state.current_player == 'A'
    empty = RoomState(round_ended=True)
    start_new_round(empty)
    assert empty.current_player is None
