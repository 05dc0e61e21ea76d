from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

DICE_COUNT = 6


def _fit(values: List[Any], filler: Any) -> List[Any]:
    values = list(values or [])[:DICE_COUNT]
    return values + [filler] * (DICE_COUNT - len(values))


@dataclass
class Player:
    id: str
    name: str

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
        }


@dataclass
class RoomState:
    """Authoritative state of one room.

    Attributes are snake_case; ``to_dict``/``from_dict`` use the camelCase
    keys clients and the store expect.
    """
    players: Dict[str, Player] = field(default_factory=dict)
    dice: List[int] = field(default_factory=lambda: [0] * DICE_COUNT)
    kept_dice: List[bool] = field(default_factory=lambda: [False] * DICE_COUNT)
    roll_count: int = 0
    current_player: Optional[str] = None
    scores: Dict[str, int] = field(default_factory=dict)
    round_scores: Dict[str, int] = field(default_factory=dict)
    turn_score: int = 0
    must_keep_die: bool = False
    is_rolling: bool = False
    player_order: List[str] = field(default_factory=list)
    players_played: Set[str] = field(default_factory=set)
    round_ended: bool = False
    round_winner: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'players': {pid: p.to_dict() for pid, p in self.players.items()},
            'dice': list(self.dice),
            'keptDice': list(self.kept_dice),
            'rollCount': self.roll_count,
            'currentPlayer': self.current_player,
            'scores': dict(self.scores),
            'roundScores': dict(self.round_scores),
            'turnScore': self.turn_score,
            'mustKeepDie': self.must_keep_die,
            'isRolling': self.is_rolling,
            'playerOrder': list(self.player_order),
            'playersPlayedThisRound': sorted(self.players_played),
            'roundEnded': self.round_ended,
            'roundWinner': self.round_winner,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoomState':
        players = {}
        for pid, raw in (data.get('players') or {}).items():
            raw = raw or {}
            players[pid] = Player(id=raw.get('id', pid), name=raw.get('name', ''))
        return cls(
            players=players,
            dice=[int(d) for d in _fit(data.get('dice'), 0)],
            kept_dice=[bool(k) for k in _fit(data.get('keptDice'), False)],
            roll_count=int(data.get('rollCount') or 0),
            current_player=data.get('currentPlayer'),
            scores={pid: int(v) for pid, v in (data.get('scores') or {}).items()},
            round_scores={pid: int(v) for pid, v in (data.get('roundScores') or {}).items()},
            turn_score=int(data.get('turnScore') or 0),
            must_keep_die=bool(data.get('mustKeepDie')),
            is_rolling=bool(data.get('isRolling')),
            player_order=list(data.get('playerOrder') or []),
            players_played=set(data.get('playersPlayedThisRound') or []),
            round_ended=bool(data.get('roundEnded')),
            round_winner=data.get('roundWinner'),
        )
