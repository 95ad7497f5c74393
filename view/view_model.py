from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CardView:
    id: int
    suit: str
    rank: int
    label: str
    red: bool


@dataclass(frozen=True)
class PileView:
    cards: tuple[CardView, ...]
    # index of the first card of the movable run, len(cards) when empty
    run_start: int


@dataclass(frozen=True)
class GameViewModel:
    tableau: tuple[PileView, ...]
    free_cells: tuple[Optional[CardView], ...]
    foundations: dict
    move_count: int
    max_movable: int
    can_undo: bool
    won: bool


@dataclass(frozen=True)
class AnimationEvent:
    type: str
    payload: dict
