from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import InvalidPlacement

BOARD_SIZE = 10

# Canonical ship lengths per class
SHIP_LENGTHS: Dict[str, int] = {
    'small': 1,
    'medium': 2,
    'large': 3,
    'huge': 4,
}

# Fleet used when composition is enforced: 1 huge, 2 large, 3 medium, 4 small
CANONICAL_FLEET: Dict[str, int] = {
    'huge': 1,
    'large': 2,
    'medium': 3,
    'small': 4,
}


class CellState(Enum):
    EMPTY = 'empty'
    OCCUPIED = 'occupied'
    HIT = 'hit'
    MISS = 'miss'


class Orientation(Enum):
    HORIZONTAL = 'horizontal'
    VERTICAL = 'vertical'


@dataclass(frozen=True)
class Ship:
    x: int
    y: int
    orientation: Orientation
    length: int
    kind: str

    def cells(self) -> Iterator[Tuple[int, int]]:
        """Yield the (x, y) cells covered by the ship, origin first."""
        for i in range(self.length):
            if self.orientation is Orientation.HORIZONTAL:
                yield self.x + i, self.y
            else:
                yield self.x, self.y + i

    def to_dict(self) -> dict:
        return {
            'position': {'x': self.x, 'y': self.y},
            'direction': self.orientation is Orientation.VERTICAL,
            'type': self.kind,
            'length': self.length,
        }


def in_bounds(x: int, y: int) -> bool:
    return 0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE


class Board:
    """A single player's 10x10 grid.

    Cells only move forward: EMPTY -> OCCUPIED while ships are placed, then
    OCCUPIED -> HIT or EMPTY -> MISS while the game runs.
    """

    def __init__(self):
        self.cells: List[List[CellState]] = [
            [CellState.EMPTY for _ in range(BOARD_SIZE)] for _ in range(BOARD_SIZE)
        ]

    def get(self, x: int, y: int) -> CellState:
        return self.cells[y][x]

    def set(self, x: int, y: int, state: CellState) -> None:
        self.cells[y][x] = state

    def count(self, state: CellState) -> int:
        return sum(row.count(state) for row in self.cells)

    @property
    def remaining(self) -> int:
        """Number of ship cells not yet hit."""
        return self.count(CellState.OCCUPIED)

    def neighbours(self, x: int, y: int) -> Iterator[Tuple[int, int]]:
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if (dx or dy) and in_bounds(x + dx, y + dy):
                    yield x + dx, y + dy

    @classmethod
    def from_ships(cls, ships: Iterable[Ship], enforce_fleet: bool = False) -> 'Board':
        """Validate a ship list and build a board holding it.

        Ships are checked in the order supplied. Nothing is committed unless
        every ship is valid, so a failed call never yields a partial board.
        """
        ships = list(ships)
        if not ships:
            raise InvalidPlacement('empty', 'At least one ship is required')
        if enforce_fleet:
            check_fleet(ships)
        taken = set()
        for ship in ships:
            cells = list(ship.cells())
            if not all(in_bounds(x, y) for x, y in cells):
                raise InvalidPlacement('out_of_bounds', f'Ship at ({ship.x}, {ship.y}) does not fit on the board')
            if any(cell in taken for cell in cells):
                raise InvalidPlacement('overlap', f'Ship at ({ship.x}, {ship.y}) overlaps another ship')
            taken.update(cells)

        board = cls()
        for x, y in taken:
            board.set(x, y, CellState.OCCUPIED)
        return board


def check_fleet(ships: List[Ship], fleet: Optional[Dict[str, int]] = None) -> None:
    fleet = fleet or CANONICAL_FLEET
    if Counter(ship.kind for ship in ships) != Counter(fleet):
        wanted = ', '.join(f'{n} {kind}' for kind, n in fleet.items())
        raise InvalidPlacement('fleet', f'Fleet must be exactly {wanted}')
