"""Ship and grid domain model for the naval battle engine."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

GRID_DIMENSION = 10


@dataclass(frozen=True)
class Cell:
    """Immutable grid cell; ``x`` is the column and ``y`` the row."""

    x: int
    y: int

    def offset(self, dx: int, dy: int) -> Cell:
        """Return the cell shifted by the given offset."""
        return Cell(self.x + dx, self.y + dy)

    def neighbours(self) -> tuple[Cell, ...]:
        """Return the four orthogonal neighbours (N, E, S, W), unbounded."""
        return tuple(self.offset(dx, dy) for dx, dy in ORTHOGONAL_OFFSETS)


ORTHOGONAL_OFFSETS: tuple[tuple[int, int], ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))


class Orientation(Enum):
    """Allowed ship orientations."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @property
    def step(self) -> tuple[int, int]:
        """Offset between consecutive cells of a ship."""
        return (1, 0) if self is Orientation.HORIZONTAL else (0, 1)

    @classmethod
    def from_rotation(cls, degrees: int) -> Orientation:
        """Map a rotation in 90 degree steps (as held by the pointer) to an orientation."""
        if degrees % 90:
            raise ValueError(f"Rotation must be a multiple of 90 degrees, got {degrees}.")
        quarter_turns = (degrees // 90) % 4
        return cls.HORIZONTAL if quarter_turns % 2 == 0 else cls.VERTICAL


@dataclass(frozen=True)
class ShipSpec:
    """One line of the fleet composition: ``count`` ships of ``size`` cells."""

    size: int
    count: int
    name: str = ""

    def __post_init__(self) -> None:
        if not 1 <= self.size <= 5:
            raise ValueError(f"Ship size must be between 1 and 5, got {self.size}.")
        if self.count < 0:
            raise ValueError("Ship count cannot be negative.")


STANDARD_FLEET: tuple[ShipSpec, ...] = (
    ShipSpec(1, 5, "Patrol Boat"),
    ShipSpec(2, 4, "Submarine"),
    ShipSpec(3, 3, "Cruiser"),
    ShipSpec(4, 2, "Battleship"),
    ShipSpec(5, 1, "Carrier"),
)

SHIP_NAMES: dict[int, str] = {spec.size: spec.name for spec in STANDARD_FLEET}


def expand_fleet(specs: Iterable[ShipSpec]) -> list[int]:
    """Return the size of every ship in the composition, largest first."""
    sizes = [spec.size for spec in specs for _ in range(spec.count)]
    return sorted(sizes, reverse=True)


def fleet_from_sizes(sizes: Iterable[int]) -> tuple[ShipSpec, ...]:
    """Rebuild a fleet composition from the sizes of already placed ships."""
    counts = Counter(sizes)
    return tuple(
        ShipSpec(size, counts[size], SHIP_NAMES.get(size, "")) for size in sorted(counts)
    )


def cells_for(anchor: Cell, size: int, orientation: Orientation) -> list[Cell]:
    """Build ``size`` cells starting at ``anchor`` and extending along ``orientation``."""
    dx, dy = orientation.step
    return [anchor.offset(dx * i, dy * i) for i in range(size)]


def orientation_of(cells: Sequence[Cell]) -> Orientation | None:
    """Return the orientation of a straight contiguous run, or None if it is not one."""
    if not cells:
        return None
    if len(cells) == 1:
        return Orientation.HORIZONTAL
    for orientation in Orientation:
        if list(cells) == cells_for(cells[0], len(cells), orientation):
            return orientation
    return None


@dataclass
class PlacedShip:
    """A ship recorded on a board; ``cells`` is fixed, ``hits`` only grows."""

    id: int
    cells: tuple[Cell, ...]
    orientation: Orientation
    name: str = ""
    hits: set[Cell] = field(default_factory=set)

    @property
    def size(self) -> int:
        return len(self.cells)

    def occupies(self, cell: Cell) -> bool:
        return cell in self.cells

    def hit(self, cell: Cell) -> bool:
        """Record a hit if the cell belongs to this ship and was not hit before."""
        if cell not in self.cells or cell in self.hits:
            return False
        self.hits.add(cell)
        return True

    def is_sunk(self) -> bool:
        """A ship is sunk once every one of its cells has been hit."""
        return self.hits == set(self.cells)
