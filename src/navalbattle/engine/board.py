"""Per-side board: ship occupancy and shot history."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from navalbattle.telemetry import get_meter, get_tracer

from .errors import InvalidCell, InvalidPlacement
from .ship import GRID_DIMENSION, Cell, Orientation, PlacedShip, orientation_of

logger = logging.getLogger(__name__)
tracer = get_tracer("navalbattle.engine.board")
meter = get_meter("navalbattle.engine.board")

PLACEMENT_COUNTER = meter.create_counter(
    "navalbattle_engine_ship_placements",
    unit="1",
    description="Number of ships recorded on a board",
)

SHOT_COUNTER = meter.create_counter(
    "navalbattle_engine_shots",
    unit="1",
    description="Shots received by a board",
)


class CellState(Enum):
    """State of a board cell from the perspective of shots taken."""

    UNKNOWN = "unknown"
    MISS = "miss"
    HIT = "hit"


@dataclass(frozen=True)
class ShotRecord:
    """What a single call to :meth:`Board.record_shot` did."""

    already_shot: bool
    hit_ship: PlacedShip | None = None
    sunk: bool = False


@dataclass
class Board:
    """One side's 10x10 grid and the ships placed on it."""

    size: int = GRID_DIMENSION
    owner: str = "unknown"
    ships: list[PlacedShip] = field(default_factory=list)
    shots: dict[Cell, CellState] = field(default_factory=dict)
    _occupancy: dict[Cell, PlacedShip] = field(default_factory=dict, repr=False)
    _locked: bool = field(default=False, repr=False)
    _next_id: int = field(default=1, repr=False)

    def in_bounds(self, cell: Cell) -> bool:
        return 0 <= cell.x < self.size and 0 <= cell.y < self.size

    @property
    def locked(self) -> bool:
        """True once the battle started and the fleet became read-only."""
        return self._locked

    @property
    def shot_cells(self) -> frozenset[Cell]:
        return frozenset(self.shots)

    def is_shot(self, cell: Cell) -> bool:
        return cell in self.shots

    def ship_at(self, cell: Cell) -> PlacedShip | None:
        return self._occupancy.get(cell)

    def occupied_cells(self) -> frozenset[Cell]:
        return frozenset(self._occupancy)

    def can_place(self, cells: Sequence[Cell], allow_adjacent: bool = True) -> bool:
        """Check bounds and overlap, and orthogonal contact unless ``allow_adjacent``."""
        if not cells:
            return False
        for cell in cells:
            if not self.in_bounds(cell) or cell in self._occupancy:
                return False
        if not allow_adjacent:
            own = set(cells)
            for cell in cells:
                for neighbour in cell.neighbours():
                    if neighbour not in own and neighbour in self._occupancy:
                        return False
        return True

    def place(
        self,
        cells: Sequence[Cell],
        orientation: Orientation | None = None,
        name: str = "",
    ) -> PlacedShip:
        """Record a ship over ``cells``; bounds and overlap are always enforced."""
        with tracer.start_as_current_span("board.place") as span:
            span.set_attribute("board.owner", self.owner)
            span.set_attribute("ship.size", len(cells))
            reason = self._placement_problem(cells)
            line = orientation_of(cells)
            if reason is None and line is None:
                reason = "cells_not_contiguous"
            if reason is not None or line is None:
                PLACEMENT_COUNTER.add(1, attributes={"result": "failed", "owner": self.owner})
                logger.warning(
                    "ship_placement_rejected",
                    extra={"owner": self.owner, "size": len(cells), "reason": reason},
                )
                raise InvalidPlacement(f"Cannot place ship: {str(reason).replace('_', ' ')}.")

            if orientation is None or len(cells) > 1:
                orientation = line
            ship = PlacedShip(
                id=self._next_id, cells=tuple(cells), orientation=orientation, name=name
            )
            self._next_id += 1
            self.ships.append(ship)
            for cell in ship.cells:
                self._occupancy[cell] = ship
            PLACEMENT_COUNTER.add(1, attributes={"result": "success", "owner": self.owner})
            logger.info(
                "ship_placed",
                extra={
                    "owner": self.owner,
                    "ship_id": ship.id,
                    "size": ship.size,
                    "orientation": ship.orientation.name,
                    "x": ship.cells[0].x,
                    "y": ship.cells[0].y,
                },
            )
            return ship

    def remove(self, ship: PlacedShip) -> None:
        """Take a ship back off the board during placement."""
        if self._locked:
            raise InvalidPlacement("Ships cannot be removed once the battle started.")
        self.ships.remove(ship)
        for cell in ship.cells:
            self._occupancy.pop(cell, None)
        logger.debug("ship_removed", extra={"owner": self.owner, "ship_id": ship.id})

    def clear(self) -> None:
        """Remove every ship and shot and unlock the board."""
        self.ships.clear()
        self.shots.clear()
        self._occupancy.clear()
        self._locked = False
        self._next_id = 1

    def lock(self) -> None:
        self._locked = True

    def record_shot(self, cell: Cell) -> ShotRecord:
        """Register a shot; a repeated cell reports ``already_shot`` and changes nothing."""
        with tracer.start_as_current_span("board.record_shot") as span:
            span.set_attribute("shot.x", cell.x)
            span.set_attribute("shot.y", cell.y)
            span.set_attribute("board.owner", self.owner)
            if not self.in_bounds(cell):
                logger.error(
                    "shot_out_of_bounds", extra={"x": cell.x, "y": cell.y, "owner": self.owner}
                )
                raise InvalidCell(f"Cell ({cell.x}, {cell.y}) is outside the board.")
            if cell in self.shots:
                span.set_attribute("shot.outcome", "already_shot")
                logger.warning(
                    "shot_duplicate", extra={"x": cell.x, "y": cell.y, "owner": self.owner}
                )
                return ShotRecord(already_shot=True)

            ship = self._occupancy.get(cell)
            if ship is None:
                self.shots[cell] = CellState.MISS
                span.set_attribute("shot.outcome", "miss")
                SHOT_COUNTER.add(1, attributes={"outcome": "miss", "owner": self.owner})
                logger.info("shot_miss", extra={"x": cell.x, "y": cell.y, "owner": self.owner})
                return ShotRecord(already_shot=False)

            ship.hit(cell)
            self.shots[cell] = CellState.HIT
            sunk = ship.is_sunk()
            span.set_attribute("shot.outcome", "sunk" if sunk else "hit")
            SHOT_COUNTER.add(
                1, attributes={"outcome": "sunk" if sunk else "hit", "owner": self.owner}
            )
            logger.info(
                "shot_hit",
                extra={
                    "x": cell.x,
                    "y": cell.y,
                    "ship_id": ship.id,
                    "sunk": sunk,
                    "owner": self.owner,
                },
            )
            return ShotRecord(already_shot=False, hit_ship=ship, sunk=sunk)

    def get_cell_state(self, cell: Cell) -> CellState:
        """Return the state of a cell after shots have been taken."""
        return self.shots.get(cell, CellState.UNKNOWN)

    def all_ships_sunk(self) -> bool:
        """Check whether every placed ship has been sunk."""
        return all(ship.is_sunk() for ship in self.ships)

    def _placement_problem(self, cells: Sequence[Cell]) -> str | None:
        if self._locked:
            return "board_locked"
        if not cells:
            return "no_cells"
        if not all(self.in_bounds(cell) for cell in cells):
            return "out_of_bounds"
        if any(cell in self._occupancy for cell in cells):
            return "overlaps_existing_ship"
        return None
