"""Shot resolution: apply a shot to a board and classify what happened."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .board import Board
from .ship import Cell, PlacedShip


class ShotOutcome(Enum):
    """Classification of a single shot."""

    ALREADY_SHOT = "already_shot"
    MISS = "miss"
    HIT = "hit"
    HIT_AND_SUNK = "hit_and_sunk"
    HIT_AND_FLEET_DESTROYED = "hit_and_fleet_destroyed"

    @property
    def is_hit(self) -> bool:
        return self in (
            ShotOutcome.HIT,
            ShotOutcome.HIT_AND_SUNK,
            ShotOutcome.HIT_AND_FLEET_DESTROYED,
        )

    @property
    def sank_ship(self) -> bool:
        return self in (ShotOutcome.HIT_AND_SUNK, ShotOutcome.HIT_AND_FLEET_DESTROYED)


@dataclass(frozen=True)
class ShotResolution:
    """Outcome of a shot together with the ship it struck, if any."""

    cell: Cell
    outcome: ShotOutcome
    ship: PlacedShip | None = None


def resolve_shot(board: Board, cell: Cell) -> ShotResolution:
    """Record the shot on ``board``; turn handling is left to the caller."""
    record = board.record_shot(cell)
    if record.already_shot:
        return ShotResolution(cell, ShotOutcome.ALREADY_SHOT)
    if record.hit_ship is None:
        return ShotResolution(cell, ShotOutcome.MISS)
    if not record.sunk:
        return ShotResolution(cell, ShotOutcome.HIT, record.hit_ship)
    if board.all_ships_sunk():
        return ShotResolution(cell, ShotOutcome.HIT_AND_FLEET_DESTROYED, record.hit_ship)
    return ShotResolution(cell, ShotOutcome.HIT_AND_SUNK, record.hit_ship)


def fire(board: Board, cell: Cell) -> ShotOutcome:
    """Shoot at ``cell`` and return only the outcome."""
    return resolve_shot(board, cell).outcome
