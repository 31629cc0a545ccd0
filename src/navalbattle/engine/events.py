"""Typed events published by a game session for the presentation layer.

The set is closed: a subscriber can dispatch on :class:`EventType` (or on the
event class) without parsing free-form strings. Payloads only carry value
types, so nothing a handler holds can mutate board state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, ClassVar, Union

from .ship import Cell, PlacedShip
from .shots import ShotOutcome

logger = logging.getLogger(__name__)


class EventType(Enum):
    SHIP_PLACED = "ship_placed"
    SHOT_FIRED = "shot_fired"
    SHIP_SUNK = "ship_sunk"
    FLEET_DESTROYED = "fleet_destroyed"
    GAME_OVER = "game_over"


class Side(Enum):
    """The two sides of a session."""

    PLAYER = "player"
    COMPUTER = "computer"

    def opponent(self) -> Side:
        return Side.COMPUTER if self is Side.PLAYER else Side.PLAYER


@dataclass(frozen=True)
class ShipSummary:
    """Read-only description of a placed ship."""

    id: int
    name: str
    size: int
    cells: tuple[Cell, ...]

    @classmethod
    def of(cls, ship: PlacedShip) -> ShipSummary:
        return cls(id=ship.id, name=ship.name, size=ship.size, cells=ship.cells)


@dataclass(frozen=True)
class ShipPlaced:
    type: ClassVar[EventType] = EventType.SHIP_PLACED

    side: Side
    ship: ShipSummary


@dataclass(frozen=True)
class ShotFired:
    """``shooter`` fired at ``cell`` on the opposing board."""

    type: ClassVar[EventType] = EventType.SHOT_FIRED

    shooter: Side
    cell: Cell
    outcome: ShotOutcome


@dataclass(frozen=True)
class ShipSunk:
    """``owner`` lost ``ship``."""

    type: ClassVar[EventType] = EventType.SHIP_SUNK

    owner: Side
    ship: ShipSummary
    cell: Cell


@dataclass(frozen=True)
class FleetDestroyed:
    type: ClassVar[EventType] = EventType.FLEET_DESTROYED

    owner: Side


@dataclass(frozen=True)
class GameOver:
    type: ClassVar[EventType] = EventType.GAME_OVER

    winner: Side
    player_shots: int
    computer_shots: int


GameEvent = Union[ShipPlaced, ShotFired, ShipSunk, FleetDestroyed, GameOver]
EventHandler = Callable[[GameEvent], None]


class EventBus:
    """Synchronous publish/subscribe; handlers run in subscription order."""

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler`` and return a callable that unregisters it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: GameEvent) -> None:
        logger.debug("event_published", extra={"event_type": event.type.value})
        for handler in list(self._handlers):
            handler(event)

    def __len__(self) -> int:
        return len(self._handlers)
