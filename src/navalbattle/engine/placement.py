"""Manual and randomised fleet placement onto a board."""

from __future__ import annotations

import logging
import random
from typing import Iterable

from navalbattle.telemetry import get_meter, get_tracer

from .board import Board
from .errors import InvalidPlacement, PlacementExhausted
from .ship import SHIP_NAMES, Cell, Orientation, PlacedShip, ShipSpec, cells_for, expand_fleet

logger = logging.getLogger(__name__)
tracer = get_tracer("navalbattle.engine.placement")
meter = get_meter("navalbattle.engine.placement")

DRAW_COUNTER = meter.create_counter(
    "navalbattle_engine_placement_draws",
    unit="1",
    description="Random (anchor, orientation) draws spent placing fleets",
)

STRICT_ATTEMPTS = 100
RELAXED_ATTEMPTS = 100


def place_manually(board: Board, size: int, anchor: Cell, orientation: Orientation) -> PlacedShip:
    """Place one ship at ``anchor``; touching other ships is allowed."""
    cells = cells_for(anchor, size, orientation)
    if not board.can_place(cells, allow_adjacent=True):
        logger.warning(
            "manual_placement_rejected",
            extra={
                "owner": board.owner,
                "size": size,
                "x": anchor.x,
                "y": anchor.y,
                "orientation": orientation.name,
            },
        )
        raise InvalidPlacement(
            f"A ship of size {size} does not fit at ({anchor.x}, {anchor.y}) {orientation.value}."
        )
    return board.place(cells, orientation=orientation, name=SHIP_NAMES.get(size, ""))


def place_randomly(
    board: Board,
    specs: Iterable[ShipSpec],
    rng: random.Random | None = None,
    strict_attempts: int = STRICT_ATTEMPTS,
    relaxed_attempts: int = RELAXED_ATTEMPTS,
) -> list[PlacedShip]:
    """Place every ship in ``specs`` at random, largest first.

    Each ship gets ``strict_attempts`` draws that must not touch another ship,
    then ``relaxed_attempts`` draws where touching is tolerated. If both passes
    run dry the ships placed by this call are removed again and
    :class:`PlacementExhausted` is raised, so callers can simply retry.
    """
    rng = rng or random.Random()
    specs = list(specs)
    names = {spec.size: spec.name or SHIP_NAMES.get(spec.size, "") for spec in specs}
    placed: list[PlacedShip] = []

    with tracer.start_as_current_span("placement.place_randomly") as span:
        span.set_attribute("board.owner", board.owner)
        for size in expand_fleet(specs):
            ship = _draw_ship(board, size, names[size], rng, strict_attempts, relaxed_attempts)
            if ship is None:
                for undo in reversed(placed):
                    board.remove(undo)
                span.set_attribute("placement.exhausted_size", size)
                logger.error(
                    "random_placement_exhausted",
                    extra={"owner": board.owner, "size": size, "placed": len(placed)},
                )
                raise PlacementExhausted(size, strict_attempts + relaxed_attempts)
            placed.append(ship)
        span.set_attribute("placement.ships", len(placed))
    return placed


def _draw_ship(
    board: Board,
    size: int,
    name: str,
    rng: random.Random,
    strict_attempts: int,
    relaxed_attempts: int,
) -> PlacedShip | None:
    orientations = list(Orientation)
    for allow_adjacent, budget in ((False, strict_attempts), (True, relaxed_attempts)):
        for attempt in range(1, budget + 1):
            orientation = rng.choice(orientations)
            anchor = Cell(rng.randrange(board.size), rng.randrange(board.size))
            cells = cells_for(anchor, size, orientation)
            if not board.can_place(cells, allow_adjacent=allow_adjacent):
                continue
            DRAW_COUNTER.add(attempt, attributes={"strict": not allow_adjacent})
            logger.debug(
                "random_ship_placed",
                extra={
                    "owner": board.owner,
                    "size": size,
                    "attempts": attempt,
                    "strict": not allow_adjacent,
                },
            )
            return board.place(cells, orientation=orientation, name=name)
        DRAW_COUNTER.add(budget, attributes={"strict": not allow_adjacent})
    return None
