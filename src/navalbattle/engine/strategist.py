"""Hunt/target shot selection for the computer side."""

from __future__ import annotations

import logging
import random
from collections import deque
from enum import Enum
from typing import Iterable

from navalbattle.telemetry import get_meter, get_tracer

from .board import Board
from .errors import NoTargetsRemaining
from .ship import ORTHOGONAL_OFFSETS, Cell
from .shots import ShotOutcome

logger = logging.getLogger(__name__)
tracer = get_tracer("navalbattle.engine.strategist")
meter = get_meter("navalbattle.engine.strategist")

DECISION_COUNTER = meter.create_counter(
    "navalbattle_strategist_decisions",
    unit="1",
    description="Shots chosen by the computer strategist, by source",
)


class StrategistMode(Enum):
    """Whether the strategist is searching or finishing off a ship."""

    HUNT = "hunt"
    TARGET = "target"


class ComputerStrategist:
    """Chooses the computer's shots against the player's board.

    Hunting fires at random unshot cells. The first hit of a sequence becomes
    ``origin_hit`` and its four neighbours are queued; a second hit next to the
    origin fixes ``direction`` and the strategist then walks the line, turning
    around at the first blocked end. A sink clears the sequence.

    :meth:`next_shot` only reads the board's shot history; results come back
    through :meth:`observe`.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self.mode = StrategistMode.HUNT
        self.origin_hit: Cell | None = None
        self.direction: tuple[int, int] | None = None
        self.pending: deque[Cell] = deque()
        self.recent_hits: list[Cell] = []

    def reset(self) -> None:
        """Forget every lead; used at battle start and on session reset."""
        self._start_hunt()
        self.recent_hits.clear()

    def next_shot(self, board: Board) -> Cell:
        with tracer.start_as_current_span("strategist.next_shot") as span:
            if self.mode is StrategistMode.HUNT and self.recent_hits:
                if not self._reopen(board):
                    self.recent_hits.clear()

            source = "random"
            cell: Cell | None = None
            if self.mode is StrategistMode.TARGET:
                source = "directed"
                cell = self._directed_candidate(board)
                if cell is None:
                    source = "queued"
                    cell = self._queued_candidate(board)
                if cell is None and self._reopen(board, skip=self.origin_hit):
                    source = "reopened"
                    cell = self._queued_candidate(board)
                if cell is None:
                    logger.info(
                        "target_sequence_abandoned",
                        extra={"origin": _fmt(self.origin_hit), "hits": len(self.recent_hits)},
                    )
                    self.reset()
                    source = "scan"
                    cell = self._first_unshot(board)
            else:
                cell = self._random_unshot(board)

            if cell is None:
                raise NoTargetsRemaining("Every cell on the board has already been shot.")
            span.set_attribute("strategist.mode", self.mode.value)
            span.set_attribute("strategist.source", source)
            DECISION_COUNTER.add(1, attributes={"source": source})
            logger.debug(
                "strategist_shot_chosen",
                extra={"x": cell.x, "y": cell.y, "mode": self.mode.value, "source": source},
            )
            return cell

    def observe(self, cell: Cell, outcome: ShotOutcome, sunk_cells: Iterable[Cell] = ()) -> None:
        """Feed back the outcome of a shot chosen by :meth:`next_shot`."""
        self.pending = deque(c for c in self.pending if c != cell)
        if not outcome.is_hit:
            return

        if outcome.sank_ship:
            sunk = set(sunk_cells)
            sunk.add(cell)
            self.recent_hits = [hit for hit in self.recent_hits if hit not in sunk]
            self._start_hunt()
            logger.info(
                "strategist_target_sunk",
                extra={"x": cell.x, "y": cell.y, "unresolved_hits": len(self.recent_hits)},
            )
            return

        self.recent_hits.append(cell)
        if self.mode is StrategistMode.HUNT or self.origin_hit is None:
            self._start_target(cell)
            return

        origin = self.origin_hit
        delta = (cell.x - origin.x, cell.y - origin.y)
        if self.direction is None:
            if delta in ORTHOGONAL_OFFSETS:
                self.direction = delta
                logger.debug("strategist_direction_set", extra={"dx": delta[0], "dy": delta[1]})
            else:
                self.pending.extend(cell.neighbours())
            return

        dx, dy = self.direction
        on_axis = (dx and cell.y == origin.y) or (dy and cell.x == origin.x)
        if not on_axis:
            self.pending.extend(cell.neighbours())
        elif delta[0] * dx + delta[1] * dy < 0:
            self.direction = (-dx, -dy)
            logger.debug("strategist_direction_reversed", extra={"dx": -dx, "dy": -dy})

    def _start_hunt(self) -> None:
        self.mode = StrategistMode.HUNT
        self.origin_hit = None
        self.direction = None
        self.pending.clear()

    def _start_target(self, origin: Cell) -> None:
        self.mode = StrategistMode.TARGET
        self.origin_hit = origin
        self.direction = None
        self.pending = deque(origin.neighbours())
        logger.info("strategist_target_started", extra={"x": origin.x, "y": origin.y})

    def _reopen(self, board: Board, skip: Cell | None = None) -> bool:
        """Restart targeting from the oldest unresolved hit with an open neighbour."""
        for hit in self.recent_hits:
            if hit == skip:
                continue
            if any(_is_open(board, neighbour) for neighbour in hit.neighbours()):
                self._start_target(hit)
                return True
        return False

    def _directed_candidate(self, board: Board) -> Cell | None:
        if self.direction is None or self.origin_hit is None:
            return None
        hits = set(self.recent_hits)
        dx, dy = self.direction
        for step_x, step_y in ((dx, dy), (-dx, -dy)):
            end = self.origin_hit
            while end.offset(step_x, step_y) in hits:
                end = end.offset(step_x, step_y)
            candidate = end.offset(step_x, step_y)
            if _is_open(board, candidate):
                return candidate
        return None

    def _queued_candidate(self, board: Board) -> Cell | None:
        while self.pending:
            if _is_open(board, self.pending[0]):
                return self.pending[0]
            self.pending.popleft()
        return None

    def _random_unshot(self, board: Board) -> Cell | None:
        candidates = [cell for cell in _row_major(board) if not board.is_shot(cell)]
        if not candidates:
            return None
        return self._rng.choice(candidates)

    def _first_unshot(self, board: Board) -> Cell | None:
        return next((cell for cell in _row_major(board) if not board.is_shot(cell)), None)


def _is_open(board: Board, cell: Cell) -> bool:
    return board.in_bounds(cell) and not board.is_shot(cell)


def _row_major(board: Board) -> Iterable[Cell]:
    for y in range(board.size):
        for x in range(board.size):
            yield Cell(x, y)


def _fmt(cell: Cell | None) -> str:
    return "-" if cell is None else f"{cell.x},{cell.y}"
