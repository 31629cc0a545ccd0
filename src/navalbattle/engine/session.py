"""Human-vs-computer session: phases, turn order and outcome events."""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from navalbattle.settings import GameSettings
from navalbattle.telemetry import get_meter, get_tracer

from .board import Board, CellState
from .errors import InvalidPlacement, OutOfTurn, PlacementExhausted, SessionOver
from .events import (
    EventBus,
    FleetDestroyed,
    GameOver,
    ShipPlaced,
    ShipSummary,
    ShipSunk,
    ShotFired,
    Side,
)
from .placement import place_manually, place_randomly
from .ship import (
    SHIP_NAMES,
    STANDARD_FLEET,
    Cell,
    Orientation,
    PlacedShip,
    ShipSpec,
    expand_fleet,
    fleet_from_sizes,
)
from .shots import ShotOutcome, ShotResolution, resolve_shot
from .strategist import ComputerStrategist

logger = logging.getLogger(__name__)
tracer = get_tracer("navalbattle.engine.session")
meter = get_meter("navalbattle.engine.session")

SHOT_COUNTER = meter.create_counter(
    "navalbattle_session_shots",
    unit="1",
    description="Shots resolved by GameSession",
)


class SessionState(Enum):
    """High-level lifecycle of a session."""

    SETUP = "setup"
    PLACING = "placing"
    BATTLING = "battling"
    PLAYER_WON = "player_won"
    COMPUTER_WON = "computer_won"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.PLAYER_WON, SessionState.COMPUTER_WON)


@dataclass(frozen=True)
class BoardView:
    """What the player may see of one board."""

    ships: tuple[ShipSummary, ...]
    shots: dict[Cell, CellState]
    remaining_by_size: dict[int, int]
    destroyed_by_size: dict[int, int]


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable, player-facing view of the session."""

    state: SessionState
    turn: Side
    shots_fired: dict[Side, int]
    to_place: dict[int, int]
    player: BoardView
    computer: BoardView


@dataclass(frozen=True)
class TurnReport:
    """The player's shot and any computer shots it triggered."""

    player: ShotResolution
    computer_shots: tuple[ShotResolution, ...]
    state: SessionState
    turn: Side


class GameSession:
    """Owns both boards and the computer strategist, and sequences the game.

    Only the methods below mutate a session. Each rejection raises a
    :class:`~navalbattle.engine.errors.GameError` subclass and leaves the
    session exactly as it was.
    """

    def __init__(
        self,
        fleet: Iterable[ShipSpec] = STANDARD_FLEET,
        settings: GameSettings | None = None,
        rng_seed: int | None = None,
    ) -> None:
        self.settings = settings or GameSettings()
        seed = rng_seed if rng_seed is not None else self.settings.rng_seed
        self._rng = random.Random(seed)
        self.fleet: tuple[ShipSpec, ...] = tuple(fleet)
        self.events = EventBus()
        self.player_board = Board(owner=Side.PLAYER.value)
        self.computer_board = Board(owner=Side.COMPUTER.value)
        self.strategist = ComputerStrategist(self._rng)
        self.state = SessionState.SETUP
        self.turn = Side.PLAYER
        self.winner: Side | None = None
        self.shots_fired: dict[Side, int] = {Side.PLAYER: 0, Side.COMPUTER: 0}
        self._to_place: Counter[int] = Counter()

    @property
    def boards(self) -> dict[Side, Board]:
        return {Side.PLAYER: self.player_board, Side.COMPUTER: self.computer_board}

    def start(self) -> None:
        """Enter the placement phase with two empty boards."""
        if self.state is not SessionState.SETUP:
            self._reject("start", "session_already_started")
        self.player_board.clear()
        self.computer_board.clear()
        self._to_place = Counter(expand_fleet(self.fleet))
        self.state = SessionState.PLACING
        logger.info("session_started", extra={"ships_to_place": sum(self._to_place.values())})

    def reset(self) -> None:
        """Discard both boards and every lead and return to setup."""
        self.player_board.clear()
        self.computer_board.clear()
        self.strategist.reset()
        self.state = SessionState.SETUP
        self.turn = Side.PLAYER
        self.winner = None
        self.shots_fired = {Side.PLAYER: 0, Side.COMPUTER: 0}
        self._to_place = Counter()
        logger.info("session_reset")

    def remaining_to_place(self) -> dict[int, int]:
        return {size: count for size, count in sorted(self._to_place.items()) if count > 0}

    def submit_manual_placement(
        self, size: int, anchor: Cell, orientation: Orientation
    ) -> PlacedShip:
        """Place one of the player's ships by hand."""
        with tracer.start_as_current_span("session.manual_placement") as span:
            span.set_attribute("ship.size", size)
            self._require_state(SessionState.PLACING, "manual_placement")
            if self._to_place[size] <= 0:
                logger.warning("manual_placement_size_unavailable", extra={"size": size})
                raise InvalidPlacement(f"No ship of size {size} is left to place.")
            ship = place_manually(self.player_board, size, anchor, orientation)
            self._to_place[size] -= 1
            self.events.publish(ShipPlaced(Side.PLAYER, ShipSummary.of(ship)))
            return ship

    def request_random_placement(self) -> list[PlacedShip]:
        """Place every ship the player has not placed yet at random."""
        with tracer.start_as_current_span("session.random_placement") as span:
            self._require_state(SessionState.PLACING, "random_placement")
            remaining = [
                ShipSpec(size, count, SHIP_NAMES.get(size, ""))
                for size, count in self.remaining_to_place().items()
            ]
            if not remaining:
                return []
            ships = self._place_with_retries(self.player_board, remaining)
            self._to_place = Counter()
            span.set_attribute("ships.placed", len(ships))
            for ship in ships:
                self.events.publish(ShipPlaced(Side.PLAYER, ShipSummary.of(ship)))
            return ships

    def confirm_placement_and_start(self) -> None:
        """Lock the player's fleet, deploy the computer's and start the battle."""
        with tracer.start_as_current_span("session.confirm_placement"):
            self._require_state(SessionState.PLACING, "confirm_placement")
            missing = self.remaining_to_place()
            if missing:
                logger.warning(
                    "confirm_rejected_fleet_incomplete",
                    extra={"missing": sum(missing.values())},
                )
                raise InvalidPlacement(
                    f"{sum(missing.values())} ship(s) still need to be placed."
                )

            self.computer_board.clear()
            specs = fleet_from_sizes(ship.size for ship in self.player_board.ships)
            self._place_with_retries(self.computer_board, specs)
            self.player_board.lock()
            self.computer_board.lock()
            self.strategist.reset()
            self.state = SessionState.BATTLING
            self.turn = Side.PLAYER
            self.winner = None
            logger.info(
                "battle_started",
                extra={
                    "player_ships": len(self.player_board.ships),
                    "computer_ships": len(self.computer_board.ships),
                },
            )

    def submit_player_shot(self, cell: Cell) -> TurnReport:
        """Fire at the computer's board; a miss hands the turn to the computer."""
        with tracer.start_as_current_span("session.player_shot") as span:
            span.set_attribute("x", cell.x)
            span.set_attribute("y", cell.y)
            self._require_turn(Side.PLAYER, "player_shot")
            resolution = resolve_shot(self.computer_board, cell)
            self._apply(Side.PLAYER, resolution)
            span.set_attribute("outcome", resolution.outcome.value)

            computer_shots: tuple[ShotResolution, ...] = ()
            if self.settings.auto_advance_computer:
                computer_shots = tuple(self.run_computer_turn())
            return TurnReport(resolution, computer_shots, self.state, self.turn)

    def advance_computer_turn(self) -> ShotResolution | None:
        """Take one computer shot; returns None while it is the player's turn."""
        with tracer.start_as_current_span("session.computer_shot") as span:
            if self.state is SessionState.BATTLING and self.turn is Side.PLAYER:
                return None
            self._require_turn(Side.COMPUTER, "computer_shot")
            cell = self.strategist.next_shot(self.player_board)
            resolution = resolve_shot(self.player_board, cell)
            sunk_cells = (
                resolution.ship.cells
                if resolution.ship is not None and resolution.outcome.sank_ship
                else ()
            )
            self.strategist.observe(cell, resolution.outcome, sunk_cells)
            self._apply(Side.COMPUTER, resolution)
            span.set_attribute("outcome", resolution.outcome.value)
            return resolution

    def run_computer_turn(self) -> list[ShotResolution]:
        """Let the computer shoot until it misses or the player's fleet is gone."""
        shots: list[ShotResolution] = []
        while self.state is SessionState.BATTLING and self.turn is Side.COMPUTER:
            resolution = self.advance_computer_turn()
            if resolution is None:
                break
            shots.append(resolution)
        return shots

    def snapshot(self) -> SessionSnapshot:
        """Return a view that never reveals the computer's afloat ships."""
        return SessionSnapshot(
            state=self.state,
            turn=self.turn,
            shots_fired=dict(self.shots_fired),
            to_place=self.remaining_to_place(),
            player=_board_view(self.player_board, reveal_afloat=True),
            computer=_board_view(self.computer_board, reveal_afloat=False),
        )

    def _apply(self, shooter: Side, resolution: ShotResolution) -> None:
        outcome = resolution.outcome
        if outcome is ShotOutcome.ALREADY_SHOT:
            logger.warning(
                "shot_rejected_already_shot",
                extra={"shooter": shooter.value, "x": resolution.cell.x, "y": resolution.cell.y},
            )
            return

        defender = shooter.opponent()
        self.shots_fired[shooter] += 1
        SHOT_COUNTER.add(1, attributes={"shooter": shooter.value, "outcome": outcome.value})
        logger.info(
            "shot_resolved",
            extra={
                "shooter": shooter.value,
                "x": resolution.cell.x,
                "y": resolution.cell.y,
                "outcome": outcome.value,
            },
        )
        self.events.publish(ShotFired(shooter, resolution.cell, outcome))
        if outcome.sank_ship and resolution.ship is not None:
            self.events.publish(
                ShipSunk(defender, ShipSummary.of(resolution.ship), resolution.cell)
            )

        if outcome is ShotOutcome.MISS:
            self.turn = defender
        elif outcome is ShotOutcome.HIT_AND_FLEET_DESTROYED:
            self.winner = shooter
            self.state = (
                SessionState.PLAYER_WON if shooter is Side.PLAYER else SessionState.COMPUTER_WON
            )
            logger.info(
                "game_finished",
                extra={
                    "winner": shooter.value,
                    "player_shots": self.shots_fired[Side.PLAYER],
                    "computer_shots": self.shots_fired[Side.COMPUTER],
                },
            )
            self.events.publish(FleetDestroyed(defender))
            self.events.publish(
                GameOver(
                    shooter, self.shots_fired[Side.PLAYER], self.shots_fired[Side.COMPUTER]
                )
            )

    def _place_with_retries(self, board: Board, specs: Sequence[ShipSpec]) -> list[PlacedShip]:
        attempt = 1
        while True:
            try:
                return place_randomly(
                    board,
                    specs,
                    self._rng,
                    strict_attempts=self.settings.strict_attempts,
                    relaxed_attempts=self.settings.relaxed_attempts,
                )
            except PlacementExhausted as exc:
                logger.warning(
                    "random_fleet_retry",
                    extra={"owner": board.owner, "attempt": attempt, "size": exc.size},
                )
                if attempt >= self.settings.placement_retries:
                    raise
                attempt += 1

    def _require_state(self, expected: SessionState, operation: str) -> None:
        if self.state.is_terminal:
            self._reject(operation, "session_over")
        if self.state is not expected:
            self._reject(operation, f"state_{self.state.value}")

    def _require_turn(self, side: Side, operation: str) -> None:
        self._require_state(SessionState.BATTLING, operation)
        if self.turn is not side:
            self._reject(operation, f"turn_{self.turn.value}")

    def _reject(self, operation: str, reason: str) -> None:
        logger.error(
            "operation_rejected",
            extra={"operation": operation, "reason": reason, "state": self.state.value},
        )
        if reason == "session_over":
            raise SessionOver(f"The game is over; {operation} is no longer accepted.")
        raise OutOfTurn(f"Cannot {operation.replace('_', ' ')} now ({reason}).")


def _board_view(board: Board, reveal_afloat: bool) -> BoardView:
    remaining: Counter[int] = Counter()
    destroyed: Counter[int] = Counter()
    visible: list[ShipSummary] = []
    for ship in board.ships:
        if ship.is_sunk():
            destroyed[ship.size] += 1
        else:
            remaining[ship.size] += 1
        if reveal_afloat or ship.is_sunk():
            visible.append(ShipSummary.of(ship))
    return BoardView(
        ships=tuple(visible),
        shots=dict(board.shots),
        remaining_by_size=dict(sorted(remaining.items())),
        destroyed_by_size=dict(sorted(destroyed.items())),
    )
