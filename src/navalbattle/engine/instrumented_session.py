"""Game session with a per-game span and game-level metrics."""

from __future__ import annotations

import time

from navalbattle.engine.errors import GameError
from navalbattle.engine.events import Side
from navalbattle.engine.session import GameSession, TurnReport
from navalbattle.engine.ship import Cell
from navalbattle.engine.shots import ShotOutcome, ShotResolution
from navalbattle.telemetry import get_logger, get_tracer, record_game_metric


class InstrumentedGameSession(GameSession):
    """Wraps GameSession with tracing, metrics, and logging."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("navalbattle.session")
        self._tracer = get_tracer("navalbattle.session")
        self._game_span_cm = None
        self._game_span = None
        self._game_start_time: float | None = None
        self._game_id_counter = 0
        self._in_player_turn = False

    def confirm_placement_and_start(self) -> None:
        with self._tracer.start_as_current_span("navalbattle.session.confirm") as span:
            super().confirm_placement_and_start()
            ships = len(self.computer_board.ships)
            span.set_attribute("game.id", self._game_id_counter + 1)
            span.set_attribute("ships", ships)
        # Entered outside the confirm span so it stays current for the turns.
        self._start_game_span()
        record_game_metric("navalbattle_game_started_total", 1, {"ships": ships})
        self._logger.info("Battle %d started with %d ships per side", self._game_id_counter, ships)

    def submit_player_shot(self, cell: Cell) -> TurnReport:
        self._in_player_turn = True
        try:
            report = self._traced_player_turn(cell)
        finally:
            self._in_player_turn = False
        self._finish_if_over()
        return report

    def advance_computer_turn(self) -> ShotResolution | None:
        resolution = super().advance_computer_turn()
        if not self._in_player_turn:
            self._finish_if_over()
        return resolution

    def _traced_player_turn(self, cell: Cell) -> TurnReport:
        with self._tracer.start_as_current_span("navalbattle.session.player_turn") as span:
            span.set_attribute("game.id", self._game_id_counter)
            span.set_attribute("cell.x", cell.x)
            span.set_attribute("cell.y", cell.y)
            try:
                report = super().submit_player_shot(cell)
            except GameError as exc:
                record_game_metric(
                    "navalbattle_rejected_shots_total",
                    1,
                    {"side": Side.PLAYER.value, "reason": type(exc).__name__},
                )
                span.record_exception(exc)
                span.set_attribute("error", True)
                self._logger.warning("Rejected player shot at (%d,%d): %s", cell.x, cell.y, exc)
                raise

            span.set_attribute("shot_outcome", report.player.outcome.name)
            span.set_attribute("computer_shots", len(report.computer_shots))
            self._logger.info(
                "player_turn cell=(%d,%d) outcome=%s computer_shots=%d",
                cell.x,
                cell.y,
                report.player.outcome.name,
                len(report.computer_shots),
            )
            return report

    def _apply(self, shooter: Side, resolution: ShotResolution) -> None:
        super()._apply(shooter, resolution)
        if resolution.outcome is not ShotOutcome.ALREADY_SHOT:
            self._record_shot(shooter, resolution)

    def _finish_if_over(self) -> None:
        if self.state.is_terminal and self._game_span_cm is not None:
            self._finish_game()

    def reset(self) -> None:
        self._close_game_span()
        super().reset()

    def _record_shot(self, side: Side, resolution: ShotResolution) -> None:
        record_game_metric("navalbattle_shots_total", 1, {"side": side.value})
        record_game_metric(
            "navalbattle_shots_by_outcome_total",
            1,
            {"side": side.value, "outcome": resolution.outcome.value},
        )

    def _start_game_span(self) -> None:
        self._close_game_span()
        self._game_start_time = time.perf_counter()
        self._game_id_counter += 1
        self._game_span_cm = self._tracer.start_as_current_span("navalbattle.session.game")
        self._game_span = self._game_span_cm.__enter__()
        self._game_span.set_attribute("game.id", self._game_id_counter)

    def _finish_game(self) -> None:
        duration = (time.perf_counter() - self._game_start_time) if self._game_start_time else 0.0
        total_shots = sum(self.shots_fired.values())
        winner = self.winner.value if self.winner else "unknown"

        record_game_metric("navalbattle_game_completed_total", 1, {"winner": winner})
        record_game_metric("navalbattle_game_duration_seconds", duration, {"winner": winner})

        with self._tracer.start_as_current_span("navalbattle.session.game_complete") as span:
            span.set_attribute("game.id", self._game_id_counter)
            span.set_attribute("winner", winner)
            span.set_attribute("shots", total_shots)
            span.set_attribute("duration_ms", duration * 1000)

        if self._game_span is not None:
            self._game_span.set_attribute("winner", winner)
            self._game_span.set_attribute("shots", total_shots)

        self._logger.info("Game finished. Winner=%s shots=%d duration_s=%.3f", winner, total_shots, duration)
        self._close_game_span()

    def _close_game_span(self) -> None:
        if self._game_span_cm is not None:
            self._game_span_cm.__exit__(None, None, None)
            self._game_span_cm = None
            self._game_span = None
