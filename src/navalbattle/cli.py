"""Terminal host for playing against the computer strategist."""

from __future__ import annotations

import argparse
import time
from typing import Callable

from navalbattle.engine.board import CellState
from navalbattle.engine.errors import GameError
from navalbattle.engine.events import GameEvent, GameOver, ShipSunk, ShotFired, Side
from navalbattle.engine.instrumented_session import InstrumentedGameSession
from navalbattle.engine.session import BoardView, GameSession, SessionState
from navalbattle.engine.ship import GRID_DIMENSION, SHIP_NAMES, Cell, Orientation
from navalbattle.engine.shots import ShotOutcome
from navalbattle.settings import GameSettings
from navalbattle.telemetry import configure_console_logging, init_telemetry, shutdown_tracing

COLUMN_LABELS = "ABCDEFGHIJ"

OUTCOME_TEXT = {
    "miss": "miss",
    "hit": "hit",
    "hit_and_sunk": "hit and sunk",
    "hit_and_fleet_destroyed": "hit, fleet destroyed",
}


def parse_cell(text: str) -> Cell:
    """Parse ``A5`` (column letter, row number) or ``"0 4"`` (zero-based x y)."""
    cleaned = text.strip().upper()
    if not cleaned:
        raise ValueError("Empty coordinate.")
    if cleaned[0].isalpha():
        if cleaned[0] not in COLUMN_LABELS:
            raise ValueError("Column must be between A and J.")
        x = COLUMN_LABELS.index(cleaned[0])
        try:
            y = int(cleaned[1:]) - 1
        except ValueError as exc:
            raise ValueError("Row must be a number between 1 and 10.") from exc
    else:
        parts = cleaned.split()
        if len(parts) != 2:
            raise ValueError("Use formats like A5 or '0 4'.")
        x, y = map(int, parts)
    if x not in range(GRID_DIMENSION) or y not in range(GRID_DIMENSION):
        raise ValueError("Coordinates must be within the 10x10 board.")
    return Cell(x, y)


def parse_orientation(text: str) -> Orientation:
    raw = text.strip().upper()
    if raw in {"H", "HOR", "HORIZONTAL"}:
        return Orientation.HORIZONTAL
    if raw in {"V", "VER", "VERTICAL"}:
        return Orientation.VERTICAL
    if raw.lstrip("-").isdigit():
        return Orientation.from_rotation(int(raw))
    raise ValueError("Please enter H, V or a rotation in degrees.")


def label(cell: Cell) -> str:
    return f"{COLUMN_LABELS[cell.x]}{cell.y + 1}"


def format_board(view: BoardView) -> str:
    ship_cells = {cell for ship in view.ships for cell in ship.cells}
    header = "    " + " ".join(f"{letter:>2}" for letter in COLUMN_LABELS[:GRID_DIMENSION])
    rows = [header]
    for y in range(GRID_DIMENSION):
        symbols = []
        for x in range(GRID_DIMENSION):
            cell = Cell(x, y)
            state = view.shots.get(cell, CellState.UNKNOWN)
            if state is CellState.HIT:
                symbol = "X"
            elif state is CellState.MISS:
                symbol = "o"
            else:
                symbol = "S" if cell in ship_cells else "."
            symbols.append(f"{symbol:>2}")
        rows.append(f"{y + 1:>2} |" + " ".join(symbols))
    return "\n".join(rows)


def describe(event: GameEvent) -> str | None:
    if isinstance(event, ShotFired):
        who = "You" if event.shooter is Side.PLAYER else "Computer"
        return f"{who} fired at {label(event.cell)}: {OUTCOME_TEXT[event.outcome.value]}"
    if isinstance(event, ShipSunk):
        whose = "Your" if event.owner is Side.PLAYER else "The enemy's"
        name = event.ship.name or f"size-{event.ship.size} ship"
        return f"{whose} {name.lower()} went down."
    if isinstance(event, GameOver):
        if event.winner is Side.PLAYER:
            return f"Congratulations, you won in {event.player_shots} shots!"
        return "The computer won this time. Better luck next battle!"
    return None


def _print_event(event: GameEvent) -> None:
    message = describe(event)
    if message:
        print(message)


def _prompt_yes(question: str) -> bool:
    while True:
        raw = input(f"{question} [Y/n]: ").strip().lower()
        if raw in {"", "y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        print("Please answer with 'y' or 'n'.")


def _manual_placement(session: GameSession) -> None:
    while session.remaining_to_place():
        print("\nCurrent layout:")
        print(format_board(session.snapshot().player))
        stock = ", ".join(
            f"{SHIP_NAMES.get(size, size)} (size {size}) x{count}"
            for size, count in session.remaining_to_place().items()
        )
        print(f"Still to place: {stock}")
        raw = input("Ship size to place, or 'r' to place the rest randomly: ").strip().lower()
        if raw == "r":
            _deploy(session.request_random_placement)
            return
        try:
            size = int(raw)
            orientation = parse_orientation(input("Orientation [H/V or degrees]: "))
            anchor = parse_cell(input("Starting coordinate (e.g., A1): "))
            session.submit_manual_placement(size, anchor, orientation)
        except (ValueError, GameError) as exc:
            print(f"Cannot place that ship: {exc}")


def _deploy(action: Callable[[], object]) -> None:
    """Run a random deployment step, offering a retry when it cannot fit the fleet."""
    while True:
        try:
            action()
            return
        except GameError as exc:
            print(f"Deployment failed: {exc}")
            if not _prompt_yes("Try again?"):
                raise SystemExit("Goodbye!") from exc


def _prompt_for_shot() -> Cell:
    while True:
        raw = input("Enter target coordinate (e.g., A5) or 'q' to quit: ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            return parse_cell(raw)
        except ValueError as exc:
            print(f"Invalid input: {exc}")


def play_game(settings: GameSettings) -> None:
    print("Welcome to Naval Battle!\n")
    # Computer shots are stepped here so they can be paced.
    paced = settings.model_copy(update={"auto_advance_computer": False})
    session = InstrumentedGameSession(settings=paced)
    session.events.subscribe(_print_event)
    session.start()

    if _prompt_yes("Would you like to place your ships manually?"):
        _manual_placement(session)
    else:
        _deploy(session.request_random_placement)
        print("\nYour ships have been positioned automatically.")
    _deploy(session.confirm_placement_and_start)

    delay = settings.computer_shot_delay_ms / 1000
    while session.state is SessionState.BATTLING:
        snapshot = session.snapshot()
        print("\nYour Board:")
        print(format_board(snapshot.player))
        print("\nEnemy Waters:")
        print(format_board(snapshot.computer))

        cell = _prompt_for_shot()
        try:
            report = session.submit_player_shot(cell)
        except GameError as exc:
            print(f"Invalid shot: {exc}")
            continue
        if report.player.outcome is ShotOutcome.ALREADY_SHOT:
            print("That cell has already been targeted. Choose another.")
            continue

        while session.state is SessionState.BATTLING and session.turn is Side.COMPUTER:
            time.sleep(delay)
            session.advance_computer_turn()


def main() -> None:
    parser = argparse.ArgumentParser(description="Play Naval Battle in the terminal.")
    parser.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for reproducibility."
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=None,
        help="Pause between consecutive computer shots, in milliseconds.",
    )
    args = parser.parse_args()

    configure_console_logging()
    init_telemetry()
    overrides = {}
    if args.seed is not None:
        overrides["rng_seed"] = args.seed
    if args.delay_ms is not None:
        overrides["computer_shot_delay_ms"] = args.delay_ms
    try:
        play_game(GameSettings.from_env(**overrides))
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    main()
