"""Tests for the computer's hunt/target shot selection."""

import random

import pytest

from navalbattle.engine.board import Board
from navalbattle.engine.errors import NoTargetsRemaining
from navalbattle.engine.placement import place_randomly
from navalbattle.engine.ship import STANDARD_FLEET, Cell, Orientation, cells_for
from navalbattle.engine.shots import ShotOutcome, ShotResolution, resolve_shot
from navalbattle.engine.strategist import ComputerStrategist, StrategistMode


def _shoot(strategist: ComputerStrategist, board: Board, cell: Cell) -> ShotResolution:
    resolution = resolve_shot(board, cell)
    sunk = resolution.ship.cells if resolution.ship and resolution.outcome.sank_ship else ()
    strategist.observe(cell, resolution.outcome, sunk)
    return resolution


def _play(strategist: ComputerStrategist, board: Board, shots: int) -> list[Cell]:
    fired = []
    for _ in range(shots):
        cell = strategist.next_shot(board)
        assert not board.is_shot(cell)
        _shoot(strategist, board, cell)
        fired.append(cell)
    return fired


def test_hunt_mode_picks_unshot_cells() -> None:
    board = Board()
    strategist = ComputerStrategist(random.Random(3))
    for x in range(10):
        board.record_shot(Cell(x, 0))
    cell = strategist.next_shot(board)
    assert strategist.mode is StrategistMode.HUNT
    assert cell.y != 0


def test_returns_to_hunt_after_sinking_two_cell_ship() -> None:
    board = Board()
    board.place([Cell(3, 3), Cell(3, 4)])
    board.place([Cell(9, 9)])
    strategist = ComputerStrategist(random.Random(1))

    first = _shoot(strategist, board, Cell(3, 3))
    assert first.outcome is ShotOutcome.HIT
    assert strategist.mode is StrategistMode.TARGET
    assert strategist.origin_hit == Cell(3, 3)

    for _ in range(4):
        cell = strategist.next_shot(board)
        assert not board.is_shot(cell)
        resolution = _shoot(strategist, board, cell)
        if resolution.outcome.sank_ship:
            break
    else:
        pytest.fail("two-cell ship was not sunk from its neighbours")

    assert resolution.outcome is ShotOutcome.HIT_AND_SUNK
    assert strategist.mode is StrategistMode.HUNT
    assert strategist.origin_hit is None
    assert strategist.direction is None
    assert not board.is_shot(strategist.next_shot(board))


def test_direction_is_followed_and_reversed() -> None:
    board = Board()
    board.place(cells_for(Cell(1, 5), 5, Orientation.HORIZONTAL))
    board.place([Cell(9, 9)])
    strategist = ComputerStrategist(random.Random(0))
    _shoot(strategist, board, Cell(3, 5))

    fired = _play(strategist, board, 5)

    assert fired[:4] == [Cell(3, 4), Cell(4, 5), Cell(5, 5), Cell(6, 5)]
    assert strategist.direction == (-1, 0)
    assert fired[4] == Cell(2, 5)
    last = strategist.next_shot(board)
    assert last == Cell(1, 5)
    assert _shoot(strategist, board, last).outcome is ShotOutcome.HIT_AND_SUNK
    assert strategist.mode is StrategistMode.HUNT


def test_board_edge_turns_the_direction_around() -> None:
    board = Board()
    board.place(cells_for(Cell(7, 0), 3, Orientation.HORIZONTAL))
    board.place([Cell(0, 9)])
    strategist = ComputerStrategist(random.Random(0))
    _shoot(strategist, board, Cell(8, 0))

    assert strategist.next_shot(board) == Cell(9, 0)
    _shoot(strategist, board, Cell(9, 0))
    assert strategist.direction == (1, 0)
    assert strategist.next_shot(board) == Cell(7, 0)


def test_exhausted_sequence_falls_back_to_row_major_scan() -> None:
    board = Board()
    board.place([Cell(5, 5), Cell(5, 6)])
    strategist = ComputerStrategist(random.Random(0))
    _shoot(strategist, board, Cell(5, 5))
    for neighbour in Cell(5, 5).neighbours():
        board.record_shot(neighbour)

    cell = strategist.next_shot(board)

    assert cell == Cell(0, 0)
    assert strategist.mode is StrategistMode.HUNT
    assert strategist.recent_hits == []


def test_unresolved_hits_reopen_after_a_sink() -> None:
    board = Board()
    board.place([Cell(2, 1), Cell(2, 2)])
    board.place(cells_for(Cell(2, 3), 3, Orientation.HORIZONTAL))
    strategist = ComputerStrategist(random.Random(0))
    _shoot(strategist, board, Cell(2, 3))

    assert strategist.next_shot(board) == Cell(2, 2)
    _shoot(strategist, board, Cell(2, 2))
    assert strategist.direction == (0, -1)
    assert strategist.next_shot(board) == Cell(2, 1)
    assert _shoot(strategist, board, Cell(2, 1)).outcome is ShotOutcome.HIT_AND_SUNK
    assert strategist.mode is StrategistMode.HUNT
    assert strategist.recent_hits == [Cell(2, 3)]

    assert strategist.next_shot(board) == Cell(3, 3)
    assert strategist.mode is StrategistMode.TARGET
    assert strategist.origin_hit == Cell(2, 3)


def test_full_game_never_repeats_a_cell() -> None:
    board = Board()
    place_randomly(board, STANDARD_FLEET, rng=random.Random(21))
    strategist = ComputerStrategist(random.Random(21))
    fired: set[Cell] = set()
    while not board.all_ships_sunk():
        cell = strategist.next_shot(board)
        assert cell not in fired
        fired.add(cell)
        _shoot(strategist, board, cell)
    assert len(fired) <= 100


def test_no_targets_remaining() -> None:
    board = Board(size=2)
    strategist = ComputerStrategist(random.Random(0))
    for x in range(2):
        for y in range(2):
            board.record_shot(Cell(x, y))
    with pytest.raises(NoTargetsRemaining):
        strategist.next_shot(board)


def test_reset_forgets_leads() -> None:
    board = Board()
    board.place([Cell(4, 4), Cell(4, 5)])
    strategist = ComputerStrategist(random.Random(0))
    _shoot(strategist, board, Cell(4, 4))
    strategist.reset()
    assert strategist.mode is StrategistMode.HUNT
    assert not strategist.pending and not strategist.recent_hits
