"""Tests for shot resolution outcomes."""

import pytest

from navalbattle.engine.board import Board
from navalbattle.engine.errors import InvalidCell
from navalbattle.engine.ship import Cell
from navalbattle.engine.shots import ShotOutcome, fire, resolve_shot


def test_miss_on_empty_board() -> None:
    board = Board()
    assert fire(board, Cell(0, 0)) is ShotOutcome.MISS


def test_hit_then_sink() -> None:
    board = Board()
    board.place([Cell(0, 0), Cell(0, 1)])
    board.place([Cell(9, 9)])

    assert fire(board, Cell(0, 0)) is ShotOutcome.HIT
    assert fire(board, Cell(0, 1)) is ShotOutcome.HIT_AND_SUNK


def test_last_ship_destroys_fleet() -> None:
    board = Board()
    ship = board.place([Cell(5, 5)])
    resolution = resolve_shot(board, Cell(5, 5))
    assert resolution.outcome is ShotOutcome.HIT_AND_FLEET_DESTROYED
    assert resolution.ship is ship
    assert resolution.outcome.sank_ship and resolution.outcome.is_hit


def test_already_shot_changes_nothing() -> None:
    board = Board()
    board.place([Cell(3, 3), Cell(4, 3)])
    fire(board, Cell(3, 3))
    fire(board, Cell(0, 0))
    before = dict(board.shots)

    assert fire(board, Cell(3, 3)) is ShotOutcome.ALREADY_SHOT
    assert fire(board, Cell(0, 0)) is ShotOutcome.ALREADY_SHOT
    assert board.shots == before
    assert not ShotOutcome.ALREADY_SHOT.is_hit


def test_out_of_bounds_is_rejected() -> None:
    board = Board()
    with pytest.raises(InvalidCell):
        fire(board, Cell(-1, 4))
    assert board.shots == {}
