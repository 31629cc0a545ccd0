"""Tests for manual and randomised fleet placement."""

import random

import pytest

from navalbattle.engine.board import Board
from navalbattle.engine.errors import InvalidPlacement, PlacementExhausted
from navalbattle.engine.placement import place_manually, place_randomly
from navalbattle.engine.ship import STANDARD_FLEET, Cell, Orientation, ShipSpec


def _touching_pairs(board: Board) -> int:
    pairs = 0
    for ship in board.ships:
        for cell in ship.cells:
            for neighbour in cell.neighbours():
                other = board.ship_at(neighbour)
                if other is not None and other is not ship:
                    pairs += 1
    return pairs


def test_place_manually_allows_touching_ships() -> None:
    board = Board()
    first = place_manually(board, 3, Cell(0, 0), Orientation.HORIZONTAL)
    second = place_manually(board, 2, Cell(0, 1), Orientation.HORIZONTAL)
    assert first.cells == (Cell(0, 0), Cell(1, 0), Cell(2, 0))
    assert second.orientation is Orientation.HORIZONTAL
    assert first.name == "Cruiser"


def test_place_manually_rejects_out_of_bounds_and_overlap() -> None:
    board = Board()
    place_manually(board, 4, Cell(2, 2), Orientation.VERTICAL)
    with pytest.raises(InvalidPlacement):
        place_manually(board, 5, Cell(7, 0), Orientation.HORIZONTAL)
    with pytest.raises(InvalidPlacement):
        place_manually(board, 3, Cell(0, 3), Orientation.HORIZONTAL)
    assert len(board.ships) == 1


def test_random_placement_populates_full_fleet_without_overlap() -> None:
    board = Board()
    ships = place_randomly(board, STANDARD_FLEET, rng=random.Random(123))

    assert len(ships) == 15
    assert sorted(ship.size for ship in ships) == [1] * 5 + [2] * 4 + [3] * 3 + [4] * 2 + [5]
    cells = [cell for ship in ships for cell in ship.cells]
    assert len(cells) == len(set(cells)) == 35
    assert all(board.in_bounds(cell) for cell in cells)


def test_random_placement_goes_largest_first() -> None:
    board = Board()
    ships = place_randomly(board, STANDARD_FLEET, rng=random.Random(7))
    sizes = [ship.size for ship in ships]
    assert sizes == sorted(sizes, reverse=True)


def test_random_placement_prefers_non_touching_ships() -> None:
    board = Board()
    place_randomly(
        board,
        [ShipSpec(5, 1), ShipSpec(3, 1), ShipSpec(2, 1)],
        rng=random.Random(11),
        relaxed_attempts=0,
    )
    assert _touching_pairs(board) == 0


def test_tight_fleet_falls_back_to_relaxed_pass() -> None:
    specs = [ShipSpec(5, 1), ShipSpec(4, 4)]
    successes = 0
    for seed in range(20):
        board = Board()
        try:
            ships = place_randomly(board, specs, rng=random.Random(seed))
        except PlacementExhausted:
            assert board.ships == []
            continue
        successes += 1
        assert len(ships) == 5
        cells = [cell for ship in ships for cell in ship.cells]
        assert len(cells) == len(set(cells)) == 21
    assert successes >= 18


def test_exhaustion_rolls_back_and_reports_size() -> None:
    board = Board(size=3)
    with pytest.raises(PlacementExhausted) as excinfo:
        place_randomly(board, [ShipSpec(3, 4)], rng=random.Random(0))
    assert excinfo.value.size == 3
    assert excinfo.value.attempts == 200
    assert board.ships == []
    assert board.occupied_cells() == frozenset()
