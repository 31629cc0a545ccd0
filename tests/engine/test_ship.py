"""Tests for ship and grid domain logic."""

import pytest

from navalbattle.engine.ship import (
    STANDARD_FLEET,
    Cell,
    Orientation,
    PlacedShip,
    ShipSpec,
    cells_for,
    expand_fleet,
    fleet_from_sizes,
    orientation_of,
)


def test_cells_for_extends_along_orientation() -> None:
    assert cells_for(Cell(2, 3), 3, Orientation.HORIZONTAL) == [Cell(2, 3), Cell(3, 3), Cell(4, 3)]
    assert cells_for(Cell(2, 3), 2, Orientation.VERTICAL) == [Cell(2, 3), Cell(2, 4)]


def test_orientation_from_rotation_quarters() -> None:
    assert Orientation.from_rotation(0) is Orientation.HORIZONTAL
    assert Orientation.from_rotation(90) is Orientation.VERTICAL
    assert Orientation.from_rotation(180) is Orientation.HORIZONTAL
    assert Orientation.from_rotation(270) is Orientation.VERTICAL
    assert Orientation.from_rotation(-90) is Orientation.VERTICAL
    with pytest.raises(ValueError):
        Orientation.from_rotation(45)


def test_orientation_of_detects_straight_runs() -> None:
    assert orientation_of([Cell(0, 0), Cell(0, 1), Cell(0, 2)]) is Orientation.VERTICAL
    assert orientation_of([Cell(4, 4), Cell(5, 4)]) is Orientation.HORIZONTAL
    assert orientation_of([Cell(0, 0), Cell(1, 1)]) is None
    assert orientation_of([Cell(0, 0), Cell(2, 0)]) is None


def test_standard_fleet_composition() -> None:
    sizes = expand_fleet(STANDARD_FLEET)
    assert len(sizes) == 15
    assert sum(sizes) == 35
    assert sizes == sorted(sizes, reverse=True)
    assert [spec.name for spec in STANDARD_FLEET] == [
        "Patrol Boat",
        "Submarine",
        "Cruiser",
        "Battleship",
        "Carrier",
    ]


def test_fleet_from_sizes_round_trips_counts() -> None:
    specs = fleet_from_sizes([5, 1, 1, 3])
    assert [(spec.size, spec.count) for spec in specs] == [(1, 2), (3, 1), (5, 1)]
    assert specs[-1].name == "Carrier"


def test_ship_spec_rejects_bad_sizes() -> None:
    with pytest.raises(ValueError):
        ShipSpec(6, 1)
    with pytest.raises(ValueError):
        ShipSpec(2, -1)


def test_ship_hit_and_sink() -> None:
    ship = PlacedShip(1, tuple(cells_for(Cell(3, 3), 3, Orientation.VERTICAL)), Orientation.VERTICAL)
    for idx, cell in enumerate(ship.cells, start=1):
        assert ship.hit(cell) is True
        assert ship.hits <= set(ship.cells)
        assert ship.is_sunk() is (idx == ship.size)
    assert ship.hit(ship.cells[0]) is False
    assert ship.hit(Cell(0, 0)) is False
