"""Rejection types raised by the naval battle engine.

Every error here is recoverable: the operation that raised it left the game
state untouched and the caller may retry with different input.
"""

from __future__ import annotations


class GameError(Exception):
    """Base class for all engine rejections."""


class InvalidPlacement(GameError, ValueError):
    """Ship cells are out of bounds, overlapping, touching or not allowed now."""


class InvalidCell(GameError, ValueError):
    """A targeted cell lies outside the board."""


class OutOfTurn(GameError, RuntimeError):
    """Operation submitted outside its phase or by the side not on turn."""


class SessionOver(OutOfTurn):
    """The session already has a winner."""


class PlacementExhausted(GameError, RuntimeError):
    """Randomised placement ran out of attempts for a ship."""

    def __init__(self, size: int, attempts: int) -> None:
        super().__init__(f"Could not place a ship of size {size} after {attempts} attempts.")
        self.size = size
        self.attempts = attempts


class NoTargetsRemaining(GameError, RuntimeError):
    """Every cell on the target board has already been shot."""
