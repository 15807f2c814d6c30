"""
Per-game detection errors.

Each error is non-fatal: the detector logs it and moves on to the next
game. The underlying capability exception is kept as ``__cause__``.
"""

from __future__ import annotations

from dispute_monitor.models.game import GameHandle


class DetectorError(Exception):
	"""Base class for errors isolated to a single game."""

	def __init__(self, message: str, game: GameHandle | None = None) -> None:
		super().__init__(message)
		self.game = game


class ContractCreationError(DetectorError):
	"""The loader factory could not bind to the game contract."""


class MetadataFetchError(DetectorError):
	"""The loader failed to read game metadata."""


class OutputFetchError(DetectorError):
	"""The canonical output source failed to return an output root."""

	def __init__(self, message: str, block_number: int,
	             game: GameHandle | None = None) -> None:
		super().__init__(message, game)
		self.block_number = block_number


__all__ = [
    "DetectorError",
    "ContractCreationError",
    "MetadataFetchError",
    "OutputFetchError",
]
