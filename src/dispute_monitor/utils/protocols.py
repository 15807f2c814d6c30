"""
Protocol definitions for dependency injection.

Defines the capabilities the detector and monitor consume. Production
integrations and test doubles satisfy these structurally.
"""

from __future__ import annotations

from typing import Protocol

from dispute_monitor.models.game import GameHandle, GameMetadata


class MetadataLoader(Protocol):
	"""Reads metadata from one bound dispute game contract."""

	async def get_game_metadata(self) -> GameMetadata:
		"""Return the game's L2 block number, root claim and status."""
		...


class MetadataLoaderFactory(Protocol):
	"""Binds a MetadataLoader to a listed game."""

	def create_contract(self, game: GameHandle) -> MetadataLoader:
		"""Create a loader for the game's contract."""
		...


class OutputSource(Protocol):
	"""Trusted source of canonical output roots."""

	async def output_at_block(self, block_number: int) -> bytes:
		"""Return the 32-byte output root at the given L2 block."""
		...


class DetectorMetrics(Protocol):
	"""Sink for detection pass metrics."""

	def record_games_status(self, in_progress: int, defender_won: int,
	                        challenger_won: int) -> None:
		"""Record absolute per-status game counts for a pass."""
		...

	def record_game_agreement(self, category: str, count: int) -> None:
		"""Increment the counter for an agreement category."""
		...


class GameLister(Protocol):
	"""Lists dispute games that should be monitored."""

	async def list_games(self, earliest_timestamp: int) -> list[GameHandle]:
		"""Return games created at or after ``earliest_timestamp``."""
		...


__all__ = [
    "MetadataLoader",
    "MetadataLoaderFactory",
    "OutputSource",
    "DetectorMetrics",
    "GameLister",
]
