"""
In-process metrics sink.

Keeps game status gauges and agreement counters in memory so they can
be rendered by the CLI or scraped by an embedding process.
"""

from __future__ import annotations

import threading

from pydantic import BaseModel, Field

from dispute_monitor.models.outcome import AgreementOutcome


class MetricsSnapshot(BaseModel):
	"""Point-in-time copy of the recorded metrics."""

	games_status: dict[str, int] = Field(
	    default_factory=lambda: {
	        "in_progress": 0,
	        "defender_won": 0,
	        "challenger_won": 0,
	    },
	    description="Games per status in the latest pass",
	)
	game_agreement: dict[str, int] = Field(
	    default_factory=lambda: {o.value: 0 for o in AgreementOutcome},
	    description="Cumulative games per agreement category",
	)
	passes: int = Field(0, description="Status reports received")


class InMemoryMetrics:
	"""
	DetectorMetrics implementation backed by a MetricsSnapshot.

	Status counts are gauges replaced on every pass; agreement counts
	accumulate. Each call is applied under a lock, but the two calls of a
	pass are not applied atomically together.
	"""

	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._state = MetricsSnapshot()

	def record_games_status(self, in_progress: int, defender_won: int,
	                        challenger_won: int) -> None:
		with self._lock:
			self._state.games_status = {
			    "in_progress": in_progress,
			    "defender_won": defender_won,
			    "challenger_won": challenger_won,
			}
			self._state.passes += 1

	def record_game_agreement(self, category: str, count: int) -> None:
		if count < 0:
			raise ValueError("count must be >= 0")
		with self._lock:
			current = self._state.game_agreement.get(category, 0)
			self._state.game_agreement[category] = current + count

	def snapshot(self) -> MetricsSnapshot:
		with self._lock:
			return self._state.model_copy(deep=True)


__all__ = ["InMemoryMetrics", "MetricsSnapshot"]
