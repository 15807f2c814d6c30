"""
Per-pass aggregation records.

StatusBatch tallies fetched game statuses; DetectionBatch tallies
agreement outcomes. DetectionBatch merges are commutative so partial
batches from concurrent workers can be summed in any order.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .game import GameStatus
from .outcome import AgreementOutcome


class StatusBatch(BaseModel):
	"""Count of games per lifecycle status."""

	in_progress: int = Field(0, ge=0)
	defender_won: int = Field(0, ge=0)
	challenger_won: int = Field(0, ge=0)

	@property
	def total(self) -> int:
		return self.in_progress + self.defender_won + self.challenger_won

	def add(self, status: GameStatus) -> None:
		"""Count one game with the given status."""
		if status is GameStatus.DEFENDER_WON:
			self.defender_won += 1
		elif status is GameStatus.CHALLENGER_WON:
			self.challenger_won += 1
		else:
			self.in_progress += 1


class DetectionBatch(BaseModel):
	"""
	Count of games per agreement outcome.

	Field names match AgreementOutcome values, which are also the metric
	category labels.
	"""

	in_progress: int = Field(0, ge=0)
	agree_defender_wins: int = Field(0, ge=0)
	disagree_defender_wins: int = Field(0, ge=0)
	agree_challenger_wins: int = Field(0, ge=0)
	disagree_challenger_wins: int = Field(0, ge=0)

	@classmethod
	def of(cls, outcome: AgreementOutcome) -> DetectionBatch:
		"""Build a batch holding a single outcome."""
		batch = cls()
		batch.add(outcome)
		return batch

	@property
	def total(self) -> int:
		return sum(self.counts().values())

	def add(self, outcome: AgreementOutcome) -> None:
		"""Increment the counter for one outcome."""
		name = AgreementOutcome(outcome).value
		setattr(self, name, getattr(self, name) + 1)

	def merge(self, other: DetectionBatch) -> None:
		"""Add every counter of ``other`` into this batch."""
		for outcome in AgreementOutcome:
			name = outcome.value
			setattr(self, name, getattr(self, name) + getattr(other, name))

	def counts(self) -> dict[str, int]:
		"""Return category label to count, in AgreementOutcome order."""
		return {
		    outcome.value: getattr(self, outcome.value)
		    for outcome in AgreementOutcome
		}


__all__ = ["StatusBatch", "DetectionBatch"]
