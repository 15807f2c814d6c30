"""
Detection pass summary model.

Defines the value returned by a detection pass: the two batches that
were reported plus bookkeeping about games that could not be classified.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .batch import DetectionBatch, StatusBatch


class DetectionSummary(BaseModel):
	"""
	Aggregate outcome of one detection pass.

	Attributes:
		status: Status tally for games whose metadata was fetched.
		detection: Agreement tally for fully classified games.
		games_total: Number of games supplied to the pass.
		metadata_failures: Games skipped because metadata fetch failed.
		agreement_failures: Games counted by status only because the
			agreement check failed.
		unexpected_failures: Games dropped because their worker raised
			an error outside the detection error hierarchy.
		cancelled: Whether the pass was cut short by its deadline or by
			cancellation.
	"""

	status: StatusBatch = Field(default_factory=StatusBatch)
	detection: DetectionBatch = Field(default_factory=DetectionBatch)
	games_total: int = Field(0, ge=0)
	metadata_failures: int = Field(0, ge=0)
	agreement_failures: int = Field(0, ge=0)
	unexpected_failures: int = Field(0, ge=0)
	cancelled: bool = False

	@property
	def games_processed(self) -> int:
		"""Games whose worker ran to completion, successfully or not."""
		return (self.status.total + self.metadata_failures +
		        self.unexpected_failures)

	@property
	def failures(self) -> int:
		return (self.metadata_failures + self.agreement_failures +
		        self.unexpected_failures)

	@property
	def games_abandoned(self) -> int:
		return self.games_total - self.games_processed


__all__ = ["DetectionSummary"]
