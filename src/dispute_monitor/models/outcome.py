"""
Agreement outcome classification.

Maps a game's status and whether the trusted node agrees with its root
claim onto one of five metric categories.
"""

from __future__ import annotations

from enum import Enum

from .game import GameStatus


class AgreementOutcome(str, Enum):
	"""Agreement category of a single game. Values are metric labels."""

	IN_PROGRESS = "in_progress"
	AGREE_DEFENDER_WINS = "agree_defender_wins"
	DISAGREE_DEFENDER_WINS = "disagree_defender_wins"
	AGREE_CHALLENGER_WINS = "agree_challenger_wins"
	DISAGREE_CHALLENGER_WINS = "disagree_challenger_wins"

	@property
	def contradicts_resolution(self) -> bool:
		"""True when the trusted view conflicts with the game's result."""
		return self in (AgreementOutcome.DISAGREE_DEFENDER_WINS,
		                AgreementOutcome.AGREE_CHALLENGER_WINS)


def classify(status: GameStatus, agree: bool) -> AgreementOutcome:
	"""
	Classify a game by its status and root agreement.

	In-progress games carry no agreement signal, so ``agree`` is ignored
	for them.

	Parameters:
		status: Status reported by the game contract.
		agree: Whether the canonical output equals the root claim.

	Returns:
		The matching AgreementOutcome.
	"""
	if status is GameStatus.DEFENDER_WON:
		if agree:
			return AgreementOutcome.AGREE_DEFENDER_WINS
		return AgreementOutcome.DISAGREE_DEFENDER_WINS
	if status is GameStatus.CHALLENGER_WON:
		if agree:
			return AgreementOutcome.AGREE_CHALLENGER_WINS
		return AgreementOutcome.DISAGREE_CHALLENGER_WINS
	return AgreementOutcome.IN_PROGRESS


__all__ = ["AgreementOutcome", "classify"]
