"""
Agreement detector for dispute games.

For each listed game the detector fetches the game's metadata, records
its status, compares its root claim against the trusted rollup node's
output at the same block and classifies the result. Results from all
games in a pass are summed and reported to the metrics sink once.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from dispute_monitor.errors import (
    ContractCreationError,
    DetectorError,
    MetadataFetchError,
    OutputFetchError,
)
from dispute_monitor.models.batch import DetectionBatch
from dispute_monitor.models.game import (
    GameHandle,
    GameMetadata,
    GameStatus,
    to_hash_bytes,
)
from dispute_monitor.models.outcome import classify
from dispute_monitor.models.summary import DetectionSummary
from dispute_monitor.utils.logging import get_logger
from dispute_monitor.utils.protocols import (
    DetectorMetrics,
    MetadataLoaderFactory,
    OutputSource,
)

logger = get_logger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


@dataclass
class _GameResult:
	"""Partial result produced by a single game's worker."""

	status: GameStatus | None = None
	batch: DetectionBatch | None = None
	failed_stage: str | None = None  # metadata|agreement


class Detector:
	"""
	Classifies dispute games against a trusted output source.

	Parameters:
		metrics: Sink receiving status counts and agreement increments.
		factory: Creates a metadata loader per game.
		output_source: Trusted source of canonical output roots.
		max_concurrency: Upper bound on games processed at once.
	"""

	def __init__(
	    self,
	    metrics: DetectorMetrics,
	    factory: MetadataLoaderFactory,
	    output_source: OutputSource,
	    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
	) -> None:
		if max_concurrency <= 0:
			raise ValueError("max_concurrency must be > 0")
		self.metrics = metrics
		self.factory = factory
		self.output_source = output_source
		self.max_concurrency = max_concurrency

	async def detect(
	    self,
	    games: Sequence[GameHandle],
	    timeout: float | None = None,
	) -> DetectionSummary:
		"""
		Run one detection pass over ``games`` and report its metrics.

		Failures are isolated per game: they are logged and the game is
		left out of the affected tallies. When ``timeout`` expires, or the
		pass is cancelled, unfinished games are abandoned and whatever
		was accumulated is still reported.

		Parameters:
			games: Games to examine in this pass.
			timeout: Optional deadline for the whole pass in seconds.

		Returns:
			DetectionSummary with the reported batches.
		"""
		games = list(games)
		sem = asyncio.Semaphore(self.max_concurrency)

		async def run_one(game: GameHandle) -> _GameResult:
			async with sem:
				return await self._process_game(game)

		tasks = [asyncio.create_task(run_one(g)) for g in games]
		summary = DetectionSummary(games_total=len(tasks))
		try:
			if tasks:
				_, pending = await asyncio.wait(tasks, timeout=timeout)
				if pending:
					logger.warning(
					    "detection deadline reached, abandoning %d of %d games",
					    len(pending),
					    len(tasks),
					)
					summary.cancelled = True
		except asyncio.CancelledError:
			summary.cancelled = True
			raise
		finally:
			pending = [t for t in tasks if not t.done()]
			for task in pending:
				task.cancel()
			# abandoned games finish unwinding before anything is reported
			if pending:
				await asyncio.gather(*pending, return_exceptions=True)
			# merge in input order so the result never depends on scheduling
			for game, task in zip(games, tasks):
				if task.cancelled():
					continue
				exc = task.exception()
				if exc is not None:
					logger.error("unexpected error processing game=%s",
					             game.proxy, exc_info=exc)
					summary.unexpected_failures += 1
					continue
				self._merge_result(summary, task.result())
			self._report(summary)
		return summary

	async def _process_game(self, game: GameHandle) -> _GameResult:
		try:
			metadata = await self.fetch_game_metadata(game)
		except DetectorError as exc:
			logger.error("failed to fetch game metadata game=%s: %s",
			             game.proxy, exc, exc_info=exc)
			return _GameResult(failed_stage="metadata")

		# status is recorded even if the agreement check fails below
		result = _GameResult(status=metadata.status)
		try:
			result.batch = await self.check_agreement(
			    game,
			    metadata.l2_block_number,
			    metadata.root_claim,
			    metadata.status,
			)
		except DetectorError as exc:
			logger.error("failed to process game=%s: %s", game.proxy, exc,
			             exc_info=exc)
			result.failed_stage = "agreement"
		return result

	@staticmethod
	def _merge_result(summary: DetectionSummary, result: _GameResult) -> None:
		if result.status is not None:
			summary.status.add(result.status)
		if result.batch is not None:
			summary.detection.merge(result.batch)
		if result.failed_stage == "metadata":
			summary.metadata_failures += 1
		elif result.failed_stage == "agreement":
			summary.agreement_failures += 1

	def _report(self, summary: DetectionSummary) -> None:
		status = summary.status
		self.metrics.record_games_status(status.in_progress,
		                                 status.defender_won,
		                                 status.challenger_won)
		self.record_batch(summary.detection)
		logger.info(
		    "completed updating games count=%d in_progress=%d "
		    "defender_won=%d challenger_won=%d failures=%d cancelled=%s",
		    summary.games_total,
		    status.in_progress,
		    status.defender_won,
		    status.challenger_won,
		    summary.failures,
		    summary.cancelled,
		)

	async def fetch_game_metadata(self, game: GameHandle) -> GameMetadata:
		"""
		Fetch metadata for a single game.

		Parameters:
			game: Game to read.

		Returns:
			The game's metadata snapshot.

		Raises:
			ContractCreationError: The factory could not bind to the game.
			MetadataFetchError: The loader failed to read the metadata.
		"""
		try:
			loader = self.factory.create_contract(game)
		except Exception as exc:
			raise ContractCreationError(
			    f"failed to create contract for game {game.proxy}: {exc}",
			    game) from exc
		try:
			return await loader.get_game_metadata()
		except Exception as exc:
			raise MetadataFetchError(
			    f"failed to fetch metadata for game {game.proxy}: {exc}",
			    game) from exc

	async def check_agreement(
	    self,
	    game: GameHandle,
	    l2_block_number: int,
	    root_claim: bytes,
	    status: GameStatus,
	) -> DetectionBatch:
		"""
		Classify one game against the canonical output at its block.

		Parameters:
			game: Game being classified.
			l2_block_number: L2 block the root claim is for.
			root_claim: The game's claimed output root.
			status: The game's current status.

		Returns:
			A DetectionBatch holding exactly one outcome.

		Raises:
			OutputFetchError: The canonical output could not be fetched.
		"""
		try:
			agree = await self.check_root_agreement(l2_block_number,
			                                        root_claim)
		except OutputFetchError as exc:
			exc.game = game
			raise
		outcome = classify(status, agree)
		if outcome.contradicts_resolution:
			logger.warning(
			    "game resolution contradicts trusted output game=%s "
			    "outcome=%s block=%d root_claim=0x%s",
			    game.proxy,
			    outcome.value,
			    l2_block_number,
			    root_claim.hex(),
			)
		return DetectionBatch.of(outcome)

	async def check_root_agreement(self, l2_block_number: int,
	                               root_claim: bytes) -> bool:
		"""
		Compare a root claim with the canonical output at a block.

		Parameters:
			l2_block_number: Block to fetch the canonical output for.
			root_claim: Claimed 32-byte output root.

		Returns:
			True when both roots are byte-for-byte equal.

		Raises:
			OutputFetchError: The output source failed or returned something
				other than a 32-byte root; the original exception is preserved
				as ``__cause__``.
		"""
		try:
			expected = to_hash_bytes(await self.output_source.output_at_block(
			    l2_block_number))
		except Exception as exc:
			raise OutputFetchError(
			    f"failed to get output at block {l2_block_number}: {exc}",
			    l2_block_number) from exc
		return expected == bytes(root_claim)

	def record_batch(self, batch: DetectionBatch) -> None:
		"""Report each non-zero agreement category to the metrics sink."""
		for category, count in batch.counts().items():
			if count:
				self.metrics.record_game_agreement(category, count)


__all__ = ["Detector", "DEFAULT_MAX_CONCURRENCY"]
