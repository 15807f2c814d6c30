"""
Periodic game monitoring loop.

Lists the games created within a rolling time window and hands them to
the detector, once per interval, until asked to stop.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from dispute_monitor.core.detector import Detector
from dispute_monitor.models.summary import DetectionSummary
from dispute_monitor.utils.logging import get_logger
from dispute_monitor.utils.protocols import GameLister

logger = get_logger(__name__)

PassCallback = Callable[[DetectionSummary], None]


class GameMonitor:
	"""
	Drives detection passes on a fixed cadence.

	Parameters:
		detector: Detector used for each pass.
		lister: Source of the games to examine.
		interval: Seconds to wait between passes.
		window: Only games created within this many seconds are listed.
		detect_timeout: Optional deadline passed to each detection pass.
		clock: Returns the current unix time in seconds.
		on_pass: Called with the summary of every completed pass.
	"""

	def __init__(
	    self,
	    detector: Detector,
	    lister: GameLister,
	    interval: float,
	    window: int,
	    detect_timeout: float | None = None,
	    clock: Callable[[], float] = time.time,
	    on_pass: PassCallback | None = None,
	) -> None:
		self.detector = detector
		self.lister = lister
		self.interval = interval
		self.window = window
		self.detect_timeout = detect_timeout
		self.clock = clock
		self.on_pass = on_pass

	def min_game_timestamp(self) -> int:
		"""Earliest creation timestamp still inside the window."""
		return max(int(self.clock()) - self.window, 0)

	async def run_once(self) -> DetectionSummary | None:
		"""
		List games and run one detection pass.

		Returns:
			The pass summary, or None when the games could not be listed.
		"""
		earliest = self.min_game_timestamp()
		try:
			games = await self.lister.list_games(earliest)
		except Exception:
			logger.error("failed to load games earliest=%d", earliest,
			             exc_info=True)
			return None
		logger.debug("loaded %d games earliest=%d", len(games), earliest)
		return await self.detector.detect(games, timeout=self.detect_timeout)

	async def run(self, stop: asyncio.Event | None = None) -> None:
		"""Run passes every ``interval`` seconds until ``stop`` is set."""
		stop = stop or asyncio.Event()
		logger.info("starting monitor interval=%ss window=%ss", self.interval,
		            self.window)
		while not stop.is_set():
			summary = await self.run_once()
			if summary is not None and self.on_pass:
				self.on_pass(summary)
			try:
				await asyncio.wait_for(stop.wait(), timeout=self.interval)
			except asyncio.TimeoutError:
				pass
		logger.info("monitor stopped")


__all__ = ["GameMonitor", "PassCallback"]
