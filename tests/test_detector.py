import asyncio
import random

import pytest

from dispute_monitor.core.detector import Detector
from dispute_monitor.errors import (
    ContractCreationError,
    MetadataFetchError,
    OutputFetchError,
)
from dispute_monitor.models.batch import DetectionBatch
from dispute_monitor.models.game import GameHandle, GameMetadata, GameStatus

MOCK_ROOT_CLAIM = (0x10).to_bytes(32, "big")
ZERO_HASH = bytes(32)


def make_game(i: int = 0) -> GameHandle:
	return GameHandle(index=i, proxy="0x" + f"{i + 1:040x}")


class DummyOutputSource:

	def __init__(self, root: bytes = MOCK_ROOT_CLAIM, err=None):
		self.root = root
		self.err = err
		self.block_numbers = []

	async def output_at_block(self, block_number):
		self.block_numbers.append(block_number)
		if self.err:
			raise self.err
		return self.root


class DummyLoader:

	def __init__(self, status=GameStatus.IN_PROGRESS, root_claim=ZERO_HASH,
	             err=None, block_number=0):
		self.status = status
		self.root_claim = root_claim
		self.err = err
		self.block_number = block_number
		self.calls = 0

	async def get_game_metadata(self):
		self.calls += 1
		if self.err:
			raise self.err
		return GameMetadata(
		    l2_block_number=self.block_number,
		    root_claim=self.root_claim,
		    status=self.status,
		)


class BlockingLoader:
	"""Loader that never returns until cancelled."""

	def __init__(self):
		self.started = asyncio.Event()
		self.cancelled = False

	async def get_game_metadata(self):
		self.started.set()
		try:
			await asyncio.Event().wait()
		except asyncio.CancelledError:
			self.cancelled = True
			raise


class DummyFactory:

	def __init__(self, loader=None, err=None):
		self.loader = loader or DummyLoader()
		self.err = err
		self.by_proxy = {}
		self.fail_proxies = set()
		self.calls = 0

	def create_contract(self, game):
		self.calls += 1
		if self.err or game.proxy in self.fail_proxies:
			raise self.err or RuntimeError("boom")
		return self.by_proxy.get(game.proxy, self.loader)


class DummyMetrics:

	def __init__(self):
		self.in_progress = 0
		self.defender_won = 0
		self.challenger_won = 0
		self.status_calls = 0
		self.game_agreement = {}

	def record_games_status(self, in_progress, defender_won, challenger_won):
		self.status_calls += 1
		self.in_progress = in_progress
		self.defender_won = defender_won
		self.challenger_won = challenger_won

	def record_game_agreement(self, category, count):
		self.game_agreement[category] = self.game_agreement.get(category,
		                                                        0) + count

	def assert_status(self, in_progress, defender_won, challenger_won):
		assert (self.in_progress, self.defender_won,
		        self.challenger_won) == (in_progress, defender_won,
		                                 challenger_won)

	def assert_agreement(self, expected):
		nonzero = {k: v for k, v in self.game_agreement.items() if v}
		assert nonzero == expected


def setup_detector(max_concurrency: int = 8):
	metrics = DummyMetrics()
	factory = DummyFactory()
	source = DummyOutputSource()
	detector = Detector(metrics, factory, source,
	                    max_concurrency=max_concurrency)
	return detector, metrics, factory, source


class TestDetect:

	@pytest.mark.asyncio
	async def test_no_games(self):
		detector, metrics, _, _ = setup_detector()
		summary = await detector.detect([])
		metrics.assert_status(0, 0, 0)
		metrics.assert_agreement({})
		assert metrics.status_calls == 1
		assert summary.games_total == 0

	@pytest.mark.asyncio
	async def test_metadata_fetch_fails(self):
		detector, metrics, factory, _ = setup_detector()
		factory.err = RuntimeError("boom")
		summary = await detector.detect([make_game()])
		metrics.assert_status(0, 0, 0)
		metrics.assert_agreement({})
		assert summary.metadata_failures == 1

	@pytest.mark.asyncio
	async def test_loader_fails_for_every_game(self):
		detector, metrics, factory, _ = setup_detector()
		factory.loader = DummyLoader(err=RuntimeError("rpc down"))
		summary = await detector.detect([make_game(i) for i in range(3)])
		metrics.assert_status(0, 0, 0)
		metrics.assert_agreement({})
		assert summary.metadata_failures == 3

	@pytest.mark.asyncio
	async def test_check_agreement_fails_still_records_status(self):
		detector, metrics, factory, source = setup_detector()
		source.err = RuntimeError("boom")
		factory.loader = DummyLoader(status=GameStatus.IN_PROGRESS)
		summary = await detector.detect([make_game()])
		metrics.assert_status(1, 0, 0)
		metrics.assert_agreement({})
		assert summary.agreement_failures == 1
		assert summary.detection.total == 0

	@pytest.mark.asyncio
	async def test_single_game(self):
		detector, metrics, factory, _ = setup_detector()
		factory.loader = DummyLoader(status=GameStatus.IN_PROGRESS)
		await detector.detect([make_game()])
		metrics.assert_status(1, 0, 0)
		metrics.assert_agreement({"in_progress": 1})

	@pytest.mark.asyncio
	async def test_multiple_games(self):
		detector, metrics, factory, _ = setup_detector()
		factory.loader = DummyLoader(status=GameStatus.IN_PROGRESS)
		await detector.detect([make_game(i) for i in range(3)])
		metrics.assert_status(3, 0, 0)
		metrics.assert_agreement({"in_progress": 3})

	@pytest.mark.asyncio
	async def test_failing_game_does_not_suppress_siblings(self):
		detector, metrics, factory, _ = setup_detector()
		games = [make_game(i) for i in range(3)]
		factory.fail_proxies.add(games[1].proxy)
		factory.by_proxy[games[0].proxy] = DummyLoader(
		    status=GameStatus.DEFENDER_WON, root_claim=MOCK_ROOT_CLAIM)
		factory.by_proxy[games[2].proxy] = DummyLoader(
		    status=GameStatus.CHALLENGER_WON, root_claim=ZERO_HASH)
		summary = await detector.detect(games)
		metrics.assert_status(0, 1, 1)
		metrics.assert_agreement({
		    "agree_defender_wins": 1,
		    "disagree_challenger_wins": 1,
		})
		assert summary.metadata_failures == 1

	@pytest.mark.asyncio
	async def test_mixed_outcomes(self):
		detector, metrics, factory, _ = setup_detector()
		loaders = [
		    DummyLoader(status=GameStatus.IN_PROGRESS),
		    DummyLoader(status=GameStatus.DEFENDER_WON,
		                root_claim=MOCK_ROOT_CLAIM),
		    DummyLoader(status=GameStatus.DEFENDER_WON),
		    DummyLoader(status=GameStatus.CHALLENGER_WON,
		                root_claim=MOCK_ROOT_CLAIM),
		    DummyLoader(status=GameStatus.CHALLENGER_WON),
		]
		games = [make_game(i) for i in range(len(loaders))]
		for game, loader in zip(games, loaders):
			factory.by_proxy[game.proxy] = loader
		summary = await detector.detect(games)
		metrics.assert_status(1, 2, 2)
		metrics.assert_agreement({
		    "in_progress": 1,
		    "agree_defender_wins": 1,
		    "disagree_defender_wins": 1,
		    "agree_challenger_wins": 1,
		    "disagree_challenger_wins": 1,
		})
		assert summary.detection.total == summary.status.total == 5

	@pytest.mark.asyncio
	async def test_counts_do_not_depend_on_order(self):
		statuses = [
		    GameStatus.IN_PROGRESS, GameStatus.DEFENDER_WON,
		    GameStatus.CHALLENGER_WON
		]
		games = [make_game(i) for i in range(12)]
		results = []
		for seed in (1, 2, 3):
			detector, _, factory, _ = setup_detector(max_concurrency=3)
			for i, game in enumerate(games):
				root = MOCK_ROOT_CLAIM if i % 2 else ZERO_HASH
				factory.by_proxy[game.proxy] = DummyLoader(
				    status=statuses[i % 3], root_claim=root)
			shuffled = list(games)
			random.Random(seed).shuffle(shuffled)
			summary = await detector.detect(shuffled)
			results.append((summary.status, summary.detection))
		assert results[0] == results[1] == results[2]

	@pytest.mark.asyncio
	async def test_respects_max_concurrency(self):
		active = 0
		peak = 0

		class SlowLoader(DummyLoader):

			async def get_game_metadata(self):
				nonlocal active, peak
				active += 1
				peak = max(peak, active)
				await asyncio.sleep(0.01)
				active -= 1
				return await super().get_game_metadata()

		detector, metrics, factory, _ = setup_detector(max_concurrency=2)
		factory.loader = SlowLoader()
		await detector.detect([make_game(i) for i in range(6)])
		assert peak == 2
		metrics.assert_status(6, 0, 0)

	@pytest.mark.asyncio
	async def test_deadline_reports_partial_batch(self):
		detector, metrics, factory, _ = setup_detector()
		games = [make_game(0), make_game(1)]
		blocking = BlockingLoader()
		factory.by_proxy[games[1].proxy] = blocking
		summary = await detector.detect(games, timeout=0.05)
		assert summary.cancelled is True
		assert summary.games_abandoned == 1
		assert blocking.cancelled is True
		metrics.assert_status(1, 0, 0)
		metrics.assert_agreement({"in_progress": 1})

	@pytest.mark.asyncio
	async def test_cancellation_reports_and_propagates(self):
		detector, metrics, factory, _ = setup_detector()
		games = [make_game(0), make_game(1)]
		blocking = BlockingLoader()
		factory.by_proxy[games[1].proxy] = blocking
		task = asyncio.create_task(detector.detect(games))
		await blocking.started.wait()
		task.cancel()
		with pytest.raises(asyncio.CancelledError):
			await task
		assert metrics.status_calls == 1
		metrics.assert_status(1, 0, 0)
		assert blocking.cancelled is True

	@pytest.mark.asyncio
	async def test_abandoned_games_unwind_before_report(self):
		detector, metrics, factory, _ = setup_detector()
		games = [make_game(0), make_game(1)]
		blocking = BlockingLoader()
		factory.by_proxy[games[1].proxy] = blocking
		seen_at_report = []
		record = metrics.record_games_status

		def record_games_status(*counts):
			seen_at_report.append(blocking.cancelled)
			record(*counts)

		metrics.record_games_status = record_games_status
		await detector.detect(games, timeout=0.05)
		assert seen_at_report == [True]

	@pytest.mark.asyncio
	async def test_missing_canonical_root_is_an_agreement_failure(self):
		detector, metrics, factory, source = setup_detector()
		source.root = None
		factory.loader = DummyLoader(status=GameStatus.DEFENDER_WON,
		                             root_claim=MOCK_ROOT_CLAIM)
		summary = await detector.detect([make_game()])
		metrics.assert_status(0, 1, 0)
		metrics.assert_agreement({})
		assert summary.agreement_failures == 1
		assert summary.games_abandoned == 0

	@pytest.mark.asyncio
	async def test_short_canonical_root_never_counts_as_disagreement(self):
		detector, metrics, factory, source = setup_detector()
		source.root = MOCK_ROOT_CLAIM[1:]
		factory.loader = DummyLoader(status=GameStatus.DEFENDER_WON,
		                             root_claim=MOCK_ROOT_CLAIM)
		summary = await detector.detect([make_game()])
		metrics.assert_status(0, 1, 0)
		metrics.assert_agreement({})
		assert summary.agreement_failures == 1

	@pytest.mark.asyncio
	async def test_unexpected_worker_error_is_not_abandoned(self):
		detector, metrics, factory, _ = setup_detector()
		games = [make_game(i) for i in range(3)]
		factory.loader = DummyLoader(status=GameStatus.IN_PROGRESS)
		process_game = detector._process_game

		async def flaky_process_game(game):
			if game.proxy == games[1].proxy:
				raise RuntimeError("worker bug")
			return await process_game(game)

		detector._process_game = flaky_process_game
		summary = await detector.detect(games)
		assert summary.unexpected_failures == 1
		assert summary.failures == 1
		assert summary.games_abandoned == 0
		assert summary.cancelled is False
		metrics.assert_status(2, 0, 0)
		metrics.assert_agreement({"in_progress": 2})

	@pytest.mark.asyncio
	async def test_each_pass_starts_fresh(self):
		detector, metrics, factory, _ = setup_detector()
		await detector.detect([make_game(i) for i in range(2)])
		summary = await detector.detect([make_game(0)])
		metrics.assert_status(1, 0, 0)
		assert summary.detection.in_progress == 1
		# the sink accumulates agreement increments across passes
		assert metrics.game_agreement["in_progress"] == 3


@pytest.mark.parametrize(
    "batch, expected",
    [
        (DetectionBatch(), {}),
        (DetectionBatch(in_progress=1), {"in_progress": 1}),
        (DetectionBatch(agree_defender_wins=1), {"agree_defender_wins": 1}),
        (DetectionBatch(disagree_defender_wins=1), {
            "disagree_defender_wins": 1
        }),
        (DetectionBatch(agree_challenger_wins=1), {
            "agree_challenger_wins": 1
        }),
        (DetectionBatch(disagree_challenger_wins=1), {
            "disagree_challenger_wins": 1
        }),
    ],
    ids=[
        "no_games", "in_progress", "agree_defender_wins",
        "disagree_defender_wins", "agree_challenger_wins",
        "disagree_challenger_wins"
    ],
)
def test_record_batch(batch, expected):
	detector, metrics, _, _ = setup_detector()
	detector.record_batch(batch)
	assert metrics.game_agreement == expected


class TestFetchGameMetadata:

	@pytest.mark.asyncio
	async def test_create_contract_fails(self):
		detector, _, factory, _ = setup_detector()
		factory.err = RuntimeError("boom")
		game = make_game()
		with pytest.raises(ContractCreationError) as exc_info:
			await detector.fetch_game_metadata(game)
		assert exc_info.value.__cause__ is factory.err
		assert exc_info.value.game == game

	@pytest.mark.asyncio
	async def test_get_game_metadata_fails(self):
		detector, _, factory, _ = setup_detector()
		err = RuntimeError("boom")
		factory.loader = DummyLoader(err=err)
		with pytest.raises(MetadataFetchError) as exc_info:
			await detector.fetch_game_metadata(make_game())
		assert exc_info.value.__cause__ is err

	@pytest.mark.asyncio
	async def test_success(self):
		detector, _, factory, _ = setup_detector()
		factory.loader = DummyLoader(status=GameStatus.IN_PROGRESS,
		                             block_number=42)
		metadata = await detector.fetch_game_metadata(make_game())
		assert metadata.status is GameStatus.IN_PROGRESS
		assert metadata.l2_block_number == 42
		assert factory.loader.calls == 1


@pytest.mark.asyncio
async def test_check_agreement_fails():
	detector, _, _, source = setup_detector()
	source.err = RuntimeError("boom")
	game = make_game()
	with pytest.raises(OutputFetchError) as exc_info:
		await detector.check_agreement(game, 7, ZERO_HASH,
		                               GameStatus.IN_PROGRESS)
	assert exc_info.value.__cause__ is source.err
	assert exc_info.value.block_number == 7
	assert exc_info.value.game == game


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "root_claim, status, field",
    [
        (ZERO_HASH, GameStatus.IN_PROGRESS, "in_progress"),
        (MOCK_ROOT_CLAIM, GameStatus.IN_PROGRESS, "in_progress"),
        (MOCK_ROOT_CLAIM, GameStatus.DEFENDER_WON, "agree_defender_wins"),
        (ZERO_HASH, GameStatus.DEFENDER_WON, "disagree_defender_wins"),
        (MOCK_ROOT_CLAIM, GameStatus.CHALLENGER_WON, "agree_challenger_wins"),
        (ZERO_HASH, GameStatus.CHALLENGER_WON, "disagree_challenger_wins"),
    ],
)
async def test_check_agreement_succeeds(root_claim, status, field):
	detector, _, _, _ = setup_detector()
	batch = await detector.check_agreement(make_game(), 0, root_claim, status)
	assert getattr(batch, field) == 1
	assert batch.total == 1


class TestCheckRootAgreement:

	@pytest.mark.asyncio
	async def test_output_fetch_fails(self):
		detector, _, _, source = setup_detector()
		source.err = RuntimeError("boom")
		with pytest.raises(OutputFetchError) as exc_info:
			await detector.check_root_agreement(0, MOCK_ROOT_CLAIM)
		assert exc_info.value.__cause__ is source.err

	@pytest.mark.asyncio
	async def test_missing_output_raises(self):
		detector, _, _, source = setup_detector()
		source.root = None
		with pytest.raises(OutputFetchError) as exc_info:
			await detector.check_root_agreement(7, MOCK_ROOT_CLAIM)
		assert exc_info.value.block_number == 7
		assert isinstance(exc_info.value.__cause__, ValueError)

	@pytest.mark.asyncio
	async def test_short_output_raises(self):
		detector, _, _, source = setup_detector()
		source.root = MOCK_ROOT_CLAIM[:31]
		with pytest.raises(OutputFetchError):
			await detector.check_root_agreement(0, MOCK_ROOT_CLAIM)

	@pytest.mark.asyncio
	async def test_hex_output_is_accepted(self):
		detector, _, _, source = setup_detector()
		source.root = "0x" + MOCK_ROOT_CLAIM.hex()
		assert await detector.check_root_agreement(
		    0, MOCK_ROOT_CLAIM) is True

	@pytest.mark.asyncio
	async def test_output_mismatch(self):
		detector, _, _, _ = setup_detector()
		assert await detector.check_root_agreement(0, ZERO_HASH) is False

	@pytest.mark.asyncio
	async def test_output_matches(self):
		detector, _, _, source = setup_detector()
		assert await detector.check_root_agreement(
		    123, MOCK_ROOT_CLAIM) is True
		assert source.block_numbers == [123]

	@pytest.mark.asyncio
	async def test_single_bit_difference_disagrees(self):
		detector, _, _, _ = setup_detector()
		near = bytearray(MOCK_ROOT_CLAIM)
		near[0] ^= 0x01
		assert await detector.check_root_agreement(0, bytes(near)) is False


def test_rejects_non_positive_concurrency():
	with pytest.raises(ValueError):
		Detector(DummyMetrics(), DummyFactory(), DummyOutputSource(),
		         max_concurrency=0)
