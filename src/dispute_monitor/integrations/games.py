"""
Dispute game contract bindings.

Reads dispute game state over ``eth_call``: the fault dispute game's
metadata and the dispute game factory's list of games. Only the few
static ABI words these calls return are decoded.
"""

from __future__ import annotations

from collections.abc import Iterable

from dispute_monitor.integrations.rpc import JsonRpcClient
from dispute_monitor.models.game import (
    ADDRESS_RE,
    GameHandle,
    GameMetadata,
    GameStatus,
)
from dispute_monitor.utils.logging import get_logger

logger = get_logger(__name__)

# 4-byte function selectors
SEL_ROOT_CLAIM = "0xbcef3b55"  # rootClaim()
SEL_L2_BLOCK_NUMBER = "0x8b85902b"  # l2BlockNumber()
SEL_STATUS = "0x200d2ed2"  # status()
SEL_GAME_COUNT = "0x4d1975b4"  # gameCount()
SEL_GAME_AT_INDEX = "0xbb8aa1fc"  # gameAtIndex(uint256)

WORD_SIZE = 32


def decode_words(data: str, count: int) -> list[bytes]:
	"""
	Split ABI-encoded return data into 32-byte words.

	Parameters:
		data: 0x-prefixed hex string returned by ``eth_call``.
		count: Minimum number of words expected.

	Returns:
		The first ``count`` words.

	Raises:
		ValueError: If the data is not hex or is too short.
	"""
	if not isinstance(data, str):
		raise ValueError("call result must be a hex string")
	raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
	if len(raw) < count * WORD_SIZE:
		raise ValueError(
		    f"expected {count} ABI words, got {len(raw)} bytes")
	return [raw[i * WORD_SIZE:(i + 1) * WORD_SIZE] for i in range(count)]


def word_to_int(word: bytes) -> int:
	return int.from_bytes(word, "big")


def word_to_address(word: bytes) -> str:
	return "0x" + word[-20:].hex()


def encode_uint(value: int) -> str:
	return value.to_bytes(WORD_SIZE, "big").hex()


async def _eth_call(rpc: JsonRpcClient, to: str, data: str) -> str:
	return await rpc.call("eth_call", [{"to": to, "data": data}, "latest"])


class FaultGameLoader:
	"""MetadataLoader reading a single fault dispute game contract."""

	def __init__(self, rpc: JsonRpcClient, address: str) -> None:
		self.rpc = rpc
		self.address = address

	async def get_game_metadata(self) -> GameMetadata:
		block = await _eth_call(self.rpc, self.address, SEL_L2_BLOCK_NUMBER)
		root = await _eth_call(self.rpc, self.address, SEL_ROOT_CLAIM)
		status = await _eth_call(self.rpc, self.address, SEL_STATUS)
		return GameMetadata(
		    l2_block_number=word_to_int(decode_words(block, 1)[0]),
		    root_claim=decode_words(root, 1)[0],
		    status=GameStatus.from_onchain(word_to_int(
		        decode_words(status, 1)[0])),
		)


class FaultGameContractFactory:
	"""
	MetadataLoaderFactory for fault dispute games.

	Parameters:
		rpc: L1 JSON-RPC client shared by all loaders.
		supported_game_types: Game types this factory can bind to.
	"""

	def __init__(self, rpc: JsonRpcClient,
	             supported_game_types: Iterable[int] = (0, 1)) -> None:
		self.rpc = rpc
		self.supported_game_types = frozenset(supported_game_types)

	def create_contract(self, game: GameHandle) -> FaultGameLoader:
		if game.game_type not in self.supported_game_types:
			raise ValueError(f"unsupported game type {game.game_type}")
		if not ADDRESS_RE.match(game.proxy):
			raise ValueError(f"invalid game address {game.proxy!r}")
		return FaultGameLoader(self.rpc, game.proxy)


class DisputeGameFactoryLister:
	"""
	GameLister walking the dispute game factory from newest to oldest.

	Parameters:
		rpc: L1 JSON-RPC client.
		factory_address: DisputeGameFactory contract address.
	"""

	def __init__(self, rpc: JsonRpcClient, factory_address: str) -> None:
		if not ADDRESS_RE.match(factory_address):
			raise ValueError(
			    f"invalid factory address {factory_address!r}")
		self.rpc = rpc
		self.factory_address = factory_address

	async def game_count(self) -> int:
		result = await _eth_call(self.rpc, self.factory_address,
		                         SEL_GAME_COUNT)
		return word_to_int(decode_words(result, 1)[0])

	async def game_at_index(self, index: int) -> GameHandle:
		result = await _eth_call(self.rpc, self.factory_address,
		                         SEL_GAME_AT_INDEX + encode_uint(index))
		game_type, timestamp, proxy = decode_words(result, 3)
		return GameHandle(
		    index=index,
		    game_type=word_to_int(game_type),
		    timestamp=word_to_int(timestamp),
		    proxy=word_to_address(proxy),
		)

	async def list_games(self, earliest_timestamp: int) -> list[GameHandle]:
		"""Return games created at or after ``earliest_timestamp``, oldest first."""
		count = await self.game_count()
		games: list[GameHandle] = []
		for index in range(count - 1, -1, -1):
			game = await self.game_at_index(index)
			if game.timestamp < earliest_timestamp:
				break
			games.append(game)
		games.reverse()
		logger.debug("listed %d of %d games", len(games), count)
		return games


__all__ = [
    "FaultGameLoader",
    "FaultGameContractFactory",
    "DisputeGameFactoryLister",
    "decode_words",
]
