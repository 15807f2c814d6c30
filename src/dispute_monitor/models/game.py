"""
Dispute game models.

Defines the game handle supplied by the game lister, the on-chain game
status and the per-pass metadata snapshot read from a game contract.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
HASH_LENGTH = 32
MAX_UINT64 = 2**64 - 1


def to_hash_bytes(value: Any) -> bytes:
	"""Coerce a 32-byte hash given as bytes or 0x-hex string.

	Parameters:
		value: Raw bytes or a hex string with optional 0x prefix.

	Returns:
		The hash as bytes.

	Raises:
		ValueError: If the value is not valid hex or not 32 bytes long.
	"""
	if isinstance(value, str):
		text = value[2:] if value.lower().startswith("0x") else value
		try:
			value = bytes.fromhex(text)
		except ValueError as e:
			raise ValueError(f"invalid hex hash: {value!r}") from e
	if isinstance(value, (bytearray, memoryview)):
		value = bytes(value)
	if not isinstance(value, bytes):
		raise ValueError(f"hash must be bytes or hex, got {type(value).__name__}")
	if len(value) != HASH_LENGTH:
		raise ValueError(
		    f"hash must be {HASH_LENGTH} bytes, got {len(value)}")
	return value


class GameStatus(str, Enum):
	"""Lifecycle status of a dispute game."""

	IN_PROGRESS = "in_progress"
	CHALLENGER_WON = "challenger_won"
	DEFENDER_WON = "defender_won"

	@classmethod
	def from_onchain(cls, value: int) -> "GameStatus":
		"""Map the contract's uint8 status to a GameStatus."""
		try:
			return _ONCHAIN_STATUS[value]
		except KeyError:
			raise ValueError(f"unknown game status {value}") from None

_ONCHAIN_STATUS = {
    0: GameStatus.IN_PROGRESS,
    1: GameStatus.CHALLENGER_WON,
    2: GameStatus.DEFENDER_WON,
}


class GameHandle(BaseModel):
	"""
	Reference to a single dispute game as listed by the game factory.

	Attributes:
		index: Position of the game in the factory's game list.
		game_type: Numeric game type identifier.
		timestamp: Creation timestamp in unix seconds.
		proxy: Address of the game's proxy contract.
	"""

	model_config = ConfigDict(frozen=True)

	index: int = Field(0, ge=0, description="Factory game index")
	game_type: int = Field(0, ge=0, description="Game type identifier")
	timestamp: int = Field(0, ge=0, description="Creation unix timestamp")
	proxy: str = Field("0x" + "00" * 20, description="Game proxy address")

	@field_validator("proxy")
	@classmethod
	def validate_proxy(cls, v: str) -> str:
		if not ADDRESS_RE.match(v):
			raise ValueError("proxy must be a 0x-prefixed 20 byte address")
		return v.lower()


class GameMetadata(BaseModel):
	"""Snapshot of a game's anchor block, root claim and status."""

	model_config = ConfigDict(frozen=True)

	l2_block_number: int = Field(ge=0, le=MAX_UINT64,
	                             description="L2 block the claim is for")
	root_claim: bytes = Field(description="Claimed 32-byte output root")
	status: GameStatus = Field(description="Game lifecycle status")

	@field_validator("root_claim", mode="before")
	@classmethod
	def validate_root_claim(cls, v: Any) -> bytes:
		return to_hash_bytes(v)

__all__ = [
    "GameStatus",
    "GameHandle",
    "GameMetadata",
    "to_hash_bytes",
    "HASH_LENGTH",
    "MAX_UINT64",
]
