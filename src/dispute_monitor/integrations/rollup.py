"""
Rollup node output source.

Fetches canonical output roots from a trusted rollup node.
"""

from __future__ import annotations

from dispute_monitor.integrations.rpc import JsonRpcClient
from dispute_monitor.models.game import to_hash_bytes


class RollupOutputSource:
	"""OutputSource backed by the rollup node's ``optimism_outputAtBlock``."""

	def __init__(self, rpc: JsonRpcClient) -> None:
		self.rpc = rpc

	async def output_at_block(self, block_number: int) -> bytes:
		"""Return the output root the rollup node reports at ``block_number``."""
		result = await self.rpc.call("optimism_outputAtBlock",
		                             [hex(block_number)])
		if not isinstance(result, dict) or "outputRoot" not in result:
			raise ValueError(
			    f"outputAtBlock({block_number}) response has no outputRoot")
		return to_hash_bytes(result["outputRoot"])


__all__ = ["RollupOutputSource"]
