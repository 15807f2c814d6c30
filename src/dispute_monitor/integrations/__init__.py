"""External service integrations.

This subpackage provides concrete implementations of the capabilities
the detector consumes.

Key modules:
    - rpc: Async JSON-RPC client
    - rollup: Canonical output source backed by a rollup node
    - games: Dispute game and game factory contract bindings
    - metrics: In-process metrics sink
"""

from dispute_monitor.integrations.rpc import JsonRpcClient, RpcError
from dispute_monitor.integrations.rollup import RollupOutputSource
from dispute_monitor.integrations.games import (
    FaultGameLoader,
    FaultGameContractFactory,
    DisputeGameFactoryLister,
    decode_words,
)
from dispute_monitor.integrations.metrics import InMemoryMetrics, MetricsSnapshot

__all__ = [
    # rpc
    "JsonRpcClient",
    "RpcError",
    # rollup
    "RollupOutputSource",
    # games
    "FaultGameLoader",
    "FaultGameContractFactory",
    "DisputeGameFactoryLister",
    "decode_words",
    # metrics
    "InMemoryMetrics",
    "MetricsSnapshot",
]
