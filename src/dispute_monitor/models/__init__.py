"""
Dispute monitor models.

This subpackage contains Pydantic models for configuration, dispute
game data and the counters produced by a detection pass.

Key models:
    - Config: Application configuration loaded from environment
    - MonitorParams: Validated CLI overrides
    - GameHandle / GameMetadata / GameStatus: Dispute game data
    - AgreementOutcome: Per-game agreement category
    - StatusBatch / DetectionBatch: Per-pass counters
    - DetectionSummary: Result of a detection pass
"""

from .game import GameStatus, GameHandle, GameMetadata, to_hash_bytes
from .outcome import AgreementOutcome, classify
from .batch import StatusBatch, DetectionBatch
from .summary import DetectionSummary
from .config import Config, load_env
from .monitor_params import MonitorParams

__all__ = [
    "GameStatus",
    "GameHandle",
    "GameMetadata",
    "to_hash_bytes",
    "AgreementOutcome",
    "classify",
    "StatusBatch",
    "DetectionBatch",
    "DetectionSummary",
    "Config",
    "load_env",
    "MonitorParams",
]
