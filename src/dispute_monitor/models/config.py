from __future__ import annotations

from pathlib import Path
from typing import Any, TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_core.core_schema import ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

if TYPE_CHECKING:
	from .monitor_params import MonitorParams


def load_env(env_file: str | Path | None = None) -> None:
	"""Load environment variables from an `.env` file if present."""
	env_path = Path(env_file) if env_file else Path(".env")
	if env_path.exists():
		load_dotenv(env_path)


class Config(BaseSettings):
	"""Runtime configuration loaded from environment variables."""

	model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

	l1_eth_rpc: str = Field(
	    "http://localhost:8545",
	    alias="L1_ETH_RPC",
	    description="L1 execution node JSON-RPC endpoint",
	)
	rollup_rpc: str = Field(
	    "http://localhost:9546",
	    alias="ROLLUP_RPC",
	    description="Trusted rollup node JSON-RPC endpoint",
	)
	game_factory_address: str | None = Field(
	    default=None,
	    alias="GAME_FACTORY_ADDRESS",
	    description="DisputeGameFactory contract address",
	)
	monitor_interval_seconds: int = Field(
	    30,
	    alias="MONITOR_INTERVAL_SECONDS",
	    description="Delay between detection passes",
	)
	game_window_seconds: int = Field(
	    7 * 24 * 60 * 60,
	    alias="GAME_WINDOW_SECONDS",
	    description="Only games created within this window are monitored",
	)
	detect_timeout_seconds: int = Field(
	    120,
	    alias="DETECT_TIMEOUT_SECONDS",
	    description="Deadline for a single detection pass",
	)
	rpc_timeout_seconds: int = Field(
	    10,
	    alias="RPC_TIMEOUT_SECONDS",
	    description="Per-request JSON-RPC timeout",
	)
	max_concurrency: int = Field(
	    8,
	    alias="MAX_CONCURRENCY",
	    description="Maximum games processed concurrently in a pass",
	)
	supported_game_types: Any = Field(
	    default_factory=lambda: [0, 1],
	    alias="SUPPORTED_GAME_TYPES",
	    description="Game types the loader factory can bind to",
	)
	log_level: str = Field("info", alias="LOG_LEVEL", description="Log level")

	@field_validator("supported_game_types", mode="before")
	@classmethod
	def split_game_types(cls, v: Any) -> list[int]:
		"""Normalize game types to a list of ints regardless of input format."""
		if v is None or v == "":
			return []
		if isinstance(v, int):
			return [v]
		if isinstance(v, (list, tuple)):
			return [int(p) for p in v]
		# fallback: comma-separated string
		return [int(p.strip()) for p in str(v).split(",") if p.strip()]

	@field_validator("monitor_interval_seconds", "game_window_seconds",
	                 "detect_timeout_seconds", "rpc_timeout_seconds",
	                 "max_concurrency")
	@classmethod
	def validate_positive(cls, v: Any, info: "ValidationInfo") -> Any:
		if int(v) <= 0:
			raise ValueError(f"{info.field_name} must be > 0")
		return v

	def apply_overrides(self, params: "MonitorParams") -> None:
		"""Apply CLI overrides from MonitorParams onto this config.

		Only non-None fields in params are applied, preserving
		environment-based defaults for anything the user didn't explicitly set.

		Parameters:
			params: Validated monitor parameters with optional overrides.
		"""
		_OVERRIDES: list[tuple[str, str]] = [
		    ("l1_eth_rpc", "l1_eth_rpc"),
		    ("rollup_rpc", "rollup_rpc"),
		    ("game_factory_address", "game_factory_address"),
		    ("interval", "monitor_interval_seconds"),
		    ("window", "game_window_seconds"),
		    ("detect_timeout", "detect_timeout_seconds"),
		    ("max_concurrency", "max_concurrency"),
		    ("log_level", "log_level"),
		]
		for param_field, config_field in _OVERRIDES:
			value = getattr(params, param_field)
			if value is not None:
				setattr(self, config_field, value)


__all__ = ["Config", "load_env"]
