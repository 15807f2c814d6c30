"""
Monitor parameters model.

Defines validated CLI overrides applied on top of environment config.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_core.core_schema import ValidationInfo

from .game import ADDRESS_RE


class MonitorParams(BaseModel):
	"""Validated CLI overrides for the monitor."""

	l1_eth_rpc: Optional[str] = Field(default=None,
	                                  description="Override L1 RPC URL")
	rollup_rpc: Optional[str] = Field(default=None,
	                                  description="Override rollup RPC URL")
	game_factory_address: Optional[str] = Field(
	    default=None, description="Override game factory address")
	interval: Optional[int] = Field(default=None,
	                                description="Seconds between passes")
	window: Optional[int] = Field(default=None,
	                              description="Game window in seconds")
	detect_timeout: Optional[int] = Field(default=None,
	                                      description="Pass deadline")
	max_concurrency: Optional[int] = Field(default=None,
	                                       description="Concurrent games")
	log_level: Optional[str] = Field(default=None, description="Log level")

	@field_validator('rollup_rpc', 'l1_eth_rpc')
	@classmethod
	def validate_url(cls, v: Optional[str]) -> Optional[str]:
		if v is None:
			return v
		if not v.startswith(("http://", "https://")):
			raise ValueError("RPC URL must use http or https")
		return v

	@field_validator('game_factory_address')
	@classmethod
	def validate_address(cls, v: Optional[str]) -> Optional[str]:
		if v is None:
			return v
		if not ADDRESS_RE.match(v):
			raise ValueError(
			    "game_factory_address must be a 0x-prefixed 20 byte address")
		return v

	@field_validator('interval', 'window', 'detect_timeout',
	                 'max_concurrency')
	@classmethod
	def validate_positive(cls, v: Optional[int],
	                      info: ValidationInfo) -> Optional[int]:
		if v is None:
			return v
		if v <= 0:
			raise ValueError(f"{info.field_name} must be > 0")
		return v

	@field_validator('log_level')
	@classmethod
	def validate_log_level(cls, v: Optional[str]) -> Optional[str]:
		if v is None:
			return v
		if v.upper() not in logging._nameToLevel:
			raise ValueError(f"unknown log level {v!r}")
		return v.lower()


__all__ = ["MonitorParams"]
