"""Shared utility functions.

This subpackage provides common utilities used across the
application.

Key modules:
    - logging: Logging configuration and credential masking
    - protocols: Protocol definitions for dependency injection
"""

from .logging import (
    configure_logging,
    get_logger,
    sanitize_text,
    CredentialSanitizingFilter,
)
from .protocols import (
    MetadataLoader,
    MetadataLoaderFactory,
    OutputSource,
    DetectorMetrics,
    GameLister,
)

__all__ = [
    # logging
    "configure_logging",
    "get_logger",
    "sanitize_text",
    "CredentialSanitizingFilter",
    # protocols
    "MetadataLoader",
    "MetadataLoaderFactory",
    "OutputSource",
    "DetectorMetrics",
    "GameLister",
]
