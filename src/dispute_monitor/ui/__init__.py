"""User interface components.

This subpackage renders detection results for the terminal.

Key modules:
    - reporting: Rich tables for detection summaries and metrics
"""

from dispute_monitor.ui.reporting import (
    build_status_table,
    build_agreement_table,
    build_metrics_table,
    print_summary,
    print_metrics,
)

__all__ = [
    "build_status_table",
    "build_agreement_table",
    "build_metrics_table",
    "print_summary",
    "print_metrics",
]
