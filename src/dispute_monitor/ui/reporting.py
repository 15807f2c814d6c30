"""
Detection summary rendering.

Builds Rich tables for a detection pass and for the recorded metrics
snapshot and prints them to a console.
"""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.table import Table

from dispute_monitor.integrations.metrics import MetricsSnapshot
from dispute_monitor.models.outcome import AgreementOutcome
from dispute_monitor.models.summary import DetectionSummary

_OUTCOME_STYLES = {
    AgreementOutcome.IN_PROGRESS: "dim",
    AgreementOutcome.AGREE_DEFENDER_WINS: "green",
    AgreementOutcome.DISAGREE_DEFENDER_WINS: "bold red",
    AgreementOutcome.AGREE_CHALLENGER_WINS: "bold red",
    AgreementOutcome.DISAGREE_CHALLENGER_WINS: "yellow",
}


def build_status_table(summary: DetectionSummary) -> Table:
	"""Table of game counts per status plus failure bookkeeping."""
	table = Table(title="Game status", show_header=True, box=box.ROUNDED)
	table.add_column("Status")
	table.add_column("Games", justify="right")
	table.add_row("in_progress", str(summary.status.in_progress))
	table.add_row("defender_won", str(summary.status.defender_won))
	table.add_row("challenger_won", str(summary.status.challenger_won))
	table.add_row("metadata_failed", str(summary.metadata_failures),
	              style="red" if summary.metadata_failures else None)
	table.add_row("agreement_failed", str(summary.agreement_failures),
	              style="red" if summary.agreement_failures else None)
	if summary.unexpected_failures:
		table.add_row("unexpected_failed", str(summary.unexpected_failures),
		              style="red")
	if summary.cancelled:
		table.add_row("abandoned", str(summary.games_abandoned),
		              style="yellow")
	table.add_row("total", str(summary.games_total), style="bold")
	return table


def build_agreement_table(summary: DetectionSummary) -> Table:
	"""Table of game counts per agreement category."""
	table = Table(title="Agreement", show_header=True, box=box.ROUNDED)
	table.add_column("Category")
	table.add_column("Games", justify="right")
	counts = summary.detection.counts()
	for outcome in AgreementOutcome:
		count = counts[outcome.value]
		# contradicting categories are only highlighted when non-zero
		style = _OUTCOME_STYLES[outcome]
		if outcome.contradicts_resolution and not count:
			style = None
		table.add_row(outcome.value, str(count), style=style)
	return table


def print_summary(summary: DetectionSummary,
                  console: Console | None = None) -> None:
	"""Print both summary tables."""
	console = console or Console()
	console.print(build_status_table(summary))
	console.print(build_agreement_table(summary))


def build_metrics_table(snapshot: MetricsSnapshot) -> Table:
	"""
	Table of the recorded metrics.

	Status rows are the gauges from the latest pass; agreement rows are
	cumulative across every pass reported so far.
	"""
	table = Table(title=f"Metrics (passes={snapshot.passes})",
	              show_header=True,
	              box=box.ROUNDED)
	table.add_column("Metric")
	table.add_column("Label")
	table.add_column("Value", justify="right")
	for status, count in snapshot.games_status.items():
		table.add_row("games_status", status, str(count))
	for outcome in AgreementOutcome:
		count = snapshot.game_agreement.get(outcome.value, 0)
		style = "bold red" if outcome.contradicts_resolution and count else None
		table.add_row("game_agreement", outcome.value, str(count), style=style)
	return table


def print_metrics(snapshot: MetricsSnapshot,
                  console: Console | None = None) -> None:
	"""Print the metrics snapshot table."""
	console = console or Console()
	console.print(build_metrics_table(snapshot))


__all__ = [
    "build_status_table",
    "build_agreement_table",
    "build_metrics_table",
    "print_summary",
    "print_metrics",
]
