from __future__ import annotations

import asyncio
import sys

import typer
from typer.main import get_command

from dispute_monitor.core.detector import Detector
from dispute_monitor.core.monitor import GameMonitor, PassCallback
from dispute_monitor.integrations.games import (
    DisputeGameFactoryLister,
    FaultGameContractFactory,
)
from dispute_monitor.integrations.metrics import InMemoryMetrics
from dispute_monitor.integrations.rollup import RollupOutputSource
from dispute_monitor.integrations.rpc import JsonRpcClient
from dispute_monitor.models.config import Config, load_env
from dispute_monitor.models.monitor_params import MonitorParams
from dispute_monitor.models.summary import DetectionSummary
from dispute_monitor.ui.reporting import print_metrics, print_summary
from dispute_monitor.utils.logging import configure_logging

cli = typer.Typer(add_completion=False, no_args_is_help=False)


@cli.callback()
def root() -> None:
	"""
	Root callback for the dispute-monitor CLI.

	Monitors dispute games and reports whether their resolutions agree
	with a trusted rollup node.
	"""
	return None


def load_config(params: MonitorParams) -> Config:
	"""Load env config, apply CLI overrides and configure logging."""
	load_env()
	config = Config()
	config.apply_overrides(params)
	configure_logging(config.log_level)
	if not config.game_factory_address:
		raise typer.BadParameter(
		    "a game factory address is required "
		    "(GAME_FACTORY_ADDRESS or --game-factory-address)")
	return config


async def monitor_games(
    config: Config,
    metrics: InMemoryMetrics,
    once: bool,
    on_pass: PassCallback | None = None,
) -> DetectionSummary | None:
	"""
	Wire integrations from config and run the monitor.

	Parameters:
		config: Application configuration.
		metrics: Sink the detector reports every pass to.
		once: Run a single pass instead of looping.
		on_pass: Called with each pass summary while looping.

	Returns:
		The pass summary when ``once`` is set, otherwise None.
	"""
	l1 = JsonRpcClient(config.l1_eth_rpc, timeout=config.rpc_timeout_seconds)
	rollup = JsonRpcClient(config.rollup_rpc,
	                       timeout=config.rpc_timeout_seconds)
	try:
		detector = Detector(
		    metrics,
		    FaultGameContractFactory(l1, config.supported_game_types),
		    RollupOutputSource(rollup),
		    max_concurrency=config.max_concurrency,
		)
		monitor = GameMonitor(
		    detector,
		    DisputeGameFactoryLister(l1, config.game_factory_address),
		    interval=config.monitor_interval_seconds,
		    window=config.game_window_seconds,
		    detect_timeout=config.detect_timeout_seconds,
		    on_pass=on_pass,
		)
		if once:
			return await monitor.run_once()
		await monitor.run()
		return None
	finally:
		await l1.close()
		await rollup.close()


def run_impl(params: MonitorParams) -> None:
	"""
	Run the monitor loop until interrupted.

	Parameters:
		params: Validated CLI overrides.
	"""
	config = load_config(params)
	typer.echo(f"Monitoring games with interval={config.monitor_interval_seconds}s, "
	           f"window={config.game_window_seconds}s, "
	           f"factory={config.game_factory_address}, "
	           f"max_concurrency={config.max_concurrency}")
	metrics = InMemoryMetrics()

	def on_pass(_: DetectionSummary) -> None:
		print_metrics(metrics.snapshot())

	try:
		asyncio.run(monitor_games(config, metrics, once=False,
		                          on_pass=on_pass))
	except KeyboardInterrupt:
		typer.echo("stopped")


def once_impl(params: MonitorParams) -> None:
	"""
	Run a single detection pass and print its summary and metrics.

	Parameters:
		params: Validated CLI overrides.
	"""
	config = load_config(params)
	metrics = InMemoryMetrics()
	summary = asyncio.run(monitor_games(config, metrics, once=True))
	if summary is None:
		typer.echo("failed to list games", err=True)
		raise typer.Exit(code=1)
	print_summary(summary)
	print_metrics(metrics.snapshot())


_L1_OPT = typer.Option(None, "--l1-eth-rpc", help="Override L1 RPC URL")
_ROLLUP_OPT = typer.Option(None, "--rollup-rpc",
                           help="Override rollup node RPC URL")
_FACTORY_OPT = typer.Option(None, "--game-factory-address",
                            help="Override game factory address")
_WINDOW_OPT = typer.Option(None, "--window",
                           help="Override game window seconds")
_TIMEOUT_OPT = typer.Option(None, "--detect-timeout",
                            help="Override detection pass deadline seconds")
_CONCURRENCY_OPT = typer.Option(None, "--max-concurrency",
                                help="Override concurrent games per pass")
_LOG_LEVEL_OPT = typer.Option(None, "--log-level", help="Override log level")


@cli.command()
def run(
    l1_eth_rpc: str = _L1_OPT,
    rollup_rpc: str = _ROLLUP_OPT,
    game_factory_address: str = _FACTORY_OPT,
    interval: int = typer.Option(None, "--interval",
                                 help="Override seconds between passes"),
    window: int = _WINDOW_OPT,
    detect_timeout: int = _TIMEOUT_OPT,
    max_concurrency: int = _CONCURRENCY_OPT,
    log_level: str = _LOG_LEVEL_OPT,
) -> None:
	"""Monitor dispute games continuously."""
	run_impl(
	    MonitorParams(
	        l1_eth_rpc=l1_eth_rpc,
	        rollup_rpc=rollup_rpc,
	        game_factory_address=game_factory_address,
	        interval=interval,
	        window=window,
	        detect_timeout=detect_timeout,
	        max_concurrency=max_concurrency,
	        log_level=log_level,
	    ))


@cli.command()
def once(
    l1_eth_rpc: str = _L1_OPT,
    rollup_rpc: str = _ROLLUP_OPT,
    game_factory_address: str = _FACTORY_OPT,
    window: int = _WINDOW_OPT,
    detect_timeout: int = _TIMEOUT_OPT,
    max_concurrency: int = _CONCURRENCY_OPT,
    log_level: str = _LOG_LEVEL_OPT,
) -> None:
	"""Run a single detection pass and print the summary and metrics."""
	once_impl(
	    MonitorParams(
	        l1_eth_rpc=l1_eth_rpc,
	        rollup_rpc=rollup_rpc,
	        game_factory_address=game_factory_address,
	        window=window,
	        detect_timeout=detect_timeout,
	        max_concurrency=max_concurrency,
	        log_level=log_level,
	    ))


def entrypoint(argv=None, *, standalone_mode: bool = True):
	"""
	Typer entrypoint that defaults to `run` when appropriate.

	Allows calling 'dispute-monitor --interval 10' without explicitly
	specifying the 'run' subcommand.

	Parameters:
		argv: Command-line arguments. Defaults to sys.argv[1:].
		standalone_mode: If True, Click handles exit codes.

	Returns:
		Result of the Click application main invocation.
	"""
	args = sys.argv[1:] if argv is None else list(argv)

	_click_app = get_command(cli)
	commands = getattr(_click_app, "commands", {}).keys()
	# default to run when no subcommand is given; keep --help on the group
	if not args or (args[0] not in commands and args[0] != "--help"):
		args = ["run"] + args
	return _click_app.main(
	    args=args,
	    prog_name="dispute-monitor",
	    standalone_mode=standalone_mode,
	)


if __name__ == "__main__":
	entrypoint()
