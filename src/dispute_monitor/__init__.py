"""
Dispute Monitor - agreement monitoring for on-chain dispute games.

This package checks whether the claimed resolution of each active
dispute game agrees with a trusted rollup node and reports aggregated
counts for dashboards and alerting.

Main entry points:
    - dispute_monitor.main: CLI entrypoint
    - dispute_monitor.core.detector: Detector.detect() for one pass
    - dispute_monitor.core.monitor: GameMonitor for periodic passes
    - dispute_monitor.models.config: Config and load_env()
"""
