"""CLI entry point for the transport latency benchmark."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from hyperbench.exceptions import BenchmarkError
from hyperbench.models.config import BenchmarkConfig
from hyperbench.models.result import Measurement
from hyperbench.orchestrator import BenchmarkOrchestrator, Phase
from hyperbench.transports.loading import (
    TransportNotFoundError,
    available_transports,
    load_transport_manifest,
)


def log_results_summary(
    log: logging.Logger, measurements: Sequence[Measurement]
) -> None:
    """Log a formatted summary of the measured latencies."""
    log.info("=" * 80)
    log.info("Latency Summary:")
    log.info("=" * 80)

    for measurement in measurements:
        log.info("%s: %.3fms", measurement.transport, measurement.elapsed_ms)


def build_phases(config: BenchmarkConfig) -> Sequence[Phase]:
    """Load each configured transport and build its adapter."""
    phases: list[Phase] = []
    for key in config.transports:
        manifest = load_transport_manifest(key)
        transport_config = manifest.config_cls(**config.transport_config.get(key, {}))
        adapter = (
            manifest.adapter_factory(transport_config)
            if manifest.adapter_factory is not None
            else None
        )
        phases.append(Phase(name=key, adapter=adapter))
    return phases


async def run(config: BenchmarkConfig) -> int:
    """Run the benchmark and return exit code."""
    log = logging.getLogger("hyperbench")

    log.info("Running transports: %s", ", ".join(config.transports))
    phases = build_phases(config)

    orchestrator = BenchmarkOrchestrator(
        timeout=config.timeout,
        ready_timeout=config.ready_timeout,
        payload=config.payload,
        verify_payload=config.verify_payload,
    )
    measurements = await orchestrator.run(phases)

    log_results_summary(log, measurements)
    print(json.dumps(format_output(measurements), indent=2))

    return 0


def format_output(measurements: Sequence[Measurement]) -> dict[str, Any]:
    """Format measurements for JSON output."""
    return {
        "total": len(measurements),
        "results": [
            {
                "transport": measurement.transport,
                "elapsed_ms": measurement.elapsed_ms,
            }
            for measurement in measurements
        ],
    }


def load_config(
    config_json: str | None,
    transports: Sequence[str] | None = None,
    timeout: float | None = None,
) -> BenchmarkConfig:
    """Build the configuration from JSON plus command line overrides."""
    config = (
        BenchmarkConfig.model_validate_json(config_json)
        if config_json
        else BenchmarkConfig()
    )

    overrides: dict[str, Any] = {}
    if transports:
        overrides["transports"] = tuple(transports)
    if timeout is not None:
        overrides["timeout"] = timeout
    if not overrides:
        return config
    return BenchmarkConfig.model_validate(config.model_dump() | overrides)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Measure one-way message latency across hyper transports"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="JSON configuration for the benchmark and its transports",
    )
    parser.add_argument(
        "--transport",
        action="append",
        dest="transports",
        help=(
            "Transport key to run, repeat to run several in order "
            f"(available: {', '.join(available_transports())})"
        ),
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for each observation",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    config = load_config(args.config, args.transports, args.timeout)

    try:
        exit_code = asyncio.run(run(config))
    except (BenchmarkError, TransportNotFoundError) as e:
        logging.getLogger("hyperbench").error("Benchmark failed: %s", e)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
