"""Command-line entry point for the WebSocket load test."""

from __future__ import annotations

import argparse
import asyncio
import signal
from typing import List, Optional

from pydantic import ValidationError

from .config.logging import get_logger, setup_logging
from .config.settings import settings
from .exceptions import ConfigurationError
from .models.config import LoadTestConfig
from .services.display.dashboard import DashboardRenderer
from .services.display.driver import DisplayDriver
from .services.stats.aggregator import StatsAggregator
from .services.websocket.connection import ConnectionManager

logger = get_logger(__name__)

# Grace period for the connection task to return after its socket is closed
SHUTDOWN_TIMEOUT = 5.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="websocket-load-test",
        description="Load test a JSON-RPC WebSocket subscription endpoint with live statistics.",
    )
    parser.add_argument(
        "-s", "--service", default="xrplevm", help="Target service (only xrplevm supported)"
    )
    parser.add_argument("-a", "--app-id", default="", help="Application ID used in the endpoint URL")
    parser.add_argument("-k", "--api-key", default="", help="API key sent as the Authorization header")
    parser.add_argument(
        "--subs",
        default="newHeads",
        help="Comma-separated subscription types (newHeads,newPendingTransactions,logs)",
    )
    parser.add_argument(
        "-c", "--count", type=int, default=1, help="Number of subscriptions to create for each type"
    )
    parser.add_argument(
        "-l", "--log", action="store_true", help="Display the latest WebSocket message as formatted JSON"
    )
    parser.add_argument("--url", default=None, help="Override the constructed endpoint URL")
    return parser


def build_config(args: argparse.Namespace) -> LoadTestConfig:
    """Validate parsed arguments and build the run configuration.

    Raises:
        ConfigurationError: On unsupported service, missing credentials or
            invalid values.
    """
    if args.service not in settings.loadtest_supported_services:
        supported = ", ".join(f"'{name}'" for name in settings.loadtest_supported_services)
        raise ConfigurationError(
            f"Only {supported} service is supported, got '{args.service}'"
        )
    if not args.app_id:
        raise ConfigurationError("--app-id is required")
    if not args.api_key:
        raise ConfigurationError("--api-key is required")

    url = args.url or settings.build_url(args.service, args.app_id)
    try:
        return LoadTestConfig(
            url=url,
            service_id=args.service,
            auth_header=args.api_key,
            subscriptions=args.subs,
            sub_count=args.count,
            enable_logging=args.log,
        )
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {details}") from e


def _install_interrupt_handler(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, stop_event.set)
    except NotImplementedError:
        # Event loops without signal support (Windows)
        signal.signal(signal.SIGINT, lambda *_: loop.call_soon_threadsafe(stop_event.set))


async def run_load_test(
    config: LoadTestConfig,
    renderer: Optional[DashboardRenderer] = None,
    stop_event: Optional[asyncio.Event] = None,
    **manager_options,
) -> StatsAggregator:
    """Run the connection manager and display driver until interrupted.

    Returns the aggregator after the final summary has been rendered.
    """
    renderer = renderer or DashboardRenderer()
    if stop_event is None:
        stop_event = asyncio.Event()
        _install_interrupt_handler(stop_event)

    stats = StatsAggregator()
    if config.enable_logging:
        stats.enable_message_capture()

    manager: ConnectionManager
    driver = DisplayDriver(stats, renderer, subscription_count=lambda: manager.total_subscriptions)
    manager = ConnectionManager(config, stats, on_connected=driver.render_now, **manager_options)

    renderer.render_startup(config)
    logger.info("load_test_starting", url=config.url, subscriptions=config.subscriptions)

    connection_task = asyncio.create_task(manager.run(stop_event))
    display_task = asyncio.create_task(driver.run(stop_event))

    await stop_event.wait()
    renderer.render_notice("\n🛑 Received interrupt signal, shutting down...")

    await manager.close()
    try:
        await asyncio.wait_for(connection_task, timeout=SHUTDOWN_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning("connection_task_shutdown_timeout", timeout=SHUTDOWN_TIMEOUT)
    await display_task

    total_subscriptions = manager.total_subscriptions
    metrics = stats.final_metrics(total_subscriptions)
    renderer.render_final(stats.snapshot(), metrics, total_subscriptions)
    logger.info("load_test_finished", total_subscriptions=total_subscriptions)
    return stats


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run the load test and return the process exit code."""
    setup_logging()
    args = build_parser().parse_args(argv)
    renderer = DashboardRenderer()

    try:
        config = build_config(args)
    except ConfigurationError as e:
        renderer.render_error(e.message)
        return 1

    asyncio.run(run_load_test(config, renderer=renderer))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
