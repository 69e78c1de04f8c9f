"""
live data server — top-level orchestrator

Runs all services in a single async event loop:
  - LiveDataService: CoinGecko market ticks + news synthesis ticks
  - WebSocket server: pushes cache updates to browser clients
  - Redis relay (optional): forwards updates when REDIS_URL is set

Usage:
    cd server
    python main.py            # live: CoinGecko
    python main.py --mock     # mock: in-process quotes, no network
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal

from dotenv import load_dotenv

load_dotenv(".env")

from live_data.config import ConfigurationError, load_settings  # noqa: E402

logger = logging.getLogger("live_data")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s — %(message)s",
    )
    # websockets logs every frame at DEBUG
    logging.getLogger("websockets").setLevel(logging.WARNING)


async def run(*, use_mock: bool = False) -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)

    # ── Live data service ─────────────────────────────────────────
    from live_data.service import LiveDataService
    from live_data.ws_server import LiveDataWebSocketServer

    quote_source = None
    if use_mock:
        from mock_quotes import MockQuoteSource
        quote_source = MockQuoteSource()
        logger.info("Mock mode — quotes are generated in process")

    service = LiveDataService.from_settings(settings, quote_source=quote_source)

    # ── Consumers (subscribe before the first tick fires) ─────────
    ws_server = LiveDataWebSocketServer(
        service,
        host=settings.websocket_server.host,
        port=settings.websocket_server.port,
    )
    await ws_server.start()

    relay = None
    if settings.redis.enabled:
        from live_data.relay import LiveDataRelay, RelayError

        relay = LiveDataRelay(service, settings.redis.url)
        try:
            await relay.connect()
        except RelayError as e:
            logger.error(f"Redis relay disabled: {e}")
            relay = None

    # ── Start pipelines ───────────────────────────────────────────
    await service.start()
    logger.info(
        f"Tracking {len(service.coin_ids)} assets — market every "
        f"{settings.schedule.market_interval_seconds:g}s, news every "
        f"{settings.schedule.news_interval_seconds:g}s"
    )

    # ── Wait for shutdown ──────────────────────────────────────────
    await shutdown_event.wait()

    # ── Teardown ───────────────────────────────────────────────────
    logger.info("Shutting down...")

    await service.stop()
    await ws_server.stop()
    if relay is not None:
        await relay.close()

    stats = service.get_stats()
    ws_stats = ws_server.get_stats()
    logger.info(
        f"Final — market ticks: {stats['market_ticks_ok']} ok / "
        f"{stats['market_ticks_failed']} failed / {stats['market_ticks_skipped']} skipped, "
        f"news ticks: {stats['news_ticks_ok']}, "
        f"clients served: {ws_stats.total_connections}"
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="live market/news data server")
    parser.add_argument("--mock", action="store_true", help="Use in-process mock quotes instead of CoinGecko")
    args = parser.parse_args()
    try:
        asyncio.run(run(use_mock=args.mock))
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Invalid configuration: {e}")
        raise SystemExit(1)
