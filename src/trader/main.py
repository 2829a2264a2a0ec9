"""Entry point for the signal trader.

Wires all components together, optionally embeds the FastAPI dashboard,
and runs the scheduler loop. When the dashboard is enabled (default), the
scheduler and dashboard share a single asyncio event loop via uvicorn's
programmatic API and FastAPI's lifespan context manager.

Handles SIGINT/SIGTERM for graceful shutdown.

Component wiring order (in build_scheduler):
1. Price source (SimulatedPriceSource or CcxtPriceSource)
2. SimulatedChain (block height + fee level)
3. PriceCache (shared latest prices)
4. PaperWallet (virtual balances, also the balance source)
5. PaperExecutor (simulated wrap/swap fills)
6. Scheduler (indicators, signals, risk, decisions, lifecycle)
"""

import asyncio
import signal
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from trader.config import AppSettings
from trader.execution.paper_executor import PaperExecutor, PaperWallet
from trader.logging import get_logger, setup_logging
from trader.scheduler import Scheduler
from trader.sources.base import PriceSource
from trader.sources.price_cache import PriceCache
from trader.sources.simulated import SimulatedChain, SimulatedPriceSource


def _build_price_source(settings: AppSettings) -> PriceSource:
    if settings.trading.price_source == "ccxt":
        from trader.sources.ccxt_prices import CcxtPriceSource

        return CcxtPriceSource(settings.exchange)
    return SimulatedPriceSource(settings.paper)


def build_scheduler(settings: AppSettings) -> Scheduler:
    """Build the full component graph for paper mode."""
    chain = SimulatedChain(settings.chain)
    price_cache = PriceCache()
    wallet = PaperWallet(settings.paper.initial_balances)
    executor = PaperExecutor(wallet, price_cache, settings.paper, settings.assets)
    return Scheduler(
        settings,
        block_source=chain,
        price_source=_build_price_source(settings),
        balance_source=wallet,
        fee_oracle=chain,
        executor=executor,
        price_cache=price_cache,
    )


def _setup_signal_handlers(scheduler: Scheduler) -> None:
    """Register SIGINT/SIGTERM to stop the scheduler loop when running headless.

    With the dashboard enabled uvicorn owns these signals and the lifespan
    shuts the scheduler down. Must be called after the event loop is running.
    """
    logger = get_logger("trader.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        scheduler.shutdown()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the scheduler loop and dashboard push loop for the app's lifetime."""
    from trader.dashboard.update_loop import dashboard_update_loop

    logger = get_logger("trader.main")
    settings: AppSettings = app.state.settings
    scheduler: Scheduler = app.state.scheduler
    app.state.update_interval = settings.dashboard.update_interval

    if settings.trading.auto_start:
        scheduler.start()

    bot_task = asyncio.create_task(scheduler.run())
    update_task = asyncio.create_task(dashboard_update_loop(app))

    logger.info("lifespan_started", mode=settings.trading.mode)

    yield

    update_task.cancel()
    try:
        await update_task
    except asyncio.CancelledError:
        pass

    scheduler.shutdown()
    bot_task.cancel()
    try:
        await bot_task
    except asyncio.CancelledError:
        pass

    await scheduler.close()
    logger.info("signal_trader_stopped")


async def run() -> None:
    """Run the signal trader.

    With the dashboard enabled (DASHBOARD_ENABLED=true, the default) the
    scheduler runs inside the uvicorn server's lifespan; otherwise it runs
    directly until SIGINT/SIGTERM.
    """
    settings = AppSettings()

    setup_logging(settings.log_level)
    logger = get_logger("trader.main")

    scheduler = build_scheduler(settings)

    if settings.dashboard.enabled:
        from trader.dashboard.app import create_dashboard_app

        app = create_dashboard_app(scheduler=scheduler, lifespan=lifespan)
        app.state.settings = settings

        logger.info(
            "starting_with_dashboard",
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            network=settings.chain.network,
            price_source=settings.trading.price_source,
        )

        config = uvicorn.Config(
            app,
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        _setup_signal_handlers(scheduler)

        logger.info(
            "starting_without_dashboard",
            network=settings.chain.network,
            price_source=settings.trading.price_source,
            tracked_assets=settings.assets.tracked_assets,
        )

        if settings.trading.auto_start:
            scheduler.start()
        try:
            await scheduler.run()
        finally:
            await scheduler.close()
            logger.info("signal_trader_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
