from __future__ import annotations

import asyncio
import contextlib
import importlib
import logging
import signal
from typing import Callable

from dotenv import load_dotenv

from suiarb.bot_runtime import (
    AppSettings,
    DelayController,
    ImbalanceGate,
    bootstrap_dependencies,
    run_trading_loop,
    setup_logger,
)
from suiarb.common import guarded_call, log_event
from suiarb.trading import (
    Arbitrage,
    CoinRegistry,
    ConfigurationError,
    DryRunSwapExecutor,
    LiveSwapExecutor,
    RideTheTrend,
    TradingBot,
    TransactionSigner,
)
from suiarb.venues import CetusConfig, CetusPool, RAMMConfig, RAMMPool, SuiRpcClient

SignerFactory = Callable[..., TransactionSigner]


def load_signer_factory(path: str) -> SignerFactory:
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(f"SIGNER_FACTORY must look like 'package.module:callable', got {path!r}.")
    try:
        module = importlib.import_module(module_name)
    except ImportError as error:
        raise ConfigurationError(f"Cannot import signer module {module_name!r}: {error}") from error

    factory = getattr(module, attribute, None)
    if not callable(factory):
        raise ConfigurationError(f"{path!r} does not name a callable signer factory.")
    return factory


def build_signer(factory: SignerFactory, *, address: str, app_settings: AppSettings) -> TransactionSigner:
    signer = factory(address=address, rpc_url=app_settings.sui_rpc_url)
    if signer.address.lower() != address.lower():
        raise ConfigurationError(f"Signer for {address} reports a different address: {signer.address}.")
    return signer


def build_bot(*, logger: logging.Logger, app_settings: AppSettings, rpc: SuiRpcClient) -> TradingBot:
    factory = load_signer_factory(app_settings.signer_factory)
    coins = CoinRegistry.default()
    sui = coins.by_symbol("SUI")
    usdc = coins.by_symbol("USDC")
    for asset_type in app_settings.ramm_asset_types:
        if asset_type not in coins:
            raise ConfigurationError(f"RAMM asset {asset_type} is not a known coin.")

    cetus_usdc_sui = CetusPool(
        logger=logger,
        rpc=rpc,
        config=CetusConfig(
            integrate_package=app_settings.cetus_integrate_package,
            global_config_id=app_settings.cetus_global_config_id,
        ),
        address=app_settings.cetus_pool_address,
        coin_a=usdc,
        coin_b=sui,
        sender_address=app_settings.cetus_signer_address,
        signer=build_signer(factory, address=app_settings.cetus_signer_address, app_settings=app_settings),
    )
    ramm_sui_usdc = RAMMPool(
        logger=logger,
        rpc=rpc,
        config=RAMMConfig(
            package_id=app_settings.ramm_package_id,
            asset_types=app_settings.ramm_asset_types,
            aggregator_ids=app_settings.ramm_aggregator_ids,
        ),
        address=app_settings.ramm_pool_address,
        coin_a=sui,
        coin_b=usdc,
        estimate_amount=app_settings.default_amount_sui,
        sender_address=app_settings.ramm_signer_address,
        signer=build_signer(factory, address=app_settings.ramm_signer_address, app_settings=app_settings),
    )

    bot = TradingBot(logger=logger)
    bot.add_pool(cetus_usdc_sui)
    bot.add_pool(ramm_sui_usdc)

    bot.add_strategy(
        Arbitrage(
            pool_chain=[(cetus_usdc_sui, True), (ramm_sui_usdc, True)],
            default_amounts=app_settings.default_amounts,
            lower_limit=app_settings.arbitrage_relative_limit,
            name="Arbitrage: USDC -CETUS-> SUI -RAMM-> USDC",
            slippage=app_settings.swap_slippage,
            logger=logger.getChild("strategy"),
        )
    )
    if app_settings.trend_enabled:
        bot.add_strategy(
            RideTheTrend(
                pool=cetus_usdc_sui,
                short=app_settings.trend_short_window,
                long=app_settings.trend_long_window,
                default_amounts=app_settings.default_amounts,
                limit=app_settings.ride_the_trend_limit,
                name="RideTheTrend: CETUS USDC/SUI",
                cooldown_rounds=app_settings.trend_cooldown_rounds,
                slippage=app_settings.swap_slippage,
                logger=logger.getChild("strategy"),
            )
        )
    return bot


async def main() -> None:
    load_dotenv()
    app_settings = AppSettings.from_env()
    logger = setup_logger(app_settings.log_level)

    try:
        app_settings.validate()
    except ConfigurationError as error:
        log_event(logger, level="critical", event="configuration_error", message=str(error))
        raise SystemExit(2) from error

    rpc = SuiRpcClient(
        logger=logger,
        rpc_url=app_settings.sui_rpc_url,
        timeout_seconds=app_settings.rpc_timeout_seconds,
    )
    try:
        bot = build_bot(logger=logger, app_settings=app_settings, rpc=rpc)
    except (ConfigurationError, ValueError) as error:
        log_event(logger, level="critical", event="configuration_error", message=str(error))
        raise SystemExit(2) from error

    if app_settings.dry_run:
        executor: DryRunSwapExecutor | LiveSwapExecutor = DryRunSwapExecutor(
            logger=logger,
            gas_budget=app_settings.gas_budget_mist,
        )
    else:
        executor = LiveSwapExecutor(logger=logger, gas_budget=app_settings.gas_budget_mist)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def request_shutdown(sig: signal.Signals) -> None:
        log_event(
            logger,
            level="info",
            event="shutdown_signal_received",
            message="Shutdown signal received",
            signal=sig.name,
        )
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, request_shutdown, sig)

    await bootstrap_dependencies(
        logger=logger,
        stop_event=stop_event,
        rpc=rpc,
        retry_seconds=app_settings.max_delay_seconds,
    )

    log_event(
        logger,
        level="info",
        event="bot_started",
        message="Bot process started",
        pools={pool.uuid: repr(pool) for pool in bot.pools},
        dry_run=app_settings.dry_run,
        run_duration_seconds=app_settings.run_duration_seconds,
    )

    try:
        await run_trading_loop(
            logger=logger,
            stop_event=stop_event,
            bot=bot,
            executor=executor,
            delay_controller=DelayController(
                base_seconds=app_settings.base_delay_seconds,
                max_seconds=app_settings.max_delay_seconds,
                factor=app_settings.backoff_factor,
            ),
            imbalance_gate=ImbalanceGate(
                logger=logger,
                threshold=app_settings.imbalance_threshold,
                cache_seconds=app_settings.imbalance_cache_seconds,
            ),
            run_duration_seconds=app_settings.run_duration_seconds,
        )
    finally:
        await guarded_call(
            rpc.close,
            logger=logger,
            event="rpc_close_failed",
            message="Failed to close RPC client",
        )
        log_event(logger, level="info", event="shutdown_completed", message="Shutdown completed")


if __name__ == "__main__":
    asyncio.run(main())
