from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from suiarb.common import log_event, wait_with_stop
from suiarb.trading import (
    DataPoint,
    GatingBlockedError,
    SubmissionFailedError,
    SubmissionRejectedError,
    SwapExecutor,
    TradeOrder,
    TradingBot,
)
from suiarb.venues import ImbalanceAware

from .loop_helpers import DelayController, ImbalanceGate, TradeStatistics, group_orders_by_pool


@dataclass(slots=True)
class CycleOutcome:
    failed: bool = False
    skipped: bool = False
    orders: list[TradeOrder] = field(default_factory=list)
    submitted_pools: list[str] = field(default_factory=list)


async def poll_sources(*, logger: logging.Logger, bot: TradingBot) -> list[DataPoint] | None:
    observations: list[DataPoint] = []
    for source in bot.data_sources:
        try:
            data = await source.get_data()
        except asyncio.CancelledError:
            raise
        except Exception as error:
            log_event(
                logger,
                level="error",
                event="data_unavailable",
                message="Data source failed; skipping round",
                data_source=source.uri,
                error=str(error),
                error_type=type(error).__name__,
            )
            return None

        if data is None:
            log_event(
                logger,
                level="error",
                event="data_unavailable",
                message="No data received from data source; skipping round",
                data_source=source.uri,
            )
            return None

        log_event(logger, level="info", event="price", message="price observed", price=data.to_dict())
        observations.append(data)
    return observations


def collect_orders(*, logger: logging.Logger, bot: TradingBot, observations: list[DataPoint]) -> list[TradeOrder]:
    orders: list[TradeOrder] = []
    for data in observations:
        for strategy in bot.strategies_for(data.source_uri):
            for order in strategy.evaluate(data):
                log_event(
                    logger,
                    level="info",
                    event="trade_order",
                    message="Strategy emitted trade order",
                    strategy=strategy.uri,
                    strategy_name=strategy.name,
                    order=order.to_dict(),
                )
                orders.append(order)
    return orders


async def run_cycle(
    *,
    logger: logging.Logger,
    bot: TradingBot,
    executor: SwapExecutor,
    imbalance_gate: ImbalanceGate,
    statistics: TradeStatistics,
) -> CycleOutcome:
    outcome = CycleOutcome()

    observations = await poll_sources(logger=logger, bot=bot)
    if observations is None:
        outcome.skipped = True
        return outcome

    outcome.orders = collect_orders(logger=logger, bot=bot, observations=observations)
    statistics.orders += len(outcome.orders)

    for pool_uuid, orders in group_orders_by_pool(outcome.orders).items():
        pool = bot.pool(pool_uuid)

        if isinstance(pool, ImbalanceAware):
            try:
                await imbalance_gate.check(pool, pool_uuid, orders)
            except GatingBlockedError as error:
                statistics.gated_batches += 1
                log_event(
                    logger,
                    level="info",
                    event="gating_blocked",
                    message="Venue batch dropped by imbalance gate",
                    pool=pool_uuid,
                    coin_type=error.coin_type,
                    ratio=error.ratio,
                    threshold=error.threshold,
                    order_count=len(orders),
                )
                continue
            except asyncio.CancelledError:
                raise
            except Exception as error:
                statistics.gated_batches += 1
                log_event(
                    logger,
                    level="warning",
                    event="imbalance_unavailable",
                    message="Imbalance ratios unavailable; venue batch dropped",
                    pool=pool_uuid,
                    error=str(error),
                )
                continue

        try:
            built = await executor.build(pool, orders)
            if built.is_empty:
                continue

            result = await executor.submit(pool, built)
        except SubmissionRejectedError as error:
            statistics.rejected_submissions += 1
            log_event(
                logger,
                level="error",
                event="submission_rejected",
                message="Submission rejected for caller input; not retried this cycle",
                pool=pool_uuid,
                error=str(error),
                digest=error.digest,
            )
            continue
        except SubmissionFailedError as error:
            statistics.failed_submissions += 1
            outcome.failed = True
            log_event(
                logger,
                level="warning",
                event="submission_failed",
                message="Submission failed",
                pool=pool_uuid,
                error=str(error),
                digest=error.digest,
            )
            continue
        except asyncio.CancelledError:
            raise
        except Exception as error:
            statistics.failed_submissions += 1
            outcome.failed = True
            log_event(
                logger,
                level="exception",
                event="swap_execution_error",
                message="Unexpected error while building or submitting swap",
                pool=pool_uuid,
                error=str(error),
            )
            continue

        statistics.submissions += 1
        outcome.submitted_pools.append(pool_uuid)
        volume = pool.extract_volume(list(result.events))
        if volume:
            statistics.record_volume(pool_uuid, volume)
        log_event(
            logger,
            level="info",
            event="transaction",
            message="Swap batch submitted",
            pool=pool_uuid,
            digest=result.digest,
            order_count=len(built.orders),
            dropped_count=len(built.dropped),
            dry_run=executor.dry_run,
            volume=volume,
        )

    return outcome


def log_imbalance_snapshots(*, logger: logging.Logger, bot: TradingBot, imbalance_gate: ImbalanceGate) -> None:
    seen: set[str] = set()
    for pool in bot.pools:
        if not isinstance(pool, ImbalanceAware) or pool.imbalance_key in seen:
            continue
        seen.add(pool.imbalance_key)
        snapshot = imbalance_gate.snapshot(pool.imbalance_key)
        log_event(
            logger,
            level="info",
            event="ramm_pool_state",
            message="RAMM pool state",
            state=imbalance_gate.state(pool.imbalance_key).value,
            imbalance_ratios=snapshot.ratios if snapshot is not None else None,
            **pool.state_summary(),
        )


async def run_trading_loop(
    *,
    logger: logging.Logger,
    stop_event: asyncio.Event,
    bot: TradingBot,
    executor: SwapExecutor,
    delay_controller: DelayController,
    imbalance_gate: ImbalanceGate,
    run_duration_seconds: float,
    statistics: TradeStatistics | None = None,
    max_cycles: int | None = None,
) -> TradeStatistics:
    statistics = statistics or TradeStatistics()
    loop = asyncio.get_running_loop()
    started_at = loop.time()

    log_event(
        logger,
        level="info",
        event="strategies_loaded",
        message="strategies",
        strategies=bot.unique_strategies(),
        dry_run=executor.dry_run,
    )

    while not stop_event.is_set() and (loop.time() - started_at) < run_duration_seconds:
        failed = False
        try:
            outcome = await run_cycle(
                logger=logger,
                bot=bot,
                executor=executor,
                imbalance_gate=imbalance_gate,
                statistics=statistics,
            )
            failed = outcome.failed
            if outcome.skipped:
                statistics.skipped_cycles += 1
            log_imbalance_snapshots(logger=logger, bot=bot, imbalance_gate=imbalance_gate)
        except asyncio.CancelledError:
            raise
        except Exception as error:
            failed = True
            log_event(
                logger,
                level="exception",
                event="main_loop_error",
                message="Trading cycle failed",
                error=str(error),
            )
        finally:
            statistics.cycles += 1
            if failed:
                statistics.failed_cycles += 1

        delay_seconds = delay_controller.record(failed=failed)
        if failed:
            log_event(
                logger,
                level="warning",
                event="cycle_backoff",
                message="Backing off after failed cycle",
                delay_seconds=delay_seconds,
            )

        if max_cycles is not None and statistics.cycles >= max_cycles:
            break
        await wait_with_stop(stop_event, delay_seconds)

    log_event(
        logger,
        level="info",
        event="trading_loop_finished",
        message="Trading loop finished",
        statistics=statistics.to_dict(),
    )
    return statistics
