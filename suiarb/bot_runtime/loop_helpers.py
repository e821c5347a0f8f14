from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable

from suiarb.common import guarded_call, log_event, wait_with_stop
from suiarb.trading import GatingBlockedError, TradeOrder, normalize_coin_type
from suiarb.venues import ImbalanceAware, SuiRpcClient


class DelayController:
    """Inter-cycle delay: multiplied on failure, reset on a clean cycle, always clamped."""

    def __init__(self, *, base_seconds: float, max_seconds: float, factor: float = 10.0) -> None:
        if base_seconds < 0:
            raise ValueError(f"Base delay must not be negative, got {base_seconds}.")
        if max_seconds < base_seconds:
            raise ValueError(f"Max delay {max_seconds} is below base delay {base_seconds}.")
        self._base = base_seconds
        self._max = max_seconds
        self._factor = max(1.0, factor)
        self._current = base_seconds

    @property
    def base_seconds(self) -> float:
        return self._base

    @property
    def max_seconds(self) -> float:
        return self._max

    @property
    def current(self) -> float:
        return self._current

    def _clamp(self, value: float) -> float:
        return min(self._max, max(self._base, value))

    def record(self, *, failed: bool) -> float:
        if failed:
            self._current = self._clamp(self._current * self._factor)
        else:
            self._current = self._clamp(self._base)
        return self._current


class GateState(str, Enum):
    UNKNOWN = "unknown"
    FRESH = "fresh"
    STALE = "stale"


@dataclass(slots=True, frozen=True)
class ImbalanceSnapshot:
    ratios: dict[str, float]
    fetched_at: float


class ImbalanceGate:
    """Cached per-venue imbalance ratios and the threshold check built on them.

    Venues sharing an ``imbalance_key`` share one snapshot.
    """

    def __init__(
        self,
        *,
        logger: logging.Logger,
        threshold: float = 1.2,
        cache_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._logger = logger
        self._threshold = threshold
        self._cache_seconds = max(0.0, cache_seconds)
        self._clock = clock
        self._snapshots: dict[str, ImbalanceSnapshot] = {}

    @property
    def threshold(self) -> float:
        return self._threshold

    def state(self, key: str) -> GateState:
        snapshot = self._snapshots.get(key)
        if snapshot is None:
            return GateState.UNKNOWN
        if self._clock() - snapshot.fetched_at >= self._cache_seconds:
            return GateState.STALE
        return GateState.FRESH

    def snapshot(self, key: str) -> ImbalanceSnapshot | None:
        return self._snapshots.get(key)

    async def ratios_for(self, venue: ImbalanceAware) -> dict[str, float]:
        key = venue.imbalance_key
        if self.state(key) == GateState.FRESH:
            return self._snapshots[key].ratios

        fetched = await venue.fetch_imbalance_ratios()
        ratios = {normalize_coin_type(coin_type): ratio for coin_type, ratio in fetched.items()}
        self._snapshots[key] = ImbalanceSnapshot(ratios=ratios, fetched_at=self._clock())
        log_event(
            self._logger,
            level="debug",
            event="imbalance_refreshed",
            message="Refreshed imbalance ratios",
            imbalance_key=key,
            ratios=ratios,
        )
        return ratios

    async def check(self, venue: ImbalanceAware, pool_uuid: str, orders: Iterable[TradeOrder]) -> None:
        ratios = await self.ratios_for(venue)
        for order in orders:
            ratio = ratios.get(normalize_coin_type(order.asset_in))
            # no ratio reported for the asset: nothing to compare against
            if ratio is not None and ratio > self._threshold:
                raise GatingBlockedError(
                    pool_uuid=pool_uuid,
                    coin_type=order.asset_in,
                    ratio=ratio,
                    threshold=self._threshold,
                )


@dataclass(slots=True)
class TradeStatistics:
    cycles: int = 0
    failed_cycles: int = 0
    skipped_cycles: int = 0
    orders: int = 0
    submissions: int = 0
    rejected_submissions: int = 0
    failed_submissions: int = 0
    gated_batches: int = 0
    volume_by_pool: dict[str, dict[str, int]] = field(default_factory=dict)

    def record_volume(self, pool_uuid: str, volume: dict[str, int]) -> None:
        totals = self.volume_by_pool.setdefault(pool_uuid, {})
        for coin_type, amount in volume.items():
            totals[coin_type] = totals.get(coin_type, 0) + amount

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycles": self.cycles,
            "failed_cycles": self.failed_cycles,
            "skipped_cycles": self.skipped_cycles,
            "orders": self.orders,
            "submissions": self.submissions,
            "rejected_submissions": self.rejected_submissions,
            "failed_submissions": self.failed_submissions,
            "gated_batches": self.gated_batches,
            "volume_by_pool": {pool: dict(volume) for pool, volume in self.volume_by_pool.items()},
        }


def group_orders_by_pool(orders: Iterable[TradeOrder]) -> dict[str, list[TradeOrder]]:
    grouped: dict[str, list[TradeOrder]] = {}
    for order in orders:
        grouped.setdefault(order.pool_uuid, []).append(order)
    return grouped


async def bootstrap_dependencies(
    *,
    logger: logging.Logger,
    stop_event: asyncio.Event,
    rpc: SuiRpcClient,
    retry_seconds: float,
) -> None:
    while not stop_event.is_set():
        try:
            await rpc.connect()
            await rpc.healthcheck()
            return
        except asyncio.CancelledError:
            raise
        except Exception as error:
            log_event(
                logger,
                level="exception",
                event="bootstrap_error",
                message="Dependency bootstrap failed",
                error=str(error),
            )
            await guarded_call(
                rpc.close,
                logger=logger,
                event="bootstrap_rpc_close_failed",
                message="Failed to close RPC client during bootstrap retry",
            )
            await wait_with_stop(stop_event, retry_seconds)

    raise RuntimeError("Shutdown requested before dependencies were initialized.")


__all__ = [
    "bootstrap_dependencies",
    "DelayController",
    "GateState",
    "ImbalanceGate",
    "ImbalanceSnapshot",
    "TradeStatistics",
    "group_orders_by_pool",
]
