from __future__ import annotations

import logging
from typing import Any

from suiarb.common import log_event

from .executors import SwapVenue
from .strategies import Strategy
from .types import PriceSource


class TradingBot:
    """Routing tables for venues, price sources and the strategies listening to them."""

    def __init__(self, *, logger: logging.Logger) -> None:
        self._logger = logger
        self._pools: dict[str, SwapVenue] = {}
        self._sources: dict[str, PriceSource] = {}
        self._strategies: dict[str, list[Strategy]] = {}

    @property
    def pools(self) -> list[SwapVenue]:
        return list(self._pools.values())

    @property
    def data_sources(self) -> list[PriceSource]:
        return list(self._sources.values())

    def pool(self, pool_uuid: str) -> SwapVenue:
        try:
            return self._pools[pool_uuid]
        except KeyError as error:
            raise KeyError(f"Unknown pool {pool_uuid}") from error

    def add_pool(self, pool: SwapVenue) -> None:
        if pool.uuid in self._pools:
            raise ValueError(
                f"Pool {pool.uuid} has already been added with asset pair "
                f"{pool.coin_a.coin_type}/{pool.coin_b.coin_type}."
            )
        self.add_data_source(pool)
        self._pools[pool.uuid] = pool
        log_event(
            self._logger,
            level="info",
            event="pool_registered",
            message="Registered trading pool",
            pool=pool.uuid,
            venue=pool.venue,
            pair=f"{pool.coin_a.symbol}/{pool.coin_b.symbol}",
        )

    def add_data_source(self, source: PriceSource) -> None:
        if source.uri in self._sources:
            raise ValueError(f"Data source {source.uri} has already been added.")
        self._sources[source.uri] = source
        self._strategies[source.uri] = []

    def add_strategy(self, strategy: Strategy) -> None:
        subscriptions = strategy.subscribes_to()
        unknown = [uri for uri in subscriptions if uri not in self._sources]
        if unknown:
            raise ValueError(f"Bot does not know the data source(s): {', '.join(unknown)}")

        for uri in subscriptions:
            if strategy not in self._strategies[uri]:
                self._strategies[uri].append(strategy)

    def strategies_for(self, source_uri: str) -> list[Strategy]:
        return list(self._strategies.get(source_uri, ()))

    def unique_strategies(self) -> dict[str, dict[str, Any]]:
        unique: dict[str, dict[str, Any]] = {}
        for strategies in self._strategies.values():
            for strategy in strategies:
                unique.setdefault(strategy.uri, strategy.parameters)
        return unique
