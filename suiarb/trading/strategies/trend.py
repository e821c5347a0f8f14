from __future__ import annotations

import logging
from collections import deque
from statistics import fmean
from typing import Mapping

from ..coins import normalize_coin_type
from ..types import DataPoint, DataType, TradeOrder
from .arbitrage import TradablePool
from .base import Strategy, is_usable_rate


class RideTheTrend(Strategy):
    """Follow a single pool's momentum using short and long moving averages."""

    def __init__(
        self,
        *,
        pool: TradablePool,
        short: int,
        long: int,
        default_amounts: Mapping[str, float],
        limit: float,
        name: str,
        cooldown_rounds: int = 0,
        slippage: float = 0.01,
        logger: logging.Logger | None = None,
    ) -> None:
        if short <= 0 or long <= short:
            raise ValueError(f"Expected 0 < short < long, got short={short} long={long}.")

        amounts = {normalize_coin_type(coin_type): float(amount) for coin_type, amount in default_amounts.items()}
        for coin in (pool.coin_a, pool.coin_b):
            if normalize_coin_type(coin.coin_type) not in amounts:
                raise ValueError(f"No default amount configured for {coin.symbol} ({coin.coin_type}).")

        super().__init__(
            name=name,
            parameters={
                "pool": pool.uuid,
                "short": short,
                "long": long,
                "limit": limit,
                "cooldown_rounds": cooldown_rounds,
            },
            logger=logger,
        )
        self._pool_uuid = pool.uuid
        self._coin_a = pool.coin_a
        self._coin_b = pool.coin_b
        self._short = short
        self._limit = float(limit)
        self._cooldown_rounds = max(0, int(cooldown_rounds))
        self._default_amounts = amounts
        self._slippage = slippage
        self._history: deque[float] = deque(maxlen=long)
        self._cooldown_remaining = 0

    def subscribes_to(self) -> list[str]:
        return [self._pool_uuid]

    def evaluate(self, data: DataPoint) -> list[TradeOrder]:
        if data.type != DataType.PRICE or data.source_uri != self._pool_uuid:
            return []
        if not is_usable_rate(data.price):
            return []

        self._history.append(data.price)
        if self._cooldown_remaining > 0:
            self._cooldown_remaining -= 1
            return []
        if len(self._history) < (self._history.maxlen or 0):
            return []

        prices = list(self._history)
        short_average = fmean(prices[-self._short:])
        long_average = fmean(prices)
        ratio = short_average / long_average
        self.log_status({"short_average": short_average, "long_average": long_average, "ratio": ratio})

        if ratio > self._limit:
            # Coin A is appreciating against B: buy A.
            order = self._order(a2b=False, price=data.price)
        elif 1 / ratio > self._limit:
            order = self._order(a2b=True, price=data.price)
        else:
            return []

        self._cooldown_remaining = self._cooldown_rounds
        return [order]

    def _order(self, *, a2b: bool, price: float) -> TradeOrder:
        coin_in = self._coin_a if a2b else self._coin_b
        rate = price if a2b else 1.0 / price
        amount_in = self._default_amounts[normalize_coin_type(coin_in.coin_type)]
        return TradeOrder(
            pool_uuid=self._pool_uuid,
            asset_in=coin_in.coin_type,
            amount_in=amount_in,
            amount_in_raw=coin_in.scale(amount_in),
            amount_out=amount_in * rate,
            a2b=a2b,
            estimated_price=rate,
            slippage=self._slippage,
        )
