from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence

from ..coins import Coin, normalize_coin_type
from ..types import DataPoint, DataType, TradeOrder
from .base import Strategy, is_usable_fee, is_usable_rate


class TradablePool(Protocol):
    @property
    def uuid(self) -> str:
        ...

    @property
    def coin_a(self) -> Coin:
        ...

    @property
    def coin_b(self) -> Coin:
        ...


@dataclass(slots=True, frozen=True)
class Hop:
    pool_uuid: str
    coin_a: Coin
    coin_b: Coin
    a2b: bool

    @classmethod
    def from_pool(cls, pool: TradablePool, a2b: bool) -> "Hop":
        return cls(pool_uuid=pool.uuid, coin_a=pool.coin_a, coin_b=pool.coin_b, a2b=a2b)

    def inverted(self) -> "Hop":
        return Hop(pool_uuid=self.pool_uuid, coin_a=self.coin_a, coin_b=self.coin_b, a2b=not self.a2b)

    @property
    def coin_in(self) -> Coin:
        return self.coin_a if self.a2b else self.coin_b


class Arbitrage(Strategy):
    """Trade around a closed chain of pools when the round trip beats ``lower_limit``.

    ``pool_chain`` must be ordered so that swapping through every hop, in order,
    ends in the asset the chain started from. ``default_amounts`` maps coin
    types to unscaled trade sizes; each order is scaled by its input coin's
    decimals.
    """

    def __init__(
        self,
        *,
        pool_chain: Sequence[tuple[TradablePool, bool]],
        default_amounts: Mapping[str, float],
        lower_limit: float,
        name: str,
        slippage: float = 0.01,
        logger: logging.Logger | None = None,
    ) -> None:
        if not pool_chain:
            raise ValueError("Arbitrage requires at least one pool in the chain.")

        hops = tuple(Hop.from_pool(pool, a2b) for pool, a2b in pool_chain)
        amounts = {normalize_coin_type(coin_type): float(amount) for coin_type, amount in default_amounts.items()}
        for hop in hops:
            for coin in (hop.coin_a, hop.coin_b):
                if normalize_coin_type(coin.coin_type) not in amounts:
                    raise ValueError(f"No default amount configured for {coin.symbol} ({coin.coin_type}).")

        super().__init__(
            name=name,
            parameters={
                "pool_chain": [{"pool_uuid": hop.pool_uuid, "a2b": hop.a2b} for hop in hops],
                "lower_limit": lower_limit,
            },
            logger=logger,
        )
        self._hops = hops
        self._pool_uuids = frozenset(hop.pool_uuid for hop in hops)
        self._default_amounts = amounts
        self._lower_limit = float(lower_limit)
        self._slippage = slippage
        self._latest_rate: dict[str, float] = {}
        self._latest_fee: dict[str, float] = {}

    @property
    def lower_limit(self) -> float:
        return self._lower_limit

    @property
    def hops(self) -> tuple[Hop, ...]:
        return self._hops

    def subscribes_to(self) -> list[str]:
        return [hop.pool_uuid for hop in self._hops]

    def latest_rate(self, pool_uuid: str, a2b: bool) -> float | None:
        rate = self._latest_rate.get(pool_uuid)
        if not is_usable_rate(rate):
            return None
        return rate if a2b else 1.0 / rate

    def evaluate(self, data: DataPoint) -> list[TradeOrder]:
        if data.type != DataType.PRICE or data.source_uri not in self._pool_uuids:
            return []

        self._latest_rate[data.source_uri] = data.price
        self._latest_fee[data.source_uri] = data.fee

        forward = 1.0
        reverse = 1.0
        for hop in self._hops:
            rate = self.latest_rate(hop.pool_uuid, hop.a2b)
            fee = self._latest_fee.get(hop.pool_uuid)
            if rate is None or not is_usable_fee(fee):
                return []
            forward *= (1 - fee) * rate
            reverse *= (1 - fee) * (1 / rate)

        self.log_status({"arbitrage": forward, "reverse": reverse})

        if forward > self._lower_limit:
            return self._orders_for(self._hops)
        if reverse > self._lower_limit:
            return self._orders_for(tuple(hop.inverted() for hop in reversed(self._hops)))
        return []

    def _orders_for(self, hops: Sequence[Hop]) -> list[TradeOrder]:
        orders: list[TradeOrder] = []
        for hop in hops:
            rate = self.latest_rate(hop.pool_uuid, hop.a2b)
            if rate is None:
                return []
            coin_in = hop.coin_in
            amount_in = self._default_amounts[normalize_coin_type(coin_in.coin_type)]
            orders.append(
                TradeOrder(
                    pool_uuid=hop.pool_uuid,
                    asset_in=coin_in.coin_type,
                    amount_in=amount_in,
                    amount_in_raw=coin_in.scale(amount_in),
                    amount_out=amount_in * rate,
                    a2b=hop.a2b,
                    estimated_price=rate,
                    slippage=self._slippage,
                )
            )
        return orders
