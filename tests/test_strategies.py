from __future__ import annotations

import logging
import math
import unittest
from dataclasses import dataclass

from suiarb.trading.coins import Coin
from suiarb.trading.strategies import Arbitrage, RideTheTrend
from suiarb.trading.types import DataPoint

X = Coin(symbol="X", name="Coin X", coin_type="0x1::x::X", decimals=9)
Y = Coin(symbol="Y", name="Coin Y", coin_type="0x1::y::Y", decimals=6)
Z = Coin(symbol="Z", name="Coin Z", coin_type="0x1::z::Z", decimals=8)

DEFAULT_AMOUNTS = {X.coin_type: 0.05, Y.coin_type: 0.1, Z.coin_type: 0.2}
LOGGER = logging.getLogger("test.strategy")


@dataclass(frozen=True)
class FakePool:
    uuid: str
    coin_a: Coin
    coin_b: Coin


POOL_XY = FakePool(uuid="pool-xy", coin_a=X, coin_b=Y)
POOL_YX = FakePool(uuid="pool-yx", coin_a=Y, coin_b=X)


def price(pool: FakePool, value: float, fee: float = 0.003) -> DataPoint:
    return DataPoint(
        source_uri=pool.uuid,
        coin_type_from=pool.coin_a.coin_type,
        coin_type_to=pool.coin_b.coin_type,
        price=value,
        fee=fee,
    )


def make_arbitrage(lower_limit: float = 1.0005) -> Arbitrage:
    return Arbitrage(
        pool_chain=[(POOL_XY, True), (POOL_YX, True)],
        default_amounts=DEFAULT_AMOUNTS,
        lower_limit=lower_limit,
        name="test arbitrage",
        logger=LOGGER,
    )


class ArbitrageTests(unittest.TestCase):
    def test_forward_chain_emits_orders_as_declared(self) -> None:
        strategy = make_arbitrage()
        self.assertEqual(strategy.evaluate(price(POOL_XY, 2.0)), [])

        orders = strategy.evaluate(price(POOL_YX, 0.52))

        self.assertEqual([order.pool_uuid for order in orders], ["pool-xy", "pool-yx"])
        self.assertEqual([order.a2b for order in orders], [True, True])
        self.assertEqual(orders[0].asset_in, X.coin_type)
        self.assertEqual(orders[0].amount_in, 0.05)
        self.assertEqual(orders[0].amount_in_raw, 50_000_000)
        self.assertAlmostEqual(orders[0].estimated_price, 2.0)
        self.assertEqual(orders[1].asset_in, Y.coin_type)
        self.assertEqual(orders[1].amount_in_raw, 100_000)
        self.assertAlmostEqual(orders[1].amount_out, 0.1 * 0.52)

    def test_reverse_chain_walks_backwards_with_inverted_directions(self) -> None:
        strategy = make_arbitrage()
        strategy.evaluate(price(POOL_XY, 2.0))

        orders = strategy.evaluate(price(POOL_YX, 0.49))

        self.assertEqual([order.pool_uuid for order in orders], ["pool-yx", "pool-xy"])
        self.assertEqual([order.a2b for order in orders], [False, False])
        self.assertEqual(orders[0].asset_in, X.coin_type)
        self.assertEqual(orders[0].amount_in_raw, 50_000_000)
        self.assertAlmostEqual(orders[0].estimated_price, 1 / 0.49)
        self.assertEqual(orders[1].asset_in, Y.coin_type)
        self.assertAlmostEqual(orders[1].estimated_price, 0.5)

    def test_no_orders_inside_the_band(self) -> None:
        strategy = make_arbitrage()
        strategy.evaluate(price(POOL_XY, 2.0))
        self.assertEqual(strategy.evaluate(price(POOL_YX, 0.5)), [])

    def test_partial_chain_never_trades(self) -> None:
        strategy = make_arbitrage()
        self.assertEqual(strategy.evaluate(price(POOL_XY, 200.0)), [])

    def test_zero_and_non_finite_rates_short_circuit(self) -> None:
        for bad in (0.0, math.nan, math.inf, -1.0):
            with self.subTest(rate=bad):
                strategy = make_arbitrage()
                strategy.evaluate(price(POOL_XY, 2.0))
                self.assertEqual(strategy.evaluate(price(POOL_YX, bad)), [])

    def test_unusable_fee_short_circuits(self) -> None:
        strategy = make_arbitrage()
        strategy.evaluate(price(POOL_XY, 2.0))
        self.assertEqual(strategy.evaluate(price(POOL_YX, 0.52, fee=1.0)), [])

    def test_unsubscribed_source_is_ignored(self) -> None:
        strategy = make_arbitrage()
        other = FakePool(uuid="pool-other", coin_a=X, coin_b=Z)
        self.assertEqual(strategy.evaluate(price(other, 5.0)), [])
        self.assertIsNone(strategy.latest_rate("pool-other", True))

    def test_orders_are_all_or_nothing(self) -> None:
        rates = [0.3, 0.45, 0.49, 0.4999, 0.5, 0.5001, 0.51, 0.52, 0.7]
        for rate in rates:
            with self.subTest(rate=rate):
                strategy = make_arbitrage()
                strategy.evaluate(price(POOL_XY, 2.0))
                orders = strategy.evaluate(price(POOL_YX, rate))
                self.assertIn(len(orders), (0, len(strategy.hops)))

    def test_raising_the_limit_never_adds_trading_rounds(self) -> None:
        rates = [0.3, 0.45, 0.49, 0.4999, 0.5, 0.5001, 0.51, 0.52, 0.7]

        def trading_rounds(lower_limit: float) -> int:
            rounds = 0
            for rate in rates:
                strategy = make_arbitrage(lower_limit)
                strategy.evaluate(price(POOL_XY, 2.0))
                if strategy.evaluate(price(POOL_YX, rate)):
                    rounds += 1
            return rounds

        counts = [trading_rounds(limit) for limit in (1.0, 1.0005, 1.01, 1.05, 1.5)]
        self.assertEqual(counts, sorted(counts, reverse=True))

    def test_chain_is_not_mutated_by_evaluation(self) -> None:
        strategy = make_arbitrage()
        hops = strategy.hops
        strategy.evaluate(price(POOL_XY, 2.0))
        strategy.evaluate(price(POOL_YX, 0.49))
        self.assertEqual(strategy.hops, hops)

    def test_missing_default_amount_rejects_construction(self) -> None:
        with self.assertRaises(ValueError):
            Arbitrage(
                pool_chain=[(POOL_XY, True)],
                default_amounts={X.coin_type: 1.0},
                lower_limit=1.0005,
                name="incomplete",
            )

    def test_empty_chain_rejects_construction(self) -> None:
        with self.assertRaises(ValueError):
            Arbitrage(pool_chain=[], default_amounts=DEFAULT_AMOUNTS, lower_limit=1.0, name="empty")

    def test_uri_depends_on_parameters(self) -> None:
        self.assertEqual(make_arbitrage().uri, make_arbitrage().uri)
        self.assertNotEqual(make_arbitrage(1.0005).uri, make_arbitrage(1.01).uri)
        self.assertEqual(make_arbitrage().subscribes_to(), ["pool-xy", "pool-yx"])


class RideTheTrendTests(unittest.TestCase):
    def make_strategy(self, cooldown_rounds: int = 0) -> RideTheTrend:
        return RideTheTrend(
            pool=POOL_XY,
            short=2,
            long=4,
            default_amounts=DEFAULT_AMOUNTS,
            limit=1.01,
            name="trend",
            cooldown_rounds=cooldown_rounds,
            logger=LOGGER,
        )

    def test_waits_for_a_full_window(self) -> None:
        strategy = self.make_strategy()
        for value in (1.0, 1.0, 1.5):
            self.assertEqual(strategy.evaluate(price(POOL_XY, value)), [])

    def test_rising_price_buys_coin_a(self) -> None:
        strategy = self.make_strategy()
        orders = []
        for value in (1.0, 1.0, 1.2, 1.2):
            orders = strategy.evaluate(price(POOL_XY, value))

        self.assertEqual(len(orders), 1)
        self.assertFalse(orders[0].a2b)
        self.assertEqual(orders[0].asset_in, Y.coin_type)
        self.assertEqual(orders[0].amount_in_raw, 100_000)

    def test_falling_price_sells_coin_a(self) -> None:
        strategy = self.make_strategy()
        orders = []
        for value in (1.2, 1.2, 1.0, 1.0):
            orders = strategy.evaluate(price(POOL_XY, value))

        self.assertEqual(len(orders), 1)
        self.assertTrue(orders[0].a2b)
        self.assertEqual(orders[0].asset_in, X.coin_type)

    def test_flat_price_emits_nothing(self) -> None:
        strategy = self.make_strategy()
        for value in (1.0, 1.0, 1.0, 1.0, 1.0):
            self.assertEqual(strategy.evaluate(price(POOL_XY, value)), [])

    def test_cooldown_silences_following_rounds(self) -> None:
        strategy = self.make_strategy(cooldown_rounds=2)
        for value in (1.0, 1.0, 1.2):
            strategy.evaluate(price(POOL_XY, value))
        self.assertEqual(len(strategy.evaluate(price(POOL_XY, 1.2))), 1)
        self.assertEqual(strategy.evaluate(price(POOL_XY, 1.5)), [])
        self.assertEqual(strategy.evaluate(price(POOL_XY, 1.8)), [])
        self.assertEqual(len(strategy.evaluate(price(POOL_XY, 2.2))), 1)

    def test_invalid_windows_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            RideTheTrend(pool=POOL_XY, short=4, long=4, default_amounts=DEFAULT_AMOUNTS, limit=1.01, name="bad")


if __name__ == "__main__":
    unittest.main()
