from __future__ import annotations

import logging
import unittest
from typing import Any

from suiarb.trading import (
    SUI,
    USDC,
    Arbitrage,
    DataPoint,
    DryRunSwapExecutor,
    LiveSwapExecutor,
    SubmissionFailedError,
    SubmissionRejectedError,
    SubmissionResult,
    TradeOrder,
    TradingBot,
    TransactionBlock,
)

LOGGER = logging.getLogger("test.engine")


class StubPool:
    venue = "stub"

    def __init__(self, uuid: str, result: SubmissionResult | None = None) -> None:
        self.uuid = uuid
        self.uri = uuid
        self.coin_a = SUI
        self.coin_b = USDC
        self.result = result or SubmissionResult(success=True, digest="0xok")
        self.submit_calls = 0

    async def get_data(self) -> DataPoint | None:
        return None

    async def create_swap_transaction(self, tx: TransactionBlock, order: TradeOrder) -> None:
        tx.move_call(target="0x1::stub::swap", arguments=[])

    async def submit(self, tx: TransactionBlock, *, gas_budget: int) -> SubmissionResult:
        self.submit_calls += 1
        return self.result

    def extract_volume(self, events: list[dict[str, Any]]) -> dict[str, int]:
        return {}


def arbitrage(first: StubPool, second: StubPool, lower_limit: float = 1.0005) -> Arbitrage:
    return Arbitrage(
        pool_chain=[(first, True), (second, False)],
        default_amounts={SUI.coin_type: 0.05, USDC.coin_type: 0.1},
        lower_limit=lower_limit,
        name="stub arbitrage",
    )


ORDER = TradeOrder(
    pool_uuid="p1",
    asset_in=SUI.coin_type,
    amount_in=0.05,
    amount_in_raw=50_000_000,
    amount_out=0.1,
    a2b=True,
    estimated_price=2.0,
)


class TradingBotTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bot = TradingBot(logger=LOGGER)
        self.first = StubPool("p1")
        self.second = StubPool("p2")
        self.bot.add_pool(self.first)
        self.bot.add_pool(self.second)

    def test_pools_are_also_data_sources(self) -> None:
        self.assertEqual([source.uri for source in self.bot.data_sources], ["p1", "p2"])
        self.assertIs(self.bot.pool("p2"), self.second)

    def test_duplicate_pool_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.bot.add_pool(StubPool("p1"))

    def test_unknown_pool_lookup_raises_key_error(self) -> None:
        with self.assertRaises(KeyError):
            self.bot.pool("missing")

    def test_strategy_with_unknown_source_is_not_registered(self) -> None:
        strategy = arbitrage(self.first, StubPool("unregistered"))

        with self.assertRaises(ValueError):
            self.bot.add_strategy(strategy)
        self.assertEqual(self.bot.strategies_for("p1"), [])

    def test_strategy_is_routed_to_every_subscription_once(self) -> None:
        strategy = arbitrage(self.first, self.second)
        self.bot.add_strategy(strategy)
        self.bot.add_strategy(strategy)

        self.assertEqual(self.bot.strategies_for("p1"), [strategy])
        self.assertEqual(self.bot.strategies_for("p2"), [strategy])
        self.assertEqual(list(self.bot.unique_strategies()), [strategy.uri])
        self.assertEqual(self.bot.unique_strategies()[strategy.uri]["name"], "stub arbitrage")


class ExecutorTests(unittest.IsolatedAsyncioTestCase):
    async def test_dry_run_logs_transaction_without_submitting(self) -> None:
        pool = StubPool("p1")
        executor = DryRunSwapExecutor(logger=LOGGER, gas_budget=2_000)

        built = await executor.build(pool, [ORDER])
        with self.assertLogs(LOGGER, level="INFO") as captured:
            result = await executor.submit(pool, built)

        self.assertTrue(result.success)
        self.assertEqual(pool.submit_calls, 0)
        self.assertEqual(built.transaction.gas_budget, 2_000)
        record = captured.records[0]
        self.assertEqual(record.event, "swap_dry_run")
        self.assertEqual(record.transaction["gasBudget"], 2_000)

    async def test_live_input_failure_raises_rejected(self) -> None:
        pool = StubPool("p1", SubmissionResult(success=False, error_kind="input", error="InsufficientGas"))
        executor = LiveSwapExecutor(logger=LOGGER, gas_budget=2_000)
        built = await executor.build(pool, [ORDER])

        with self.assertRaises(SubmissionRejectedError) as context:
            await executor.submit(pool, built)

        self.assertEqual(context.exception.error_kind, "input")
        self.assertEqual(context.exception.pool_uuid, "p1")

    async def test_live_transient_failure_raises_failed(self) -> None:
        pool = StubPool("p1", SubmissionResult(success=False, error_kind="transient", error="timeout", digest="0xd"))
        executor = LiveSwapExecutor(logger=LOGGER, gas_budget=2_000)
        built = await executor.build(pool, [ORDER])

        with self.assertRaises(SubmissionFailedError) as context:
            await executor.submit(pool, built)

        self.assertEqual(context.exception.digest, "0xd")

    async def test_build_packs_all_orders_into_one_transaction(self) -> None:
        executor = LiveSwapExecutor(logger=LOGGER, gas_budget=2_000)
        built = await executor.build(StubPool("p1"), [ORDER, ORDER])

        self.assertEqual(len(built.transaction.commands), 2)
        self.assertEqual(built.orders, (ORDER, ORDER))
        self.assertFalse(built.is_empty)


if __name__ == "__main__":
    unittest.main()
