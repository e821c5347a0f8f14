from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from suiarb.common import log_event

from .coins import Coin
from .errors import InsufficientBalanceError, SubmissionFailedError, SubmissionRejectedError
from .transaction import TransactionBlock
from .types import DataPoint, SubmissionResult, TradeOrder


class SwapVenue(Protocol):
    venue: str

    @property
    def uuid(self) -> str:
        ...

    @property
    def uri(self) -> str:
        ...

    @property
    def coin_a(self) -> Coin:
        ...

    @property
    def coin_b(self) -> Coin:
        ...

    async def get_data(self) -> DataPoint | None:
        ...

    async def create_swap_transaction(self, tx: TransactionBlock, order: TradeOrder) -> None:
        ...

    async def submit(self, tx: TransactionBlock, *, gas_budget: int) -> SubmissionResult:
        ...

    def extract_volume(self, events: list[dict[str, Any]]) -> dict[str, int]:
        ...


@dataclass(slots=True, frozen=True)
class BuiltSwap:
    pool_uuid: str
    transaction: TransactionBlock
    orders: tuple[TradeOrder, ...]
    dropped: tuple[TradeOrder, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.transaction.is_empty


class LiveSwapExecutor:
    dry_run = False

    def __init__(self, *, logger: logging.Logger, gas_budget: int) -> None:
        self._logger = logger
        self._gas_budget = max(1, int(gas_budget))

    @property
    def gas_budget(self) -> int:
        return self._gas_budget

    async def build(self, pool: SwapVenue, orders: Sequence[TradeOrder]) -> BuiltSwap:
        tx = TransactionBlock()
        included: list[TradeOrder] = []
        dropped: list[TradeOrder] = []
        for order in orders:
            try:
                await pool.create_swap_transaction(tx, order)
            except InsufficientBalanceError as error:
                log_event(
                    self._logger,
                    level="warning",
                    event="insufficient_balance",
                    message="Dropped order the wallet cannot pay for",
                    pool=pool.uuid,
                    coin_type=error.coin_type,
                    requested=error.requested,
                    available=error.available,
                )
                dropped.append(order)
                continue
            included.append(order)

        tx.set_gas_budget(self._gas_budget)
        return BuiltSwap(pool_uuid=pool.uuid, transaction=tx, orders=tuple(included), dropped=tuple(dropped))

    async def submit(self, pool: SwapVenue, built: BuiltSwap) -> SubmissionResult:
        result = await pool.submit(built.transaction, gas_budget=self._gas_budget)
        if result.success:
            return result
        if result.error_kind == "input":
            raise SubmissionRejectedError(result.error, pool_uuid=pool.uuid, digest=result.digest)
        raise SubmissionFailedError(result.error, pool_uuid=pool.uuid, digest=result.digest)


class DryRunSwapExecutor(LiveSwapExecutor):
    dry_run = True

    async def submit(self, pool: SwapVenue, built: BuiltSwap) -> SubmissionResult:
        log_event(
            self._logger,
            level="info",
            event="swap_dry_run",
            message="Dry-run swap transaction built",
            pool=pool.uuid,
            venue=pool.venue,
            orders=[order.to_dict() for order in built.orders],
            transaction=built.transaction.to_dict(),
        )
        return SubmissionResult(success=True)


SwapExecutor = LiveSwapExecutor | DryRunSwapExecutor
