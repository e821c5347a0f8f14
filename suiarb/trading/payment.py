from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Sequence

from suiarb.common import log_event

from .coins import is_native_coin
from .errors import InsufficientBalanceError
from .transaction import Argument, CoinReservations, TransactionBlock
from .types import OwnedCoin

CoinFetcher = Callable[[str, str], Awaitable[list[OwnedCoin]]]


@dataclass(slots=True, frozen=True)
class PaymentPlan:
    coin_type: str
    amount: int
    use_gas: bool = False
    base_coin_id: str | None = None
    merged_coin_ids: tuple[str, ...] = ()
    selected_balance: int = 0

    @property
    def selected_coin_ids(self) -> tuple[str, ...]:
        if self.base_coin_id is None:
            return ()
        return (self.base_coin_id, *self.merged_coin_ids)

    def apply(self, tx: TransactionBlock) -> Argument:
        """Write the merge/split commands into ``tx`` and return the payment coin.

        The split is recorded in ``tx.reservations`` so later payments in the
        same block only see what is left.
        """
        if self.use_gas:
            [payment_coin] = tx.split_coins(tx.gas, [tx.pure(self.amount, type_tag="u64")])
            tx.reservations.gas_split += self.amount
            return payment_coin

        if self.base_coin_id is None:
            raise ValueError("Payment plan without gas fast path requires a base coin.")

        base_coin = tx.object(self.base_coin_id)
        tx.merge_coins(base_coin, [tx.object(coin_id) for coin_id in self.merged_coin_ids])
        [payment_coin] = tx.split_coins(base_coin, [tx.pure(self.amount, type_tag="u64")])
        tx.reservations.merged.update(self.merged_coin_ids)
        tx.reservations.remaining[self.base_coin_id] = self.selected_balance - self.amount
        return payment_coin


def unreserved_coins(coins: Sequence[OwnedCoin], reservations: CoinReservations) -> list[OwnedCoin]:
    """Owned coins as the rest of the block sees them: merged coins gone, split coins reduced."""
    available: list[OwnedCoin] = []
    for coin in coins:
        if coin.coin_object_id in reservations.merged:
            continue
        balance = reservations.remaining.get(coin.coin_object_id, coin.balance)
        if balance > 0:
            available.append(replace(coin, balance=balance))
    return available


def select_payment(coin_type: str, amount: int, coins: Sequence[OwnedCoin]) -> PaymentPlan:
    if amount <= 0:
        raise ValueError(f"Payment amount must be positive, got {amount}.")

    if is_native_coin(coin_type):
        return PaymentPlan(coin_type=coin_type, amount=amount, use_gas=True)

    for coin in coins:
        if coin.balance >= amount:
            return PaymentPlan(
                coin_type=coin_type,
                amount=amount,
                base_coin_id=coin.coin_object_id,
                selected_balance=coin.balance,
            )

    # sorted() is stable, so equal balances keep their query order
    ordered = sorted(coins, key=lambda coin: coin.balance)
    running_total = 0
    selected: list[OwnedCoin] = []
    for coin in ordered:
        running_total += coin.balance
        selected.append(coin)
        if running_total >= amount:
            break

    if running_total < amount:
        raise InsufficientBalanceError(coin_type=coin_type, requested=amount, available=running_total)

    return PaymentPlan(
        coin_type=coin_type,
        amount=amount,
        base_coin_id=selected[0].coin_object_id,
        merged_coin_ids=tuple(coin.coin_object_id for coin in selected[1:]),
        selected_balance=running_total,
    )


class PaymentSelector:
    def __init__(self, *, logger: logging.Logger, fetch_coins: CoinFetcher) -> None:
        self._logger = logger
        self._fetch_coins = fetch_coins

    async def plan(
        self,
        *,
        owner: str,
        coin_type: str,
        amount: int,
        reservations: CoinReservations | None = None,
    ) -> PaymentPlan:
        if is_native_coin(coin_type):
            return select_payment(coin_type, amount, ())

        coins = await self._fetch_coins(owner, coin_type)
        coins = unreserved_coins(coins, reservations or CoinReservations())
        plan = select_payment(coin_type, amount, coins)
        log_event(
            self._logger,
            level="debug",
            event="payment_selected",
            message="Selected owned coins for payment",
            coin_type=coin_type,
            amount=amount,
            owned_coin_count=len(coins),
            selected_coin_ids=list(plan.selected_coin_ids),
        )
        return plan

    async def prepare(
        self,
        tx: TransactionBlock,
        *,
        owner: str,
        coin_type: str,
        amount: int,
    ) -> Argument:
        plan = await self.plan(owner=owner, coin_type=coin_type, amount=amount, reservations=tx.reservations)
        return plan.apply(tx)
