from __future__ import annotations

import logging
import math
import uuid
from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from suiarb.common import log_event
from suiarb.trading.coins import Coin, is_native_coin, normalize_coin_type
from suiarb.trading.errors import DataUnavailableError, InsufficientBalanceError
from suiarb.trading.payment import PaymentSelector
from suiarb.trading.transaction import Argument, TransactionBlock
from suiarb.trading.types import DataPoint, OwnedCoin, SubmissionResult, TradeOrder, TransactionSigner

from .sui_client import RpcMethodError, SuiRpcClient

POOL_NAMESPACE = uuid.UUID("8b05a61f-0c4c-428c-9a91-8955d8119419")

INPUT_ERROR_MARKERS = (
    "gas budget",
    "gasbudget",
    "insufficient gas",
    "insufficientgas",
    "gasbalancetoolow",
    "insufficientcoinbalance",
    "insufficient coin balance",
)


def pool_uuid(address: str, coin_type_a: str, coin_type_b: str) -> str:
    coin_types = sorted([normalize_coin_type(coin_type_a), normalize_coin_type(coin_type_b)])
    return str(uuid.uuid5(POOL_NAMESPACE, ",".join([address.strip().lower(), *coin_types])))


def classify_failure(error: str) -> str:
    """Map an execution failure message to ``"input"`` or ``"transient"``."""
    lowered = (error or "").lower()
    if any(marker in lowered for marker in INPUT_ERROR_MARKERS):
        return "input"
    return "transient"


@runtime_checkable
class ImbalanceAware(Protocol):
    @property
    def imbalance_key(self) -> str:
        ...

    async def fetch_imbalance_ratios(self) -> dict[str, float]:
        ...

    def state_summary(self) -> dict[str, Any]:
        ...


class Pool(ABC):
    venue = "pool"

    def __init__(
        self,
        *,
        logger: logging.Logger,
        rpc: SuiRpcClient,
        address: str,
        coin_a: Coin,
        coin_b: Coin,
        sender_address: str,
        signer: TransactionSigner | None = None,
    ) -> None:
        self._logger = logger
        self._rpc = rpc
        self.address = address.strip()
        self._coin_a = coin_a
        self._coin_b = coin_b
        self.sender_address = sender_address.strip()
        self.signer = signer
        self._uuid = pool_uuid(self.address, coin_a.coin_type, coin_b.coin_type)
        self._payments = PaymentSelector(logger=logger, fetch_coins=self.owned_coins)

    @property
    def uuid(self) -> str:
        return self._uuid

    @property
    def uri(self) -> str:
        return self._uuid

    @property
    def coin_a(self) -> Coin:
        return self._coin_a

    @property
    def coin_b(self) -> Coin:
        return self._coin_b

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._coin_a.symbol}/{self._coin_b.symbol} @ {self.address})"

    @abstractmethod
    async def estimate_price_and_fee(self) -> tuple[float, float]:
        """Return the price of one unit of coin A in units of coin B and the fee fraction."""

    @abstractmethod
    async def create_swap_transaction(self, tx: TransactionBlock, order: TradeOrder) -> None:
        ...

    def extract_volume(self, events: list[dict[str, Any]]) -> dict[str, int]:
        return {}

    async def get_data(self) -> DataPoint:
        price, fee = await self.estimate_price_and_fee()
        if not math.isfinite(price) or price <= 0:
            raise DataUnavailableError(self._uuid, f"unusable price {price}")
        return DataPoint(
            source_uri=self._uuid,
            coin_type_from=self._coin_a.coin_type,
            coin_type_to=self._coin_b.coin_type,
            price=price,
            fee=fee,
        )

    async def owned_coins(self, owner: str, coin_type: str) -> list[OwnedCoin]:
        return await self._rpc.get_coins(owner, coin_type)

    def coins_for(self, order: TradeOrder) -> tuple[Coin, Coin]:
        if order.a2b:
            return self._coin_a, self._coin_b
        return self._coin_b, self._coin_a

    def minimum_amount_out(self, order: TradeOrder) -> int:
        _, coin_out = self.coins_for(order)
        return max(1, math.floor(order.amount_out * (1 - order.slippage) * (10 ** coin_out.decimals)))

    async def prepare_payment(self, tx: TransactionBlock, order: TradeOrder) -> Argument:
        if is_native_coin(order.asset_in):
            balance = await self._rpc.get_balance(self.sender_address, order.asset_in)
            available = balance - tx.reservations.gas_split
            if available < order.amount_in_raw:
                raise InsufficientBalanceError(
                    coin_type=order.asset_in,
                    requested=order.amount_in_raw,
                    available=available,
                )
        return await self._payments.prepare(
            tx,
            owner=self.sender_address,
            coin_type=order.asset_in,
            amount=order.amount_in_raw,
        )

    async def submit(self, tx: TransactionBlock, *, gas_budget: int) -> SubmissionResult:
        if self.signer is None:
            raise RuntimeError(f"{self!r} has no transaction signer configured.")

        tx.set_gas_budget(gas_budget)
        try:
            tx_bytes = await self.signer.build(tx, sender=self.sender_address, gas_budget=gas_budget)
            signature = await self.signer.sign(tx_bytes)
            response = await self._rpc.execute_transaction_block(tx_bytes=tx_bytes, signatures=[signature])
        except RpcMethodError as error:
            return SubmissionResult(success=False, error_kind=classify_failure(str(error)), error=str(error))

        digest = response.get("digest")
        effects = response.get("effects") or {}
        status = effects.get("status") or {}
        events = tuple(event for event in response.get("events") or [] if isinstance(event, dict))
        if status.get("status") == "success":
            log_event(
                self._logger,
                level="info",
                event="swap_submitted",
                message="Swap transaction executed",
                pool=self._uuid,
                venue=self.venue,
                digest=digest,
                event_count=len(events),
            )
            return SubmissionResult(success=True, digest=digest, events=events)

        error = str(status.get("error") or "execution status unavailable")
        return SubmissionResult(
            success=False,
            digest=digest,
            error_kind=classify_failure(error),
            error=error,
            events=events,
        )
