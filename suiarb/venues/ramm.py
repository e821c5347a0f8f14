from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from suiarb.trading.coins import Coin, normalize_coin_type
from suiarb.trading.errors import DataUnavailableError
from suiarb.trading.transaction import Argument, TransactionBlock
from suiarb.trading.types import TradeOrder, TransactionSigner

from .base import Pool
from .sui_client import SuiRpcClient

# RAMM fixed-point values carry 12 decimal places.
RAMM_PRECISION = 10**12

PRICE_ESTIMATION_EVENT = "::events::PriceEstimationEvent"
POOL_STATE_EVENT = "::events::PoolStateEvent"
IMBALANCE_RATIO_EVENT = "::events::ImbalanceRatioEvent"
TRADE_EVENT = "::events::TradeEvent"


def _type_name(value: Any) -> str:
    if isinstance(value, dict):
        value = value.get("name") or value.get("fields", {}).get("name")
    raw = str(value or "").strip()
    if raw and not raw.startswith("0x"):
        raw = "0x" + raw
    return normalize_coin_type(raw)


def _find_event(events: list[dict[str, Any]], suffix: str) -> dict[str, Any] | None:
    for event in events:
        if str(event.get("type") or "").endswith(suffix):
            parsed = event.get("parsedJson")
            if isinstance(parsed, dict):
                return parsed
    return None


def parse_imbalance_ratios(parsed: dict[str, Any]) -> dict[str, float]:
    raw = parsed.get("imb_ratios")
    if isinstance(raw, dict) and "contents" in raw:
        entries = [(entry.get("key"), entry.get("value")) for entry in raw.get("contents") or []]
    elif isinstance(raw, dict):
        entries = list(raw.items())
    else:
        entries = []
    return {_type_name(key): int(value) / RAMM_PRECISION for key, value in entries if key is not None}


@dataclass(slots=True, frozen=True)
class RAMMConfig:
    package_id: str
    asset_types: tuple[str, ...]
    aggregator_ids: tuple[str, ...]
    clock_id: str = "0x6"

    def __post_init__(self) -> None:
        if len(self.asset_types) != len(self.aggregator_ids):
            raise ValueError("RAMM config needs one aggregator per asset.")
        if len(self.asset_types) < 2:
            raise ValueError("RAMM config needs at least two assets.")

    @property
    def asset_count(self) -> int:
        return len(self.asset_types)

    def target(self, function: str) -> str:
        count = self.asset_count
        return f"{self.package_id}::interface{count}::{function}_{count}"

    def ordered_assets(self, first: str, second: str) -> list[int]:
        """Asset indices with ``first`` and ``second`` leading, the rest in pool order."""
        normalized = [normalize_coin_type(asset) for asset in self.asset_types]
        try:
            leading = [normalized.index(normalize_coin_type(first)), normalized.index(normalize_coin_type(second))]
        except ValueError as error:
            raise ValueError(f"Asset is not part of this RAMM: {error}") from error
        return leading + [index for index in range(self.asset_count) if index not in leading]


class RAMMPool(Pool):
    """One trading pair of a multi-asset RAMM pool.

    Several pairs of the same RAMM share its address, so they also share the
    imbalance snapshot keyed by ``imbalance_key``.
    """

    venue = "ramm"

    def __init__(
        self,
        *,
        logger: logging.Logger,
        rpc: SuiRpcClient,
        config: RAMMConfig,
        address: str,
        coin_a: Coin,
        coin_b: Coin,
        estimate_amount: float,
        sender_address: str,
        signer: TransactionSigner | None = None,
    ) -> None:
        super().__init__(
            logger=logger,
            rpc=rpc,
            address=address,
            coin_a=coin_a,
            coin_b=coin_b,
            sender_address=sender_address,
            signer=signer,
        )
        config.ordered_assets(coin_a.coin_type, coin_b.coin_type)
        if estimate_amount <= 0:
            raise ValueError("RAMM price estimation needs a positive amount of coin A.")
        self._config = config
        self._estimate_amount = estimate_amount
        self.asset_balances: dict[str, int] = {}

    @property
    def imbalance_key(self) -> str:
        return self.address.lower()

    def _oracle_arguments(self, tx: TransactionBlock, indices: list[int]) -> list[Argument]:
        return [tx.object(self._config.aggregator_ids[index]) for index in indices]

    async def _dev_inspect(self, tx: TransactionBlock) -> list[dict[str, Any]]:
        if self.signer is None:
            raise RuntimeError(f"{self!r} needs a transaction signer to serialise dev-inspect calls.")
        tx_bytes = await self.signer.build_inspect(tx, sender=self.sender_address)
        result = await self._rpc.dev_inspect(sender=self.sender_address, tx_bytes=tx_bytes)
        if result.get("error"):
            raise DataUnavailableError(self.uuid, f"dev-inspect failed: {result['error']}")
        return [event for event in result.get("events") or [] if isinstance(event, dict)]

    async def estimate_price_and_fee(self) -> tuple[float, float]:
        amount_in = self.coin_a.scale(self._estimate_amount)
        indices = self._config.ordered_assets(self.coin_a.coin_type, self.coin_b.coin_type)

        tx = TransactionBlock()
        tx.move_call(
            target=self._config.target("estimate_price_with_amount_in"),
            type_arguments=[self._config.asset_types[index] for index in indices],
            arguments=[
                tx.object(self.address),
                tx.object(self._config.clock_id),
                tx.pure(amount_in, type_tag="u64"),
                *self._oracle_arguments(tx, indices),
            ],
        )

        events = await self._dev_inspect(tx)
        parsed = _find_event(events, PRICE_ESTIMATION_EVENT)
        if parsed is None:
            raise DataUnavailableError(self.uuid, "price estimation emitted no event")

        quoted_in = int(parsed.get("amount_in") or 0)
        quoted_out = int(parsed.get("amount_out") or 0)
        if quoted_in <= 0:
            raise DataUnavailableError(self.uuid, "price estimation returned a zero input amount")

        price = quoted_out / quoted_in
        scaled_price = price * (10 ** (self.coin_a.decimals - self.coin_b.decimals))
        fee = int(parsed.get("protocol_fee") or 0) / amount_in
        return scaled_price, fee

    async def create_swap_transaction(self, tx: TransactionBlock, order: TradeOrder) -> None:
        if order.amount_in_raw <= 0:
            raise ValueError(f"Swap amount must be positive, got {order.amount_in_raw}.")

        coin_in, coin_out = self.coins_for(order)
        payment_coin = await self.prepare_payment(tx, order)
        indices = self._config.ordered_assets(coin_in.coin_type, coin_out.coin_type)

        tx.move_call(
            target=self._config.target("trade_amount_in"),
            type_arguments=[self._config.asset_types[index] for index in indices],
            arguments=[
                tx.object(self.address),
                tx.object(self._config.clock_id),
                payment_coin,
                tx.pure(self.minimum_amount_out(order), type_tag="u64"),
                *self._oracle_arguments(tx, indices),
            ],
        )

    async def fetch_imbalance_ratios(self) -> dict[str, float]:
        indices = list(range(self._config.asset_count))
        tx = TransactionBlock()
        arguments = [tx.object(self.address), *self._oracle_arguments(tx, indices)]
        tx.move_call(
            target=self._config.target("get_pool_state"),
            type_arguments=list(self._config.asset_types),
            arguments=arguments,
        )
        tx.move_call(
            target=self._config.target("imbalance_ratios_event"),
            type_arguments=list(self._config.asset_types),
            arguments=arguments,
        )

        events = await self._dev_inspect(tx)
        state = _find_event(events, POOL_STATE_EVENT)
        if state is not None:
            balances = state.get("asset_balances") or []
            types = state.get("asset_types") or []
            self.asset_balances = {_type_name(asset): int(balance) for asset, balance in zip(types, balances)}

        ratios = _find_event(events, IMBALANCE_RATIO_EVENT)
        if ratios is None:
            raise DataUnavailableError(self.uuid, "imbalance query emitted no event")
        return parse_imbalance_ratios(ratios)

    def state_summary(self) -> dict[str, Any]:
        return {"ramm_id": self.address, "asset_balances": dict(self.asset_balances)}

    def extract_volume(self, events: list[dict[str, Any]]) -> dict[str, int]:
        volume: dict[str, int] = {}
        for event in events:
            if not str(event.get("type") or "").endswith(TRADE_EVENT):
                continue
            parsed = event.get("parsedJson") or {}
            if str(parsed.get("ramm_id") or self.address).lower() != self.address.lower():
                continue
            key = _type_name(parsed.get("token_in"))
            volume[key] = volume.get(key, 0) + int(parsed.get("amount_in") or 0)
        return volume
