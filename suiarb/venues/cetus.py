from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from suiarb.trading.coins import Coin, normalize_coin_type
from suiarb.trading.transaction import TransactionBlock
from suiarb.trading.types import TradeOrder, TransactionSigner

from .base import Pool
from .sui_client import SuiRpcClient

MIN_SQRT_PRICE = 4295048016
MAX_SQRT_PRICE = 79226673515401279992447579055
Q64_SQUARED = 2**128
FEE_RATE_DENOMINATOR = 1_000_000


@dataclass(slots=True, frozen=True)
class CetusConfig:
    integrate_package: str
    global_config_id: str
    clock_id: str = "0x6"


class CetusPool(Pool):
    """Concentrated-liquidity pool on Cetus."""

    venue = "cetus"

    def __init__(
        self,
        *,
        logger: logging.Logger,
        rpc: SuiRpcClient,
        config: CetusConfig,
        address: str,
        coin_a: Coin,
        coin_b: Coin,
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
        self._config = config

    async def estimate_price_and_fee(self) -> tuple[float, float]:
        fields = await self._rpc.get_object_fields(self.address)
        sqrt_price = int(fields["current_sqrt_price"])
        fee_rate = int(fields["fee_rate"])
        price = sqrt_price**2 / Q64_SQUARED
        scaled_price = price * (10 ** (self.coin_a.decimals - self.coin_b.decimals))
        return scaled_price, fee_rate / FEE_RATE_DENOMINATOR

    async def create_swap_transaction(self, tx: TransactionBlock, order: TradeOrder) -> None:
        if order.amount_in_raw <= 0:
            raise ValueError(f"Swap amount must be positive, got {order.amount_in_raw}.")

        coin_in, _ = self.coins_for(order)
        payment_coin = await self.prepare_payment(tx, order)
        direction = "a2b" if order.a2b else "b2a"
        sqrt_price_limit = MIN_SQRT_PRICE if order.a2b else MAX_SQRT_PRICE

        tx.move_call(
            target=f"{self._config.integrate_package}::pool_script::swap_{direction}",
            type_arguments=[self.coin_a.coin_type, self.coin_b.coin_type],
            arguments=[
                tx.object(self._config.global_config_id),
                tx.object(self.address),
                tx.make_move_vec([payment_coin], type_tag=f"0x2::coin::Coin<{coin_in.coin_type}>"),
                tx.pure(True, type_tag="bool"),
                tx.pure(order.amount_in_raw, type_tag="u64"),
                tx.pure(self.minimum_amount_out(order), type_tag="u64"),
                tx.pure(sqrt_price_limit, type_tag="u128"),
                tx.object(self._config.clock_id),
            ],
        )

    def extract_volume(self, events: list[dict[str, Any]]) -> dict[str, int]:
        volume: dict[str, int] = {}
        for event in events:
            if not str(event.get("type") or "").endswith("::pool::SwapEvent"):
                continue
            parsed = event.get("parsedJson") or {}
            if str(parsed.get("pool") or "").lower() != self.address.lower():
                continue
            coin_in = self.coin_a if parsed.get("atob") else self.coin_b
            key = normalize_coin_type(coin_in.coin_type)
            volume[key] = volume.get(key, 0) + int(parsed.get("amount_in") or 0)
        return volume
