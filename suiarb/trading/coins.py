from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

SUI_TYPE_SHORT = "0x2::sui::SUI"
SUI_TYPE_LONG = "0x0000000000000000000000000000000000000000000000000000000000000002::sui::SUI"


def normalize_coin_type(coin_type: str) -> str:
    raw = "".join((coin_type or "").split())
    parts = raw.split("::")
    if len(parts) != 3:
        return raw
    address, module, name = parts
    if address.lower().startswith("0x"):
        address = "0x" + address[2:].lower().rjust(64, "0")
    return f"{address}::{module}::{name}"


def is_native_coin(coin_type: str) -> bool:
    return normalize_coin_type(coin_type) == SUI_TYPE_LONG


@dataclass(slots=True, frozen=True)
class Coin:
    symbol: str
    name: str
    coin_type: str
    decimals: int

    def scale(self, amount: float) -> int:
        return int(round(amount * (10 ** self.decimals)))

    def unscale(self, raw_amount: int) -> float:
        return raw_amount / (10 ** self.decimals)


SUI = Coin(symbol="SUI", name="Sui", coin_type=SUI_TYPE_LONG, decimals=9)
USDT = Coin(
    symbol="USDT",
    name="Tether USD",
    coin_type="0xc060006111016b8a020ad5b33834984a437aaa7d3c74c18e09a95d48aceab08c::coin::COIN",
    decimals=6,
)
USDC = Coin(
    symbol="USDC",
    name="USD Coin",
    coin_type="0x5d4b302506645c37ff133b98c4b50a5ae14841659738d6d733d59d0d217a93bf::coin::COIN",
    decimals=6,
)
WBTC = Coin(
    symbol="WBTC",
    name="Wrapped BTC",
    coin_type="0x027792d9fed7f9844eb4839566001bb6f6cb4804f66aa2da6fe1ee242d896881::coin::COIN",
    decimals=8,
)

DEFAULT_COINS = (SUI, USDT, USDC, WBTC)


class CoinRegistry:
    """Read-only table of known assets, keyed by normalised coin type.

    Built once at startup and handed to the components that scale amounts.
    """

    def __init__(self, coins: Iterable[Coin] = ()) -> None:
        self._by_type: dict[str, Coin] = {}
        self._by_symbol: dict[str, Coin] = {}
        for coin in coins:
            self.register(coin)

    @classmethod
    def default(cls) -> "CoinRegistry":
        return cls(DEFAULT_COINS)

    def register(self, coin: Coin) -> None:
        key = normalize_coin_type(coin.coin_type)
        if key in self._by_type:
            raise ValueError(f"Coin type {coin.coin_type} is already registered.")
        if coin.symbol in self._by_symbol:
            raise ValueError(f"Coin symbol {coin.symbol} is already registered.")
        self._by_type[key] = coin
        self._by_symbol[coin.symbol] = coin

    def get(self, coin_type: str) -> Coin:
        try:
            return self._by_type[normalize_coin_type(coin_type)]
        except KeyError:
            raise KeyError(f"Unknown coin type: {coin_type}") from None

    def by_symbol(self, symbol: str) -> Coin:
        try:
            return self._by_symbol[symbol]
        except KeyError:
            raise KeyError(f"Unknown coin symbol: {symbol}") from None

    def symbol_for(self, coin_type: str) -> str:
        return self.get(coin_type).symbol

    def scale(self, coin_type: str, amount: float) -> int:
        return self.get(coin_type).scale(amount)

    def unscale(self, coin_type: str, raw_amount: int) -> float:
        return self.get(coin_type).unscale(raw_amount)

    def __contains__(self, coin_type: object) -> bool:
        return isinstance(coin_type, str) and normalize_coin_type(coin_type) in self._by_type

    def __iter__(self) -> Iterator[Coin]:
        return iter(self._by_type.values())

    def __len__(self) -> int:
        return len(self._by_type)
