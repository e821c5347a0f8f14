from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

from .transaction import TransactionBlock


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DataType(str, Enum):
    PRICE = "price"


@dataclass(slots=True, frozen=True)
class DataPoint:
    source_uri: str
    coin_type_from: str
    coin_type_to: str
    price: float
    fee: float
    type: DataType = DataType.PRICE
    observed_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["type"] = self.type.value
        return payload


@dataclass(slots=True, frozen=True)
class TradeOrder:
    pool_uuid: str
    asset_in: str
    amount_in: float
    amount_in_raw: int
    amount_out: float
    a2b: bool
    estimated_price: float
    slippage: float = 0.01

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class OwnedCoin:
    coin_type: str
    coin_object_id: str
    balance: int


@dataclass(slots=True, frozen=True)
class SubmissionResult:
    success: bool
    digest: str | None = None
    error_kind: str | None = None
    error: str = ""
    events: tuple[dict[str, Any], ...] = ()


class PriceSource(Protocol):
    @property
    def uri(self) -> str:
        ...

    async def get_data(self) -> DataPoint | None:
        ...


class TransactionSigner(Protocol):
    """Serialises and signs transaction blocks; supplied by the host process."""

    @property
    def address(self) -> str:
        ...

    async def build(self, transaction: TransactionBlock, *, sender: str, gas_budget: int) -> str:
        ...

    async def build_inspect(self, transaction: TransactionBlock, *, sender: str) -> str:
        ...

    async def sign(self, tx_bytes: str) -> str:
        ...
