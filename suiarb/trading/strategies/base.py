from __future__ import annotations

import hashlib
import json
import logging
import math
from abc import ABC, abstractmethod
from typing import Any

from suiarb.common import log_event

from ..types import DataPoint, TradeOrder


def is_usable_rate(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def is_usable_fee(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and 0.0 <= value < 1.0


class Strategy(ABC):
    def __init__(
        self,
        *,
        name: str,
        parameters: dict[str, Any],
        logger: logging.Logger | None = None,
    ) -> None:
        self.name = name
        self.parameters = {"name": name, **parameters}
        encoded = json.dumps(self.parameters, ensure_ascii=False, sort_keys=True, separators=(",", ":"), default=str)
        self.uri = hashlib.md5(encoded.encode("utf-8")).hexdigest()
        self._logger = logger or logging.getLogger("sui_arb_bot.strategy")

    @abstractmethod
    def evaluate(self, data: DataPoint) -> list[TradeOrder]:
        """Return the orders warranted by ``data``; an empty list means no trade."""

    @abstractmethod
    def subscribes_to(self) -> list[str]:
        ...

    def log_status(self, status: dict[str, float]) -> None:
        log_event(
            self._logger,
            level="info",
            event="strategy_status",
            message="strategy status",
            strategy=self.name,
            strategy_uri=self.uri,
            data=status,
        )
