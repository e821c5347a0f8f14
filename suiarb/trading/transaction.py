from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class Argument:
    kind: str
    index: int = 0
    sub_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.kind == "GasCoin":
            return {"kind": "GasCoin"}
        payload: dict[str, Any] = {"kind": self.kind, "index": self.index}
        if self.sub_index is not None:
            payload["resultIndex"] = self.sub_index
        return payload


GAS_COIN = Argument(kind="GasCoin")


@dataclass(slots=True)
class CoinReservations:
    """Owned-coin balance already committed by earlier commands of one block."""

    remaining: dict[str, int] = field(default_factory=dict)
    merged: set[str] = field(default_factory=set)
    gas_split: int = 0


@dataclass(slots=True)
class TransactionBlock:
    """Programmable transaction block under construction.

    Only records inputs and commands; byte encoding and signing belong to the
    host's ``TransactionSigner``.
    """

    inputs: list[dict[str, Any]] = field(default_factory=list)
    commands: list[dict[str, Any]] = field(default_factory=list)
    gas_budget: int | None = None
    reservations: CoinReservations = field(default_factory=CoinReservations)

    @property
    def gas(self) -> Argument:
        return GAS_COIN

    @property
    def is_empty(self) -> bool:
        return not self.commands

    def _add_input(self, payload: dict[str, Any]) -> Argument:
        for index, existing in enumerate(self.inputs):
            if payload["kind"] == "Object" and existing == payload:
                return Argument(kind="Input", index=index)
        self.inputs.append(payload)
        return Argument(kind="Input", index=len(self.inputs) - 1)

    def _add_command(self, payload: dict[str, Any]) -> Argument:
        self.commands.append(payload)
        return Argument(kind="Result", index=len(self.commands) - 1)

    def object(self, object_id: str) -> Argument:
        return self._add_input({"kind": "Object", "value": object_id})

    def pure(self, value: Any, *, type_tag: str | None = None) -> Argument:
        payload: dict[str, Any] = {"kind": "Pure", "value": value}
        if type_tag:
            payload["type"] = type_tag
        return self._add_input(payload)

    def split_coins(self, coin: Argument, amounts: list[Argument]) -> list[Argument]:
        result = self._add_command(
            {
                "kind": "SplitCoins",
                "coin": coin.to_dict(),
                "amounts": [amount.to_dict() for amount in amounts],
            }
        )
        return [Argument(kind="NestedResult", index=result.index, sub_index=i) for i in range(len(amounts))]

    def merge_coins(self, destination: Argument, sources: list[Argument]) -> None:
        if not sources:
            return
        self._add_command(
            {
                "kind": "MergeCoins",
                "destination": destination.to_dict(),
                "sources": [source.to_dict() for source in sources],
            }
        )

    def make_move_vec(self, elements: list[Argument], *, type_tag: str | None = None) -> Argument:
        return self._add_command(
            {
                "kind": "MakeMoveVec",
                "type": type_tag,
                "elements": [element.to_dict() for element in elements],
            }
        )

    def move_call(
        self,
        *,
        target: str,
        arguments: list[Argument],
        type_arguments: list[str] | None = None,
    ) -> Argument:
        return self._add_command(
            {
                "kind": "MoveCall",
                "target": target,
                "typeArguments": list(type_arguments or []),
                "arguments": [argument.to_dict() for argument in arguments],
            }
        )

    def set_gas_budget(self, gas_budget: int) -> None:
        self.gas_budget = max(0, int(gas_budget))

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputs": list(self.inputs),
            "commands": list(self.commands),
            "gasBudget": self.gas_budget,
        }

