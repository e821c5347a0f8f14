from __future__ import annotations

import logging
from typing import Any

import aiohttp

from suiarb.common import log_event
from suiarb.trading.types import OwnedCoin

DEFAULT_COIN_PAGE_LIMIT = 25
MAX_COIN_PAGES = 40


def _to_int(value: Any, default: int = 0) -> int:
    try:
        if value is None or value == "":
            return default
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


class RpcMethodError(RuntimeError):
    def __init__(
        self,
        *,
        method: str,
        message: str,
        status: int | None = None,
        code: int | None = None,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.status = status
        self.code = code
        self.data = data


class SuiRpcClient:
    def __init__(
        self,
        *,
        logger: logging.Logger,
        rpc_url: str,
        timeout_seconds: float = 8.0,
    ) -> None:
        self._logger = logger
        self._rpc_url = rpc_url.strip()
        self._timeout_seconds = timeout_seconds
        self._session: aiohttp.ClientSession | None = None
        self._request_id = 0

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    async def connect(self) -> None:
        if not self._rpc_url:
            raise ValueError("SUI_RPC_URL is required.")
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def healthcheck(self) -> None:
        await self.call("sui_getLatestCheckpointSequenceNumber", [])

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        if self._session is None:
            await self.connect()
        if self._session is None:
            raise RuntimeError("RPC HTTP session is not initialized.")

        self._request_id += 1
        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        async with self._session.post(self._rpc_url, json=payload) as response:
            status = response.status
            body = await response.json(content_type=None)

        if status >= 400:
            raise RpcMethodError(
                method=method,
                status=status,
                data=body,
                message=f"RPC call failed: method={method} status={status} body={str(body)[:240]}",
            )
        if not isinstance(body, dict):
            raise RpcMethodError(method=method, data=body, message=f"Invalid RPC response for {method}: {body}")

        error = body.get("error")
        if error:
            code = _to_int(error.get("code"), 0) if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise RpcMethodError(
                method=method,
                code=code or None,
                data=error,
                message=f"RPC error for {method}: {message}",
            )

        return body.get("result")

    async def get_coins(
        self,
        owner: str,
        coin_type: str,
        *,
        page_limit: int = DEFAULT_COIN_PAGE_LIMIT,
    ) -> list[OwnedCoin]:
        coins: list[OwnedCoin] = []
        cursor: str | None = None
        for _ in range(MAX_COIN_PAGES):
            result = await self.call("suix_getCoins", [owner, coin_type, cursor, page_limit])
            if not isinstance(result, dict):
                raise RpcMethodError(method="suix_getCoins", data=result, message=f"Unexpected getCoins response: {result}")

            for item in result.get("data") or []:
                if not isinstance(item, dict):
                    continue
                coin_object_id = str(item.get("coinObjectId") or "").strip()
                if not coin_object_id:
                    continue
                coins.append(
                    OwnedCoin(
                        coin_type=str(item.get("coinType") or coin_type),
                        coin_object_id=coin_object_id,
                        balance=_to_int(item.get("balance"), 0),
                    )
                )

            cursor = result.get("nextCursor")
            if not result.get("hasNextPage") or not cursor:
                return coins

        log_event(
            self._logger,
            level="warning",
            event="coin_pagination_truncated",
            message="Stopped paging owned coins after the page cap",
            owner=owner,
            coin_type=coin_type,
            coin_count=len(coins),
        )
        return coins

    async def get_balance(self, owner: str, coin_type: str) -> int:
        result = await self.call("suix_getBalance", [owner, coin_type])
        if not isinstance(result, dict):
            raise RpcMethodError(method="suix_getBalance", data=result, message=f"Unexpected getBalance response: {result}")
        return _to_int(result.get("totalBalance"), 0)

    async def get_object_fields(self, object_id: str) -> dict[str, Any]:
        result = await self.call("sui_getObject", [object_id, {"showContent": True}])
        data = result.get("data") if isinstance(result, dict) else None
        content = data.get("content") if isinstance(data, dict) else None
        fields = content.get("fields") if isinstance(content, dict) else None
        if not isinstance(fields, dict):
            raise RpcMethodError(method="sui_getObject", data=result, message=f"Object {object_id} has no readable fields.")
        return fields

    async def dev_inspect(self, *, sender: str, tx_bytes: str) -> dict[str, Any]:
        result = await self.call("sui_devInspectTransactionBlock", [sender, tx_bytes])
        if not isinstance(result, dict):
            raise RpcMethodError(
                method="sui_devInspectTransactionBlock",
                data=result,
                message=f"Unexpected devInspect response: {result}",
            )
        return result

    async def execute_transaction_block(self, *, tx_bytes: str, signatures: list[str]) -> dict[str, Any]:
        result = await self.call(
            "sui_executeTransactionBlock",
            [
                tx_bytes,
                signatures,
                {"showEffects": True, "showEvents": True, "showObjectChanges": True},
                "WaitForLocalExecution",
            ],
        )
        if not isinstance(result, dict):
            raise RpcMethodError(
                method="sui_executeTransactionBlock",
                data=result,
                message=f"Unexpected executeTransactionBlock response: {result}",
            )
        return result
