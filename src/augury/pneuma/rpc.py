"""
JSON-RPC Transport - async httpx client for EVM-style nodes.

Only the envelope is handled here: request/response framing is httpx's
job, and method semantics belong to the callers. Transport failures are
translated to NetworkFailure / Timeout; errors embedded in a delivered
response are CallFailed.
"""

from __future__ import annotations

import itertools
import logging
import time
from typing import Any, Optional, Protocol

import httpx

from ..config import get_timeout
from ..errors import CallFailed, NetworkFailure, Timeout

logger = logging.getLogger(__name__)


class RpcTransport(Protocol):
    def next_id(self) -> int:
        ...

    async def call(self, method: str, params: list) -> Any:
        ...

    async def send_batch(self, requests: list[dict[str, Any]]) -> list[dict[str, Any]]:
        ...


def build_request(method: str, params: list, request_id: int) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "method": method,
        "params": params,
        "id": request_id,
    }


class JsonRpcTransport:
    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout if timeout is not None else get_timeout()
        self._client = client
        self._owns_client = client is None
        self._ids = itertools.count(1)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def next_id(self) -> int:
        return next(self._ids)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _post(self, payload: Any) -> Any:
        started = time.perf_counter()
        try:
            response = await self.client.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise Timeout(f"RPC request to {self.url} timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise NetworkFailure(f"RPC endpoint returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise NetworkFailure(f"RPC transport error: {exc}") from exc
        except ValueError as exc:
            raise NetworkFailure("RPC endpoint returned invalid JSON") from exc
        finally:
            logger.debug("POST %s in %.1fms", self.url, (time.perf_counter() - started) * 1000)
        return data

    async def call(self, method: str, params: list) -> Any:
        """
        Make a single JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            CallFailed: If the node answered with an error object
            NetworkFailure: If the request could not be delivered
        """
        request_id = self.next_id()
        data = await self._post(build_request(method, params, request_id))
        if not isinstance(data, dict):
            raise NetworkFailure("RPC endpoint returned a non-object response")
        if "error" in data:
            raise CallFailed.from_rpc_error(data["error"], request_id=request_id)
        return data.get("result")

    async def send_batch(self, requests: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Send several JSON-RPC requests as one batch.

        Returns the response envelopes as delivered; they are not reordered
        and may not follow request order.
        """
        logger.debug("Sending batch of %d requests to %s", len(requests), self.url)
        data = await self._post(requests)
        if isinstance(data, dict):
            # Some nodes reject a whole batch with a single error object.
            error = data.get("error", data)
            raise NetworkFailure(f"RPC endpoint rejected the batch: {error}")
        if not isinstance(data, list):
            raise NetworkFailure("RPC endpoint returned a malformed batch response")
        return data
