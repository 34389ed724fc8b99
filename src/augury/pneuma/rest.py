"""
State REST Transport - async httpx client for state-reader nodes.

Reads contract state blobs and AVL tree contents from a reader node:

  GET {base}/chain/contracts/{address}?requireContractState=true
  GET {base}/chain/contracts/{address}/avl/{tree_id}/{key_hex}

Blobs arrive base64-encoded inside JSON. This module returns raw bytes and
leaves all decoding to the codex.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional, Protocol

import httpx

from ..codex.reader import LENGTH_PREFIX_WIDTH
from ..config import get_timeout
from ..errors import NetworkFailure, Timeout, TreeNotFound
from ..utils import base64_decode

logger = logging.getLogger(__name__)


class StateTransport(Protocol):
    async def get_state(self, address: str) -> bytes:
        ...

    async def get_avl_tree(self, address: str, tree_id: int) -> bytes:
        ...

    async def get_avl_value(self, address: str, tree_id: int, key: bytes) -> Optional[bytes]:
        ...


def _blob(node: Any) -> bytes:
    """Unwrap {"data": ...} nesting down to a base64 string."""
    while isinstance(node, dict):
        if "data" not in node:
            raise NetworkFailure(f"Malformed blob in node response: {node!r}")
        node = node["data"]
    if not isinstance(node, str):
        raise NetworkFailure(f"Malformed blob in node response: {node!r}")
    return base64_decode(node)


def pack_entries(entries: list[tuple[bytes, bytes]]) -> bytes:
    """Serialize raw AVL entries as u32 count followed by key/value pairs."""
    out = bytearray(len(entries).to_bytes(LENGTH_PREFIX_WIDTH, "little"))
    for key, value in entries:
        out += key
        out += value
    return bytes(out)


class StateRestTransport:
    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else get_timeout()
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _contract_url(self, address: str) -> str:
        return f"{self.base_url}/chain/contracts/{address.lower().removeprefix('0x')}"

    async def _get(self, url: str, params: Optional[dict[str, str]] = None) -> Optional[Any]:
        """GET a JSON document; None on 404."""
        started = time.perf_counter()
        try:
            response = await self.client.get(url, params=params)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            raise Timeout(f"Request to {url} timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise NetworkFailure(f"Reader node returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise NetworkFailure(f"Reader node transport error: {exc}") from exc
        except ValueError as exc:
            raise NetworkFailure("Reader node returned invalid JSON") from exc
        finally:
            logger.debug("GET %s in %.1fms", url, (time.perf_counter() - started) * 1000)

    async def _contract(self, address: str) -> dict[str, Any]:
        data = await self._get(self._contract_url(address), params={"requireContractState": "true"})
        if data is None:
            raise NetworkFailure(f"Contract {address} not found on reader node")
        serialized = data.get("serializedContract")
        if serialized is None:
            raise NetworkFailure(f"Contract {address} response carries no state")
        return serialized

    async def get_state(self, address: str) -> bytes:
        serialized = await self._contract(address)
        if isinstance(serialized, str):
            return base64_decode(serialized)
        return _blob(serialized.get("state"))

    async def get_avl_tree(self, address: str, tree_id: int) -> bytes:
        serialized = await self._contract(address)
        trees = serialized.get("avlTrees") if isinstance(serialized, dict) else None
        if isinstance(trees, dict):
            trees = trees.get("avlTrees")
        try:
            for tree in trees or []:
                if int(tree["key"]) != tree_id:
                    continue
                node = tree.get("value", {})
                raw_entries = node.get("avlTree", []) if isinstance(node, dict) else node
                entries = [(_blob(e["key"]), _blob(e["value"])) for e in raw_entries]
                break
            else:
                raise TreeNotFound(address, tree_id)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise NetworkFailure(f"Malformed AVL tree listing for {address}: {exc!r}") from exc
        logger.debug("Fetched AVL tree %d of %s: %d entries", tree_id, address, len(entries))
        return pack_entries(entries)

    async def get_avl_value(self, address: str, tree_id: int, key: bytes) -> Optional[bytes]:
        url = f"{self._contract_url(address)}/avl/{tree_id}/{key.hex()}"
        data = await self._get(url)
        if data is None or (isinstance(data, dict) and data.get("data") is None):
            return None
        return _blob(data)
