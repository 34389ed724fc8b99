"""Shared fixtures: in-memory transports so no test touches the network."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from augury.spec.schemas import load_definitions
from augury.spec.typespec import TypeRegistry
from augury.utils import base64_encode


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode("utf-8"),
                          headers={"content-type": "application/json"})


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def contract_payload(state: bytes, trees: dict[int, list[tuple[bytes, bytes]]] | None = None) -> dict:
    """Reader-node response for GET /chain/contracts/{address}."""
    avl = [
        {
            "key": tree_id,
            "value": {
                "avlTree": [
                    {"key": {"data": {"data": base64_encode(k)}}, "value": {"data": {"data": base64_encode(v)}}}
                    for k, v in entries
                ]
            },
        }
        for tree_id, entries in (trees or {}).items()
    ]
    return {
        "address": "02" + "ab" * 20,
        "serializedContract": {
            "state": {"data": base64_encode(state)},
            "avlTrees": {"avlTrees": avl},
        },
    }


TOKEN_TYPES = {
    "state": "TokenState",
    "types": {
        "TokenState": {
            "struct": [
                {"name": "name", "type": "string"},
                {"name": "decimals", "type": "u8"},
                {"name": "owner", "type": "address"},
                {"name": "total_supply", "type": "u128"},
                {"name": "balances", "type": {"avl_tree": ["address", "u128"]}},
                {"name": "allowances", "type": {"avl_tree": ["address", "Allowance"]}},
            ]
        },
        "Allowance": {
            "struct": [
                {"name": "spender", "type": "address"},
                {"name": "amount", "type": "u128"},
            ]
        },
    },
}


@pytest.fixture()
def registry() -> TypeRegistry:
    return TypeRegistry()


@pytest.fixture()
def token_schema():
    return load_definitions(TOKEN_TYPES)
