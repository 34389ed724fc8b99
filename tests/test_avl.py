"""Tests for AVL tree bulk reads and point lookups against a fake reader node."""

from __future__ import annotations

import asyncio
import base64

import httpx
import pytest

from conftest import contract_payload, json_response, mock_client
from augury.codex.values import Address
from augury.codex.writer import encode
from augury.errors import DuplicateKey, NetworkFailure, TreeNotFound, TypeSpecError
from augury.pneuma.avl import AvlAccessor
from augury.pneuma.rest import StateRestTransport
from augury.spec.typespec import ADDRESS, U64, U128, NamedRef, StructSpec

CONTRACT = "02" + "ab" * 20
ALICE = Address(b"\x00" + b"\x01" * 20)
BOB = Address(b"\x00" + b"\x02" * 20)
CAROL = Address(b"\x00" + b"\x03" * 20)


def balances() -> list[tuple[bytes, bytes]]:
    return [
        (ALICE.value, encode(100, U128)),
        (BOB.value, encode(2**100, U128)),
    ]


def allowances(registry) -> list[tuple[bytes, bytes]]:
    return [
        (ALICE.value, encode({"spender": BOB, "amount": 5}, NamedRef("Allowance"), registry)),
    ]


def reader_node(trees: dict[int, list[tuple[bytes, bytes]]], state: bytes = b""):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        parts = request.url.path.strip("/").split("/")
        if parts[:3] != ["chain", "contracts", CONTRACT]:
            return json_response({"error": "not found"}, 404)
        if len(parts) == 3:
            return json_response(contract_payload(state, trees))
        _, tree_id, key_hex = parts[3:6]
        for key, value in trees.get(int(tree_id), []):
            if key.hex() == key_hex:
                return json_response({"data": base64.b64encode(value).decode("ascii")})
        return json_response({"error": "no such key"}, 404)

    return handler, requests


def accessor(handler, registry=None) -> AvlAccessor:
    transport = StateRestTransport("https://reader.test", client=mock_client(handler))
    return AvlAccessor(transport, CONTRACT, registry)


class TestBulkRead:
    def test_materializes_all_entries(self) -> None:
        handler, _ = reader_node({0: balances()})
        tree = asyncio.run(accessor(handler).bulk_read(0, ADDRESS, U128))
        assert len(tree) == 2
        assert tree.get(ALICE).as_bn() == 100
        assert tree.get("0x" + BOB.hex()).as_bn() == 2**100
        assert tree.find(CAROL) is None

    def test_filter(self) -> None:
        handler, _ = reader_node({0: balances()})
        tree = asyncio.run(accessor(handler).bulk_read(0, ADDRESS, U128))
        rich = tree.filter(lambda e: e.value.as_bn() > 1000)
        assert [e.key.address_value() for e in rich] == [BOB]

    def test_named_value_type(self, token_schema) -> None:
        registry = token_schema.registry
        handler, _ = reader_node({1: allowances(registry)})
        tree = asyncio.run(accessor(handler, registry).bulk_read(1, ADDRESS, "Allowance", is_named_value=True))
        allowance = tree.get(ALICE).struct_value()
        assert allowance["spender"].address_value() == BOB
        assert allowance["amount"].as_bn() == 5

    def test_named_value_requires_flag(self, token_schema) -> None:
        handler, _ = reader_node({})
        with pytest.raises(TypeSpecError):
            asyncio.run(accessor(handler, token_schema.registry).bulk_read(1, ADDRESS, "Allowance"))

    def test_missing_tree(self) -> None:
        handler, _ = reader_node({0: balances()})
        with pytest.raises(TreeNotFound):
            asyncio.run(accessor(handler).bulk_read(7, ADDRESS, U128))

    def test_duplicate_keys_rejected(self) -> None:
        entries = balances() + [(ALICE.value, encode(1, U128))]
        handler, _ = reader_node({0: entries})
        with pytest.raises(DuplicateKey):
            asyncio.run(accessor(handler).bulk_read(0, ADDRESS, U128))

    def test_integer_keys(self) -> None:
        handler, _ = reader_node({3: [(encode(7, U64), encode(70, U128))]})
        tree = asyncio.run(accessor(handler).bulk_read(3, U64, U128))
        assert tree.get(7).as_bn() == 70


class TestFetchByKey:
    def test_point_fetch_matches_bulk(self) -> None:
        handler, _ = reader_node({0: balances()})
        acc = accessor(handler)
        bulk = asyncio.run(acc.bulk_read(0, ADDRESS, U128))
        for entry in bulk:
            point = asyncio.run(acc.fetch_by_key(0, entry.key, ADDRESS, U128))
            assert point == entry.value

    def test_absent_key_is_none(self) -> None:
        handler, _ = reader_node({0: balances()})
        assert asyncio.run(accessor(handler).fetch_by_key(0, CAROL, ADDRESS, U128)) is None

    def test_requests_only_the_key(self) -> None:
        handler, requests = reader_node({0: balances()})
        asyncio.run(accessor(handler).fetch_by_key(0, ALICE.value, ADDRESS, U128))
        assert len(requests) == 1
        assert requests[0].url.path.endswith(f"/avl/0/{ALICE.hex()}")

    def test_raw_key_bytes_are_validated(self) -> None:
        handler, _ = reader_node({0: balances()})
        with pytest.raises(TypeSpecError):
            asyncio.run(accessor(handler).fetch_by_key(0, b"\x00" * 3, ADDRESS, U128))

    def test_named_value_inferred_from_name(self, token_schema) -> None:
        registry = token_schema.registry
        handler, _ = reader_node({1: allowances(registry)})
        value = asyncio.run(accessor(handler, registry).fetch_by_key(1, ALICE, ADDRESS, "Allowance"))
        assert value.struct_value()["amount"].as_bn() == 5

    def test_empty_payload_is_none(self) -> None:
        handler = lambda request: json_response({"data": ""})
        assert asyncio.run(accessor(handler).fetch_by_key(0, ALICE, ADDRESS, U128)) is None

    def test_empty_payload_for_zero_width_value(self, registry) -> None:
        registry.register("Marker", StructSpec.of("Marker"))
        handler = lambda request: json_response({"data": ""})
        value = asyncio.run(accessor(handler, registry).fetch_by_key(0, ALICE, ADDRESS, "Marker"))
        assert value is not None
        assert len(value.struct_value()) == 0


class TestMalformedListing:
    def test_tree_without_key(self) -> None:
        payload = contract_payload(b"", {})
        payload["serializedContract"]["avlTrees"]["avlTrees"] = [{"value": {"avlTree": []}}]
        handler = lambda request: json_response(payload)
        with pytest.raises(NetworkFailure):
            asyncio.run(accessor(handler).bulk_read(0, ADDRESS, U128))

    def test_entry_without_value(self) -> None:
        payload = contract_payload(b"", {})
        payload["serializedContract"]["avlTrees"]["avlTrees"] = [
            {"key": 0, "value": {"avlTree": [{"key": {"data": ""}}]}},
        ]
        handler = lambda request: json_response(payload)
        with pytest.raises(NetworkFailure):
            asyncio.run(accessor(handler).bulk_read(0, ADDRESS, U128))
