"""Tests for read-only contract instances on both protocol dialects."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx
import pytest
from eth_abi import encode as abi_encode

from conftest import contract_payload, json_response, mock_client
from augury.codex.values import Address
from augury.codex.writer import encode
from augury.errors import CallFailed, DecodeError, TypeSpecError, UnsupportedOperation
from augury.pneuma.abi import AbiFunction, ContractAbi, load_abi, selector
from augury.pneuma.chains import EVM, PARTISIA, ChainConnection, ChainDefinition
from augury.spec.typespec import ADDRESS, NamedRef, U128

TOKEN_ABI = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "name",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "reserves",
        "constant": True,
        "inputs": [],
        "outputs": [{"name": "a", "type": "uint112"}, {"name": "b", "type": "uint112"}],
    },
    {
        "type": "function",
        "name": "transfer",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {"type": "event", "name": "Transfer", "inputs": []},
]

TOKEN = "0x" + "22" * 20
HOLDER = "0x" + "33" * 20


def evm_node(batch_bodies: list | None = None):
    results = {
        selector("balanceOf(address)").hex(): "0x" + abi_encode(["uint256"], [10**21]).hex(),
        selector("name()").hex(): "0x" + abi_encode(["string"], ["Augur"]).hex(),
        selector("reserves()").hex(): "0x" + abi_encode(["uint112", "uint112"], [3, 4]).hex(),
    }

    def answer(request: dict) -> dict:
        data = request["params"][0]["data"][2:10]
        if data in results:
            return {"jsonrpc": "2.0", "id": request["id"], "result": results[data]}
        return {"jsonrpc": "2.0", "id": request["id"], "error": {"code": 3, "message": "execution reverted"}}

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if isinstance(body, list):
            if batch_bodies is not None:
                batch_bodies.append(body)
            return json_response([answer(r) for r in body])
        return json_response(answer(body))

    return handler


def evm_connection(handler) -> ChainConnection:
    return ChainConnection(ChainDefinition("local", EVM, "http://rpc.test"), client=mock_client(handler))


class TestAbi:
    def test_selector(self) -> None:
        assert selector("balanceOf(address)").hex() == "70a08231"

    def test_constant_flag_means_view(self) -> None:
        assert ContractAbi(TOKEN_ABI).function("reserves").read_only

    def test_tuple_signature(self) -> None:
        fn = AbiFunction.from_entry({
            "type": "function",
            "name": "submit",
            "inputs": [{"type": "tuple", "components": [{"type": "uint256"}, {"type": "address"}]}],
            "outputs": [],
        })
        assert fn.signature == "submit((uint256,address))"

    def test_unknown_function(self) -> None:
        with pytest.raises(TypeSpecError):
            ContractAbi(TOKEN_ABI).function("mint")

    def test_wrong_argument_count(self) -> None:
        with pytest.raises(TypeSpecError):
            ContractAbi(TOKEN_ABI).function("balanceOf").encode_call([])

    def test_bad_argument_value(self) -> None:
        with pytest.raises(TypeSpecError) as excinfo:
            ContractAbi(TOKEN_ABI).function("balanceOf").encode_call(["not-an-address"])
        assert "balanceOf(address)" in str(excinfo.value)

    def test_artifact_without_abi(self, tmp_path: Path) -> None:
        path = tmp_path / "Bare.json"
        path.write_text(json.dumps({"bytecode": "0x"}), encoding="utf-8")
        with pytest.raises(TypeSpecError):
            load_abi(path)

    def test_empty_result_is_none(self) -> None:
        assert ContractAbi(TOKEN_ABI).function("name").decode_result("0x") is None

    def test_garbage_result(self) -> None:
        with pytest.raises(DecodeError):
            ContractAbi(TOKEN_ABI).function("name").decode_result("0x1234")

    def test_load_artifact(self, tmp_path: Path) -> None:
        path = tmp_path / "Token.json"
        path.write_text(json.dumps({"abi": TOKEN_ABI, "bytecode": "0x"}), encoding="utf-8")
        assert load_abi(path) == TOKEN_ABI
        assert "balanceOf" in ContractAbi.from_path(path).function_names()


class TestReadOnlyContract:
    def test_call(self) -> None:
        contract = evm_connection(evm_node()).read_only_instance(TOKEN, TOKEN_ABI)
        assert asyncio.run(contract.call("balanceOf", HOLDER)) == 10**21
        assert asyncio.run(contract.call("name")) == "Augur"
        assert asyncio.run(contract.call("reserves")) == (3, 4)

    def test_write_functions_are_refused(self) -> None:
        contract = evm_connection(evm_node()).read_only_instance(TOKEN, TOKEN_ABI)
        with pytest.raises(UnsupportedOperation):
            contract.descriptor("transfer", HOLDER, 1)

    def test_queue_into_batch(self) -> None:
        bodies: list = []
        connection = evm_connection(evm_node(bodies))
        contract = connection.read_only_instance(TOKEN, TOKEN_ABI)
        batch = connection.batch()
        contract.queue(batch, "balanceOf", HOLDER)
        contract.queue(batch, "name")
        outcomes = asyncio.run(batch.execute())
        assert outcomes == [10**21, "Augur"]
        assert len(bodies) == 1
        assert all(r["params"][0]["to"] == TOKEN for r in bodies[0])

    def test_reverted_call(self) -> None:
        abi = TOKEN_ABI + [{
            "type": "function", "name": "paused", "stateMutability": "view",
            "inputs": [], "outputs": [{"type": "bool"}],
        }]
        contract = evm_connection(evm_node()).read_only_instance(TOKEN, abi)
        with pytest.raises(CallFailed):
            asyncio.run(contract.call("paused"))


class TestReadOnlyStateContract:
    CONTRACT = "02" + "ab" * 20

    def test_state_and_trees(self, token_schema) -> None:
        registry = token_schema.registry
        owner = Address(b"\x00" + b"\x42" * 20)
        state = encode({
            "name": "Augur Token",
            "decimals": 6,
            "owner": owner,
            "total_supply": 1_000_000,
            "balances": 0,
            "allowances": 1,
        }, NamedRef("TokenState"), registry)
        trees = {0: [(owner.value, encode(1_000_000, U128))]}

        def handler(request: httpx.Request) -> httpx.Response:
            if "/avl/" in request.url.path:
                return json_response({"error": "not found"}, 404)
            return json_response(contract_payload(state, trees))

        connection = ChainConnection(ChainDefinition("reader", PARTISIA, "http://reader.test"), client=mock_client(handler))
        contract = connection.read_only_instance("0x" + self.CONTRACT, token_schema)

        state_map = asyncio.run(contract.state())
        assert state_map["decimals"].as_number() == 6
        tree_id = state_map["balances"].tree_id()

        tree = asyncio.run(contract.tree(tree_id, ADDRESS, U128))
        assert tree.get(owner).as_bn() == 1_000_000
        assert asyncio.run(contract.tree_value(tree_id, owner, ADDRESS, U128)) is None
