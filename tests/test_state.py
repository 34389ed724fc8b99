"""Tests for the lazily decoded contract state view."""

from __future__ import annotations

import pytest

from augury.codex.state import StateMap, decode_state
from augury.codex.values import Address
from augury.codex.writer import encode
from augury.errors import BufferUnderrun, FieldNotFound, TrailingBytes, TypeSpecError, UnknownType
from augury.spec.schemas import load_definitions
from augury.spec.typespec import NamedRef, U64

OWNER = Address(b"\x00" + b"\x42" * 20)


def token_state(registry, **overrides) -> bytes:
    value = {
        "name": "Augur Token",
        "decimals": 18,
        "owner": OWNER,
        "total_supply": 10**24,
        "balances": 0,
        "allowances": 1,
    }
    value.update(overrides)
    return encode(value, NamedRef("TokenState"), registry)


class TestStateMap:
    def test_fields_decode_on_access(self, token_schema) -> None:
        data = token_state(token_schema.registry)
        state = StateMap.decode(data, "TokenState", token_schema.registry)
        assert list(state) == ["name", "decimals", "owner", "total_supply", "balances", "allowances"]
        assert state.get_field_value("name").as_string() == "Augur Token"
        assert state.get_field_value("decimals").as_number() == 18
        assert state["owner"].address_value() == OWNER
        assert state["total_supply"].as_bn() == 10**24
        assert state["allowances"].tree_id() == 1

    def test_repeated_access_is_stable(self, token_schema) -> None:
        state = decode_state(token_state(token_schema.registry), "TokenState", token_schema.registry)
        assert state["total_supply"] == state["total_supply"]

    def test_slots_cover_the_blob(self, token_schema) -> None:
        data = token_state(token_schema.registry)
        state = StateMap.decode(data, NamedRef("TokenState"), token_schema.registry)
        assert b"".join(state.raw_field(name) for name in state) == data

    def test_missing_field(self, token_schema) -> None:
        state = StateMap.decode(token_state(token_schema.registry), "TokenState", token_schema.registry)
        with pytest.raises(FieldNotFound):
            state.get_field_value("symbol")

    def test_truncated_blob(self, token_schema) -> None:
        data = token_state(token_schema.registry)
        with pytest.raises(BufferUnderrun):
            StateMap.decode(data[:-1], "TokenState", token_schema.registry)

    def test_extra_bytes(self, token_schema) -> None:
        data = token_state(token_schema.registry)
        with pytest.raises(TrailingBytes):
            StateMap.decode(data + b"\x00", "TokenState", token_schema.registry)

    def test_root_must_be_struct(self, registry) -> None:
        registry.register("Count", U64)
        with pytest.raises(TypeSpecError):
            StateMap.decode(b"\x00" * 8, "Count", registry)


class TestUnresolvedNames:
    def test_absent_option_of_unknown_type_is_fine(self) -> None:
        schema = load_definitions({
            "state": "S",
            "types": {"S": {"struct": [
                {"name": "count", "type": "u8"},
                {"name": "extra", "type": {"option": "Unregistered"}},
            ]}},
        })
        state = StateMap.decode(b"\x03\x00", "S", schema.registry)
        assert state["count"].as_number() == 3
        assert state["extra"].option_value() is None

    def test_present_value_of_unknown_type_fails(self) -> None:
        schema = load_definitions({
            "state": "S",
            "types": {"S": {"struct": [
                {"name": "count", "type": "u8"},
                {"name": "extra", "type": {"option": "Unregistered"}},
            ]}},
        })
        with pytest.raises(UnknownType):
            StateMap.decode(b"\x03\x01\x00", "S", schema.registry)
