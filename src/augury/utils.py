from __future__ import annotations

import base64
import json
from typing import Any


def strip_0x(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


def bytes_from_hex(value: str) -> bytes:
    text = strip_0x(value.strip())
    if len(text) % 2:
        raise ValueError(f"Hex string has odd length: {value!r}")
    return bytes.fromhex(text)


def base64_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.b64decode(value + padding)


def base64_encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def dump_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, sort_keys=False, default=str)
