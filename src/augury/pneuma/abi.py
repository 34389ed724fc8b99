"""
ABI Loader - Contract interfaces for EVM-style read calls.

Loads ABIs from compiled artifacts (Foundry/Hardhat JSON with an "abi"
key, or a bare ABI list) and encodes/decodes read-only calls with eth-abi.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from eth_abi import decode, encode
from eth_hash.auto import keccak

from ..errors import DecodeError, TypeSpecError
from ..utils import bytes_from_hex


def load_abi(path: Path) -> list[dict[str, Any]]:
    """
    Load an ABI from a compiled artifact file.

    Args:
        path: JSON file holding either {"abi": [...]} or a bare ABI list

    Returns:
        ABI as a list of dicts

    Raises:
        FileNotFoundError: If the file does not exist
        TypeSpecError: If the file holds no ABI
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        artifact = json.load(f)

    if isinstance(artifact, list):
        return artifact
    if isinstance(artifact, dict) and isinstance(artifact.get("abi"), list):
        return artifact["abi"]
    raise TypeSpecError(f"No ABI found in {path}")


def _canonical_type(param: dict[str, Any]) -> str:
    """Expand tuple components so struct params get their canonical signature type."""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


@lru_cache(maxsize=256)
def selector(signature: str) -> bytes:
    # Keccak-256, not NIST SHA3-256.
    return keccak(signature.encode("utf-8"))[:4]


@dataclass(frozen=True)
class AbiFunction:
    name: str
    input_types: tuple[str, ...]
    output_types: tuple[str, ...]
    state_mutability: str = "nonpayable"

    @classmethod
    def from_entry(cls, entry: dict[str, Any]) -> "AbiFunction":
        return cls(
            name=entry["name"],
            input_types=tuple(_canonical_type(p) for p in entry.get("inputs", [])),
            output_types=tuple(_canonical_type(p) for p in entry.get("outputs", [])),
            state_mutability=entry.get("stateMutability") or ("view" if entry.get("constant") else "nonpayable"),
        )

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def read_only(self) -> bool:
        return self.state_mutability in ("view", "pure")

    def encode_call(self, args: Optional[list] = None) -> str:
        """ABI-encode a call to 0x-prefixed hex calldata."""
        args = list(args or [])
        if len(args) != len(self.input_types):
            raise TypeSpecError(
                f"{self.signature} takes {len(self.input_types)} arguments, got {len(args)}"
            )
        try:
            encoded_args = encode(list(self.input_types), args) if args else b""
        except Exception as exc:  # eth-abi raises several unrelated exception types
            raise TypeSpecError(f"Cannot encode arguments for {self.signature}: {exc}") from exc
        return "0x" + selector(self.signature).hex() + encoded_args.hex()

    def decode_result(self, data: Optional[str]) -> Any:
        """
        ABI-decode return data.

        Returns:
            None for empty return data, the single value for one output,
            or a tuple for several outputs
        """
        if not self.output_types or data is None:
            return None
        raw = bytes_from_hex(data)
        if not raw:
            return None
        try:
            decoded = decode(list(self.output_types), raw)
        except Exception as exc:  # eth-abi raises several unrelated exception types
            raise DecodeError(f"Cannot decode {self.name} result: {exc}") from exc
        if len(decoded) == 1:
            return decoded[0]
        return tuple(decoded)


class ContractAbi:
    """Function lookup over a loaded ABI."""

    def __init__(self, abi: list[dict[str, Any]]) -> None:
        self.abi = abi
        self._functions: dict[str, list[AbiFunction]] = {}
        for entry in abi:
            if entry.get("type") == "function":
                fn = AbiFunction.from_entry(entry)
                self._functions.setdefault(fn.name, []).append(fn)

    @classmethod
    def from_path(cls, path: Path) -> "ContractAbi":
        return cls(load_abi(path))

    def function(self, name: str, arg_count: Optional[int] = None) -> AbiFunction:
        candidates = self._functions.get(name, [])
        if arg_count is not None:
            candidates = [fn for fn in candidates if len(fn.input_types) == arg_count]
        if not candidates:
            raise TypeSpecError(f"Function {name} not found in ABI")
        if len(candidates) > 1:
            raise TypeSpecError(f"Function {name} is overloaded; pass arguments to disambiguate")
        return candidates[0]

    def function_names(self) -> list[str]:
        return sorted(self._functions)
