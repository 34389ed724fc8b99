"""Shared plumbing for CLI commands."""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Awaitable, Optional

import click

from ..errors import AuguryError
from ..pneuma.chains import ChainConnection, ChainResolver
from ..spec.schemas import SchemaValidationError
from ..spec.typespec import Kind, Primitive
from ..utils import dump_json

chain_option = click.option(
    "--chain",
    envvar="AUGURY_CHAIN",
    required=True,
    help="Chain identifier (see 'augury chains')",
)
address_option = click.option("--address", required=True, help="Contract address")
endpoint_option = click.option("--endpoint", default=None, help="Override the chain's endpoint URL")


def build_resolver() -> ChainResolver:
    return ChainResolver()


def open_connection(chain: str, endpoint: Optional[str] = None) -> ChainConnection:
    definition = build_resolver().resolve(chain)
    if endpoint:
        definition = replace(definition, endpoint_url=endpoint)
    return ChainConnection(definition)


def run(coro: Awaitable[Any]) -> Any:
    """Run a coroutine, turning library errors into CLI exits."""
    try:
        return asyncio.run(coro)
    except AuguryError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        if isinstance(exc, SchemaValidationError):
            for err in exc.errors:
                click.secho(f"  - {err}", fg="red", err=True)
        sys.exit(exc.exit_code)
    except (ValueError, FileNotFoundError) as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(1)


def parse_json_args(text: str) -> list:
    try:
        args = json.loads(text)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"Invalid JSON: {exc}") from exc
    if not isinstance(args, list):
        raise click.BadParameter("Args must be a JSON array")
    return args


def echo_json(payload: Any) -> None:
    click.echo(dump_json(payload))


def existing_file(_ctx, _param, value: Optional[str]) -> Optional[Path]:
    if value is None:
        return None
    path = Path(value)
    if not path.is_file():
        raise click.BadParameter(f"File not found: {value}")
    return path


def jsonable(value: Any) -> Any:
    """Render ABI-decoded values (bytes, tuples, big ints) for JSON output."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int) and abs(value) >= 2**53:
        return str(value)
    return value


def parse_key(text: str, key_spec: Any = None) -> Any:
    """A lookup key given on the command line: hex for byte-like keys, otherwise JSON if it parses."""
    if isinstance(key_spec, Primitive) and key_spec.kind in (Kind.HASH, Kind.ADDRESS, Kind.BYTES):
        return text
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text
