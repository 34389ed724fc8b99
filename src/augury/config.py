"""
Runtime configuration.

Values come from the process environment, after loading
~/.augury/.env (or the file named by AUGURY_ENV_FILE) with python-dotenv.
Variables already set in the environment win over the .env file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

AUGURY_DIR = Path.home() / ".augury"
AUGURY_ENV = AUGURY_DIR / ".env"

DEFAULT_TIMEOUT = 30.0
DEFAULT_BATCH_TIMEOUT = 20.0


def load_env(env_path: Optional[Path] = None) -> Optional[Path]:
    """
    Load the .env file into the process environment if it exists.

    Returns:
        The path that was loaded, or None if no file was found
    """
    env_path = env_path or Path(os.environ.get("AUGURY_ENV_FILE", AUGURY_ENV))
    if env_path.exists():
        load_dotenv(env_path, override=False)
        return env_path
    return None


def _env_key(identifier: str) -> str:
    return "AUGURY_RPC_" + identifier.upper().replace("-", "_").replace(".", "_")


def endpoint_override(identifier: str) -> Optional[str]:
    """Endpoint URL override for a chain identifier, if configured."""
    return os.environ.get(_env_key(identifier)) or None


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from exc


def get_timeout() -> float:
    return _float_env("AUGURY_TIMEOUT", DEFAULT_TIMEOUT)


def get_batch_timeout() -> float:
    return _float_env("AUGURY_BATCH_TIMEOUT", DEFAULT_BATCH_TIMEOUT)
