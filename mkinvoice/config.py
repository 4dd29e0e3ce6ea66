"""Configuration management for mkinvoice.

Settings come from environment variables, optionally loaded from a ``.env``
file in the working directory. Command-line options override them.
"""
from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigError
from .pdf import DEFAULT_TIMEOUT


def clean_env_value(value: Optional[str]) -> str:
    """Strip whitespace and a pair of surrounding quotes from an env value."""
    if not value:
        return ""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return value.strip()


@dataclass(frozen=True)
class Settings:
    # Path to a Chromium-compatible browser; found on PATH when unset
    chromium: Optional[str] = None
    # Extra browser flags, e.g. "--no-sandbox" when running as root in a container
    chromium_args: Tuple[str, ...] = ()
    timeout: float = DEFAULT_TIMEOUT
    currency: str = "USD"
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Settings":
        if load_dotenv_file:
            load_dotenv()
        timeout_raw = clean_env_value(os.getenv("MKINVOICE_TIMEOUT"))
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
        except ValueError:
            raise ConfigError("MKINVOICE_TIMEOUT", f"expected a number of seconds, got {timeout_raw!r}") from None
        if timeout <= 0:
            raise ConfigError("MKINVOICE_TIMEOUT", "must be greater than zero")
        return cls(
            chromium=clean_env_value(os.getenv("MKINVOICE_CHROMIUM")) or None,
            chromium_args=tuple(shlex.split(clean_env_value(os.getenv("MKINVOICE_CHROMIUM_ARGS")))),
            timeout=timeout,
            currency=(clean_env_value(os.getenv("MKINVOICE_CURRENCY")) or "USD").upper(),
            log_level=(clean_env_value(os.getenv("LOG_LEVEL")) or "WARNING").upper(),
        )
