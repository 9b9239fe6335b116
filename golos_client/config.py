"""Client configuration values.

Settings are treated as data: a flat mapping read from an optional YAML file,
overridable from the environment and at runtime through ``set``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

_LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "websocket": "wss://ws.golos.io",
    "address_prefix": "GLS",
    "chain_id": "782a3039b478c839e4cb0c941ff4eaeb7df40bdd68bd441afd444b9da763de12",
    "expected_response_ms": 2000,
}

ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "GOLOS_WEBSOCKET": ("websocket", str),
    "EXPECTED_RESPONSE_MS": ("expected_response_ms", int),
}


class GolosConfig:
    """Mutable settings shared by one client instance."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(DEFAULT_CONFIG)
        if values:
            self._values.update(values)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        _LOGGER.debug("Config %s = %r", key, value)
        self._values[key] = value

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)


def load_config(
    path: str | Path | None = None,
    *,
    environ: dict[str, str] | None = None,
) -> GolosConfig:
    """Load settings from a YAML mapping, then apply environment overrides.

    Args:
        path: Optional YAML file; missing keys keep their defaults.
        environ: Environment to read overrides from (default: ``os.environ``).

    Raises:
        ValueError: The file does not contain a mapping, or an override
            cannot be converted.
    """
    values: dict[str, Any] = {}
    if path is not None:
        with Path(path).open(encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        values.update(data)

    env = os.environ if environ is None else environ
    for var, (key, convert) in ENV_OVERRIDES.items():
        raw = env.get(var, "").strip()
        if not raw:
            continue
        try:
            values[key] = convert(raw)
        except ValueError as err:
            raise ValueError(f"Invalid value for {var}: {raw!r}") from err

    return GolosConfig(values)
