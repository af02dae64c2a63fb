"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import InvalidConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


def _raw(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Read required settings (e.g. credentials); blank values count as unset."""
    found = {name: _raw(name) for name in names}
    if absent := sorted(name for name, value in found.items() if value is None):
        raise MissingConfigurationError(f"Missing configuration for: {', '.join(absent)}")
    return {name: value for name, value in found.items() if value is not None}


def env_str(name: str, default: str) -> str:
    return _raw(name) or default


def env_int(
    name: str,
    default: int,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    raw = _raw(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise InvalidConfigurationError(name, raw, "an integer") from exc
    if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
        raise InvalidConfigurationError(name, raw, f"an integer in [{minimum}, {maximum}]")
    return value


def env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = _raw(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise InvalidConfigurationError(name, raw, "a number") from exc
    if value < minimum:
        raise InvalidConfigurationError(name, raw, f"a number >= {minimum}")
    return value


def env_bool(name: str, default: bool = False) -> bool:  # noqa: FBT001, FBT002
    raw = _raw(name)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise InvalidConfigurationError(name, raw, "a boolean")


def env_list(name: str, default: Sequence[str]) -> tuple[str, ...]:
    raw = _raw(name)
    if raw is None:
        return tuple(default)
    return tuple(part.strip() for part in raw.split(",") if part.strip())
