from __future__ import annotations

"""Shared helpers for configuration loading and validation."""

from dataclasses import dataclass
from typing import Any, Mapping

_UNSET = object()


def get_section(raw: Mapping[str, Any], key: str, *, required: bool) -> ConfigSection:
    """Return a section of the root config wrapped for typed reads.

    Args:
        raw: Root configuration mapping.
        key: Section name.
        required: Whether the section must exist.

    Returns:
        Section wrapper; empty for optional missing sections.

    Raises:
        ValueError: If section is required but missing.
        TypeError: If section is not a mapping.
    """
    section = raw.get(key)
    if section is None:
        if required:
            raise ValueError(f"Missing required config: {key}")
        return ConfigSection(key, {})
    if not isinstance(section, Mapping):
        raise TypeError(f"{key} must be an object")
    return ConfigSection(key, section)


@dataclass(frozen=True, slots=True)
class ConfigSection:
    """Typed accessors over one config section.

    Error messages carry the dotted key (``delivery.timeout``) so users can
    locate the offending setting.
    """

    name: str
    values: Mapping[str, Any]

    def key(self, field: str) -> str:
        return f"{self.name}.{field}"

    def _get(self, field: str, default: Any) -> Any:
        if field in self.values:
            return self.values[field]
        if default is _UNSET:
            raise ValueError(f"Missing required config: {self.key(field)}")
        return default

    def get_str(self, field: str, default: Any = _UNSET) -> str:
        value = self._get(field, default)
        if not isinstance(value, str):
            raise TypeError(f"{self.key(field)} must be a string")
        return value

    def get_optional_str(self, field: str) -> str | None:
        value = self.values.get(field)
        if value is None:
            return None
        if not isinstance(value, str):
            raise TypeError(f"{self.key(field)} must be a string")
        return value

    def get_bool(self, field: str, default: Any = _UNSET) -> bool:
        value = self._get(field, default)
        if not isinstance(value, bool):
            raise TypeError(f"{self.key(field)} must be a boolean")
        return value

    def get_int(self, field: str, default: Any = _UNSET) -> int:
        value = self._get(field, default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{self.key(field)} must be an integer")
        return value

    def get_float(self, field: str, default: Any = _UNSET) -> float:
        value = self._get(field, default)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"{self.key(field)} must be a number")
        return float(value)


def check_non_empty(value: str, config_key: str) -> None:
    """Validate non-empty string values."""
    if not value.strip():
        raise ValueError(f"{config_key} must not be empty")
