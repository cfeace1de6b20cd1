# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URL-encoded serialization of (possibly nested) POST payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote_plus


def _scalar(value: Any) -> str:
    if value is True:
        return "1"
    if value is False:
        return "0"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _items(value: Any) -> list[tuple[Any, Any]]:
    if isinstance(value, Mapping):
        return list(value.items())
    return list(enumerate(value))


def _is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def build_query(data: Mapping[str, Any]) -> str:
    """
    Serialize a payload the way form encoders of the classic web stack do.

    Nested containers use bracket notation (`user[name]=x`, `tags[0]=a`), spaces
    become `+`, booleans become `1`/`0` and `None` values are dropped.
    """
    parts: list[str] = []

    def _walk(prefix: str, value: Any) -> None:
        if value is None:
            return
        if _is_container(value):
            for key, child in _items(value):
                _walk(f"{prefix}[{key}]", child)
            return
        parts.append(f"{quote_plus(prefix)}={quote_plus(_scalar(value))}")

    for key, value in data.items():
        _walk(str(key), value)
    return "&".join(parts)


def has_nested_values(data: Mapping[str, Any]) -> bool:
    """True when any top-level value is itself a mapping or sequence."""
    return any(_is_container(value) for value in data.values())


__all__ = ["build_query", "has_nested_values"]
