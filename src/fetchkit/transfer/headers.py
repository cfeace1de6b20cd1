# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header normalization utilities.

HTTP header field names are case-insensitive (RFC 9110). Received headers are stored
lower-cased on TransferResult; outgoing headers travel through the engine as
`"Name: value"` lines, the same shape the classic transfer engines accept.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any


def _coerce_headers_mapping(headers: Any) -> Mapping[object, object] | None:
    """
    Best-effort coercion of "dict-like" header containers into a Mapping.

    Accepts plain dicts, httpx.Headers and iterable-of-pairs.
    """
    if not headers:
        return None
    if isinstance(headers, Mapping):
        return headers

    items = getattr(headers, "items", None)
    if callable(items):
        try:
            return dict(items())
        except (TypeError, ValueError):
            pass

    try:
        return dict(headers)
    except (TypeError, ValueError):
        return None


def normalize_headers(headers: Mapping[object, object] | None) -> dict[str, str]:
    """Return a lowercase-keyed copy of a header mapping."""
    coerced = _coerce_headers_mapping(headers)
    if not coerced:
        return {}
    out: dict[str, str] = {}
    for key, value in coerced.items():
        if key is None:
            continue
        name = str(key).strip().lower()
        if not name:
            continue
        out[name] = "" if value is None else str(value)
    return out


def header_value(headers: Mapping[object, object] | None, name: str, default: str = "") -> str:
    """
    Return a header value using case-insensitive key matching.

    Fast-paths common key casings before falling back to a full scan.
    """
    if not headers or not name:
        return default

    coerced = _coerce_headers_mapping(headers)
    if not coerced:
        return default

    lower = str(name).lower()
    for key in (name, lower, lower.title()):
        if key in coerced:
            value = coerced.get(key)
            return default if value is None else str(value).strip()

    for key, value in coerced.items():
        if key is None:
            continue
        if str(key).lower() == lower:
            return default if value is None else str(value).strip()

    return default


def render_header_lines(headers: Mapping[str, Any] | None) -> list[str]:
    """Render a name -> value mapping as `"Name: value"` lines."""
    if not headers:
        return []
    return [f"{name}: {'' if value is None else value}" for name, value in headers.items()]


def parse_header_lines(lines: Iterable[str] | None) -> list[tuple[str, str | None]]:
    """
    Parse `"Name: value"` lines into ordered pairs.

    `"Name:"` with nothing after the colon yields `(name, None)`, meaning the header
    must not be sent at all. `"Name;"` sends the header with an empty value.
    """
    pairs: list[tuple[str, str | None]] = []
    for raw in lines or ():
        line = str(raw or "").strip()
        if not line:
            continue
        if ":" in line:
            name, _, value = line.partition(":")
            name = name.strip()
            value = value.strip()
            if name:
                pairs.append((name, value or None))
            continue
        if line.endswith(";"):
            name = line[:-1].strip()
            if name:
                pairs.append((name, ""))
    return pairs


def format_header_block(status_line: str, headers: Iterable[tuple[str, str]]) -> str:
    """Build a raw response header block terminated by an empty line."""
    lines = [status_line]
    lines.extend(f"{name}: {value}" for name, value in headers)
    return "\r\n".join(lines) + "\r\n\r\n"


__all__ = [
    "format_header_block",
    "header_value",
    "normalize_headers",
    "parse_header_lines",
    "render_header_lines",
]
