# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Ambient transfer context.

A ContextVar-backed TransferContext carries the engine and settings that
TransferClient and Request fall back to when none are passed explicitly.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import Any

from ..config import TransferSettings, load_settings
from ..transfer.engine import TransferEngine, create_default_engine


@dataclass(frozen=True)
class TransferContext:
    engine: TransferEngine | None = None
    settings: TransferSettings | None = None


_current_transfer_context: ContextVar[TransferContext | None] = ContextVar("fetchkit_transfer_context", default=None)


def get_transfer_context() -> TransferContext:
    """Return the current ambient transfer context."""
    return _current_transfer_context.get() or TransferContext()


def get_settings() -> TransferSettings:
    """Return TransferSettings from context, falling back to loading defaults."""
    context = get_transfer_context()
    if context.settings is not None:
        return context.settings
    return load_settings()


def resolve_engine(engine: TransferEngine | None = None, settings: TransferSettings | None = None) -> TransferEngine:
    """Explicit engine first, then the ambient one, then a fresh default engine."""
    if engine is not None:
        return engine
    context = get_transfer_context()
    if context.engine is not None:
        return context.engine
    return create_default_engine(settings or get_settings())


@contextmanager
def transfer_context(**overrides: Any) -> Iterator[TransferContext]:
    """
    Context manager that layers overrides onto the ambient TransferContext.

    None-valued overrides are ignored to preserve outer context values.
    """
    current = get_transfer_context()
    filtered = {key: value for key, value in overrides.items() if value is not None}
    new_context = replace(current, **filtered) if filtered else current
    token = _current_transfer_context.set(new_context)
    try:
        yield new_context
    finally:
        _current_transfer_context.reset(token)


__all__ = [
    "TransferContext",
    "get_settings",
    "get_transfer_context",
    "resolve_engine",
    "transfer_context",
]
