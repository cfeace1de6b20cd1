# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transfer engine abstraction, handle bookkeeping and factory."""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..config import TransferSettings, load_settings
from ..errors import HandleClosedError, TransferError, categorize_exception, error_code_to_reason
from .models import TransferResult
from .options import EXCLUSIVE_OPTIONS, Info, Option

logger = logging.getLogger(__name__)

_handle_ids = itertools.count(1)

# FAIL_ON_ERROR turns any final status at or above this into a transfer failure.
FAIL_ON_ERROR_STATUS = 300


@dataclass(eq=False)
class TransferHandle:
    """One configured transfer context. Opaque to callers; engines own its contents."""

    options: dict[Option, Any] = field(default_factory=dict)
    last_result: TransferResult | None = None
    closed: bool = False
    state: dict[str, Any] = field(default_factory=dict)
    handle_id: int = field(default_factory=lambda: next(_handle_ids))


class TransferEngine(Protocol):
    """Minimal protocol for engines that execute configured transfers."""

    def create(self) -> TransferHandle: ...

    def set_option(self, handle: TransferHandle, option: Option | str, value: Any) -> None: ...

    def perform(self, handle: TransferHandle) -> TransferResult: ...

    def get_info(self, handle: TransferHandle, info: Info | str) -> Any: ...

    def error_code(self, handle: TransferHandle) -> int: ...

    def error_message(self, handle: TransferHandle) -> str: ...

    def close(self, handle: TransferHandle) -> None: ...


class BaseTransferEngine:
    """
    Handle bookkeeping shared by concrete engines.

    Subclasses implement `_transfer`; any exception it raises becomes a failed
    TransferResult with a categorized error code, so transport problems never
    escape `perform`.
    """

    def create(self) -> TransferHandle:
        return TransferHandle()

    def set_option(self, handle: TransferHandle, option: Option | str, value: Any) -> None:
        live = self._require_open(handle)
        key = Option.coerce(option)
        if value:
            for other in EXCLUSIVE_OPTIONS.get(key, ()):
                live.options.pop(other, None)
        live.options[key] = value

    def set_options(self, handle: TransferHandle, options: Mapping[Option | str, Any]) -> None:
        for option, value in options.items():
            self.set_option(handle, option, value)

    def perform(self, handle: TransferHandle) -> TransferResult:
        live = self._require_open(handle)
        url = live.options.get(Option.URL)
        started = time.monotonic()
        if not url:
            result = TransferResult(
                error_code=TransferError.URL_MALFORMAT,
                error_message="No URL set",
            )
        else:
            try:
                result = self._transfer(live)
            except Exception as exc:  # noqa: BLE001
                code = categorize_exception(exc)
                result = TransferResult(
                    error_code=code,
                    error_message=str(exc) or error_code_to_reason(code),
                    effective_url=str(url),
                    meta={"error_type": type(exc).__name__},
                )
        if not result.elapsed:
            result.elapsed = time.monotonic() - started
        live.last_result = result

        if result.ok:
            logger.debug("Transfer %s -> %s (%s)", url, result.status_code, result.effective_url)
        else:
            logger.debug("Transfer %s failed: #%s %s", url, int(result.error_code), result.error_message)
        return result

    def get_info(self, handle: TransferHandle, info: Info | str) -> Any:
        live = self._require_open(handle)
        key = Info.coerce(info)
        result = live.last_result
        if key is Info.EFFECTIVE_URL:
            if result is not None and result.effective_url:
                return result.effective_url
            return live.options.get(Option.URL)
        if result is None:
            return None if key is Info.CONTENT_TYPE else 0
        if key is Info.HTTP_CODE:
            return result.status_code
        if key is Info.CONTENT_TYPE:
            return result.content_type
        if key is Info.REDIRECT_COUNT:
            return result.redirect_count
        return result.elapsed

    def error_code(self, handle: TransferHandle) -> int:
        live = self._require_open(handle)
        if live.last_result is None:
            return int(TransferError.OK)
        return int(live.last_result.error_code)

    def error_message(self, handle: TransferHandle) -> str:
        live = self._require_open(handle)
        if live.last_result is None:
            return ""
        return live.last_result.error_message

    def close(self, handle: TransferHandle) -> None:
        if handle.closed:
            return
        try:
            self._release(handle)
        finally:
            handle.closed = True
            handle.options.clear()
            handle.state.clear()

    def _transfer(self, handle: TransferHandle) -> TransferResult:
        raise NotImplementedError

    def _release(self, handle: TransferHandle) -> None:
        return None

    @staticmethod
    def _require_open(handle: TransferHandle) -> TransferHandle:
        if handle is None or handle.closed:
            raise HandleClosedError("transfer handle has been closed")
        return handle


@contextmanager
def open_handle(engine: TransferEngine) -> Iterator[TransferHandle]:
    """Scoped handle acquisition: the handle is always released on exit."""
    handle = engine.create()
    try:
        yield handle
    finally:
        engine.close(handle)


def create_default_engine(settings: TransferSettings | None = None) -> TransferEngine:
    """Factory for the default httpx-backed engine."""
    from .httpx_engine import HttpxEngine

    return HttpxEngine(settings or load_settings())


__all__ = [
    "FAIL_ON_ERROR_STATUS",
    "BaseTransferEngine",
    "TransferEngine",
    "TransferHandle",
    "create_default_engine",
    "open_handle",
]
