# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Programmable TransferEngine for tests and offline use."""

from __future__ import annotations

import io
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from ..errors import OutputWriteError, TransferError
from .engine import FAIL_ON_ERROR_STATUS, BaseTransferEngine, TransferHandle
from .models import TransferResult
from .options import Option


class StubTransferEngine(BaseTransferEngine):
    """
    Deterministic engine that answers from canned results keyed by URL.

    Every performed option set is recorded in `performed`, so tests can assert on
    exactly what would have been handed to a real engine.
    """

    def __init__(self, responses: Mapping[str, TransferResult | Mapping[str, Any]] | None = None):
        self._responses: dict[str, TransferResult] = {}
        for url, response in (responses or {}).items():
            self.add(url, response)
        self.performed: list[dict[Option, Any]] = []
        self.created = 0
        self.released = 0

    def add(self, url: str, response: TransferResult | Mapping[str, Any]) -> None:
        if not isinstance(response, TransferResult):
            response = TransferResult.from_mapping(response)
        self._responses[url] = response

    @property
    def last_options(self) -> dict[Option, Any]:
        return self.performed[-1] if self.performed else {}

    def create(self) -> TransferHandle:
        self.created += 1
        return super().create()

    def _release(self, handle: TransferHandle) -> None:
        self.released += 1

    def _transfer(self, handle: TransferHandle) -> TransferResult:
        options = dict(handle.options)
        self.performed.append(options)
        url = str(options[Option.URL])

        canned = self._responses.get(url)
        if canned is None:
            return TransferResult(
                error_code=TransferError.COULDNT_RESOLVE_HOST,
                error_message="No stubbed response configured",
                effective_url=url,
            )

        result = replace(canned, headers=dict(canned.headers), meta=dict(canned.meta))
        if not result.effective_url:
            result.effective_url = url
        if not result.ok:
            result.content = None
            return result
        if not options.get(Option.HEADER):
            result.header_text = None

        if options.get(Option.FAIL_ON_ERROR) and result.status_code >= FAIL_ON_ERROR_STATUS:
            result.error_code = TransferError.HTTP_RETURNED_ERROR
            result.error_message = f"The requested URL returned error: {result.status_code}"
            result.content = None
            return result

        target = options.get(Option.FILE)
        if target is not None:
            header_text = result.header_text or ""
            payload: str | bytes = header_text.encode("latin-1") + (result.content or b"")
            if isinstance(target, io.TextIOBase):
                payload = header_text + (result.body or "")
            try:
                target.write(payload)
            except (OSError, ValueError, TypeError) as exc:
                raise OutputWriteError(f"Failed writing body: {exc}") from exc
            result.content = None
        elif not options.get(Option.RETURN_TRANSFER):
            result.content = None
        return result


__all__ = ["StubTransferEngine"]
