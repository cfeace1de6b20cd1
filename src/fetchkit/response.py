# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Read-only outcome of a single transfer started by Request."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .transfer.engine import TransferEngine, open_handle
from .transfer.headers import header_value, render_header_lines
from .transfer.models import Headers, TransferResult
from .transfer.options import Option
from .utils.context import resolve_engine

logger = logging.getLogger(__name__)


class Response:
    """
    Performs exactly one transfer when constructed, then only exposes its outcome.

    Transport failures do not raise: check `has_error()` / `error_code`.
    """

    def __init__(
        self,
        options: Mapping[Option | str, Any],
        headers: Mapping[str, Any] | None = None,
        *,
        engine: TransferEngine | None = None,
    ):
        applied = {Option.coerce(key): value for key, value in options.items()}
        explicit = applied.get(Option.HTTP_HEADER) or []
        header_lines = [explicit] if isinstance(explicit, str) else list(explicit)
        header_lines.extend(render_header_lines(headers))
        if header_lines:
            applied[Option.HTTP_HEADER] = header_lines
        self._options = applied

        engine = resolve_engine(engine)
        with open_handle(engine) as handle:
            for option, value in applied.items():
                engine.set_option(handle, option, value)
            self._result: TransferResult = engine.perform(handle)

        if not self._result.ok:
            logger.debug(
                "Request to %s failed: #%s %s",
                applied.get(Option.URL),
                int(self._result.error_code),
                self._result.error_message,
            )

    @property
    def result(self) -> TransferResult:
        return self._result

    @property
    def options(self) -> dict[Option, Any]:
        """The options the transfer was performed with."""
        return dict(self._options)

    @property
    def ok(self) -> bool:
        return self._result.ok

    def has_error(self) -> bool:
        return not self._result.ok

    @property
    def error_code(self) -> int:
        return int(self._result.error_code)

    @property
    def error_message(self) -> str:
        return self._result.error_message

    @property
    def status_code(self) -> int:
        return self._result.status_code

    @property
    def effective_url(self) -> str | None:
        return self._result.effective_url or self._options.get(Option.URL)

    @property
    def headers(self) -> Headers:
        """Received headers, lower-cased names."""
        return dict(self._result.headers)

    def header(self, name: str, default: str = "") -> str:
        return header_value(self._result.headers, name, default)

    @property
    def header_text(self) -> str | None:
        """Raw header block; only present when headers were requested."""
        return self._result.header_text

    @property
    def body(self) -> str | None:
        return self._result.body

    @property
    def content(self) -> bytes | None:
        return self._result.content

    def __str__(self) -> str:
        return self._result.body or ""

    def __repr__(self) -> str:
        return (
            f"<Response [{self.status_code}] url={self.effective_url!r} "
            f"error={self.error_code}>"
        )


__all__ = ["Response"]
