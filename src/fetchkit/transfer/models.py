# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transfer result and upload marker models."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import TransferError

Headers = dict[str, str]


@dataclass(frozen=True)
class FileUpload:
    """Marks a POST field whose value is streamed from a local file."""

    field: str
    path: str
    content_type: str | None = None

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)


@dataclass
class TransferResult:
    """Outcome of exactly one transfer performed on a handle."""

    error_code: int = TransferError.OK
    error_message: str = ""
    status_code: int = 0
    effective_url: str | None = None
    headers: Headers = field(default_factory=dict)
    header_text: str | None = None
    content: bytes | None = None
    encoding: str | None = None
    redirect_count: int = 0
    elapsed: float = 0.0
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error_code == TransferError.OK

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def body(self) -> str | None:
        """Decoded body text, or None when no body was returned to the caller."""
        if self.content is None:
            return None
        try:
            return self.content.decode(self.encoding or "utf-8", errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")

    @property
    def output(self) -> str | None:
        """What a buffered transfer hands back: header block (if requested) followed by the body."""
        body = self.body
        if self.header_text is None:
            return body
        return self.header_text + (body or "")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TransferResult:
        """Helper to normalize dictionary-like results (e.g. canned test responses)."""
        raw_headers: Any = data.get("headers") or {}
        headers: Headers = {}
        if isinstance(raw_headers, Mapping):
            for key, value in raw_headers.items():
                if key is None:
                    continue
                headers[str(key).lower()] = "" if value is None else str(value)

        raw_body = data.get("body")
        content: bytes | None = None
        if isinstance(raw_body, (bytes, bytearray, memoryview)):
            content = bytes(raw_body)
        elif isinstance(raw_body, str):
            content = raw_body.encode("utf-8")

        known = {"error_code", "error_message", "status_code", "url", "effective_url", "headers", "header_text", "body", "encoding"}
        return cls(
            error_code=int(data.get("error_code") or TransferError.OK),
            error_message=str(data.get("error_message") or ""),
            status_code=int(data.get("status_code") or 0),
            effective_url=data.get("effective_url") or data.get("url"),
            headers=headers,
            header_text=data.get("header_text"),
            content=content,
            encoding=data.get("encoding"),
            meta={k: v for k, v in data.items() if k not in known},
        )


__all__ = ["FileUpload", "Headers", "TransferResult"]
