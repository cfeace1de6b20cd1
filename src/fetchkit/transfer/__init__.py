# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transfer engine exports."""

from .adapters import StubTransferEngine
from .engine import (
    FAIL_ON_ERROR_STATUS,
    BaseTransferEngine,
    TransferEngine,
    TransferHandle,
    create_default_engine,
    open_handle,
)
from .headers import header_value, normalize_headers, parse_header_lines, render_header_lines
from .httpx_engine import HttpxEngine
from .models import FileUpload, Headers, TransferResult
from .options import Info, Option
from .query import build_query, has_nested_values

__all__ = [
    "FAIL_ON_ERROR_STATUS",
    "BaseTransferEngine",
    "FileUpload",
    "Headers",
    "HttpxEngine",
    "Info",
    "Option",
    "StubTransferEngine",
    "TransferEngine",
    "TransferHandle",
    "TransferResult",
    "build_query",
    "create_default_engine",
    "has_nested_values",
    "header_value",
    "normalize_headers",
    "open_handle",
    "parse_header_lines",
    "render_header_lines",
]
