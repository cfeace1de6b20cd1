# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
fetchkit package entrypoint.

Two object-oriented wrappers around an HTTP transfer engine: the stateful
TransferClient, which configures one reusable handle call by call, and the
fluent Request/Response pair, which accumulates options and performs each
transfer on a private handle. The engine itself sits behind an injectable
interface with an httpx-backed default.
"""

from .client import TransferClient
from .config import TransferSettings, load_settings
from .errors import (
    FetchKitError,
    HandleClosedError,
    InvalidArgumentError,
    TransferError,
)
from .log import setup_logging
from .request import Request
from .response import Response
from .transfer import (
    FileUpload,
    HttpxEngine,
    Info,
    Option,
    StubTransferEngine,
    TransferEngine,
    TransferResult,
    create_default_engine,
)
from .utils.context import transfer_context
from .version import __version__

__all__ = [
    "FetchKitError",
    "FileUpload",
    "HandleClosedError",
    "HttpxEngine",
    "Info",
    "InvalidArgumentError",
    "Option",
    "Request",
    "Response",
    "StubTransferEngine",
    "TransferClient",
    "TransferEngine",
    "TransferError",
    "TransferResult",
    "TransferSettings",
    "create_default_engine",
    "load_settings",
    "setup_logging",
    "transfer_context",
    "__version__",
]
