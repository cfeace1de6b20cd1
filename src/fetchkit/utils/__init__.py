# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Utility exports."""

from .context import (
    TransferContext,
    get_settings,
    get_transfer_context,
    resolve_engine,
    transfer_context,
)

__all__ = [
    "TransferContext",
    "get_settings",
    "get_transfer_context",
    "resolve_engine",
    "transfer_context",
]
