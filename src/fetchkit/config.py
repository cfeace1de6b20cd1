# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for fetchkit."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"fetchkit/{__version__}"
DEFAULT_ENCODING = "gzip, deflate"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class TransferSettings:
    """Transfer defaults shared by TransferClient, Request and the engines."""

    timeout: float = 5.0
    post_timeout: float = 15.0
    multipart_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    verify_ssl: bool = False
    follow_redirects: bool = True
    fail_on_error: bool = True
    encoding: str = DEFAULT_ENCODING
    max_redirects: int = 20
    debug: bool = False

    @classmethod
    def from_env(cls) -> "TransferSettings":
        """Create settings from environment variables (evaluated at call time)."""
        max_redirects = _int_env("FETCHKIT_MAX_REDIRECTS", cls.max_redirects)
        if max_redirects < 0:
            max_redirects = cls.max_redirects
        return cls(
            timeout=_float_env("FETCHKIT_TIMEOUT", cls.timeout),
            post_timeout=_float_env("FETCHKIT_POST_TIMEOUT", cls.post_timeout),
            multipart_timeout=_float_env("FETCHKIT_MULTIPART_TIMEOUT", cls.multipart_timeout),
            user_agent=os.getenv("FETCHKIT_USER_AGENT", cls.user_agent),
            verify_ssl=_bool_env("FETCHKIT_VERIFY_SSL", cls.verify_ssl),
            follow_redirects=_bool_env("FETCHKIT_FOLLOW_REDIRECTS", cls.follow_redirects),
            fail_on_error=_bool_env("FETCHKIT_FAIL_ON_ERROR", cls.fail_on_error),
            encoding=os.getenv("FETCHKIT_ENCODING", cls.encoding),
            max_redirects=max_redirects,
            debug=_bool_env("FETCHKIT_DEBUG", cls.debug),
        )


def load_settings() -> TransferSettings:
    """Load transfer settings from environment with sensible defaults."""
    return TransferSettings.from_env()
