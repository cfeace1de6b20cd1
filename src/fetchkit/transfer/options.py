# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Closed enumerations of transfer options and transfer info keys."""

from __future__ import annotations

from enum import Enum
from typing import Any

from ..errors import InvalidArgumentError


class Option(str, Enum):
    """Options understood by every TransferEngine."""

    URL = "url"
    HTTP_GET = "http_get"
    POST = "post"
    POST_FIELDS = "post_fields"
    RETURN_TRANSFER = "return_transfer"
    FAIL_ON_ERROR = "fail_on_error"
    FOLLOW_LOCATION = "follow_location"
    ENCODING = "encoding"
    SSL_VERIFY_PEER = "ssl_verify_peer"
    USER_PWD = "user_pwd"
    REFERER = "referer"
    USER_AGENT = "user_agent"
    HEADER = "header"
    HTTP_HEADER = "http_header"
    PROXY = "proxy"
    COOKIE_JAR = "cookie_jar"
    COOKIE_FILE = "cookie_file"
    COOKIE = "cookie"
    INTERFACE = "interface"
    TIMEOUT = "timeout"
    FILE = "file"

    @classmethod
    def coerce(cls, key: Any) -> Option:
        """Accept a member or its string value; anything else is rejected."""
        if isinstance(key, cls):
            return key
        try:
            return cls(str(key).lower())
        except ValueError:
            raise InvalidArgumentError(f"unknown transfer option: {key!r}") from None


class Info(str, Enum):
    """Read-only facts about the last transfer performed on a handle."""

    EFFECTIVE_URL = "effective_url"
    HTTP_CODE = "http_code"
    CONTENT_TYPE = "content_type"
    REDIRECT_COUNT = "redirect_count"
    TOTAL_TIME = "total_time"

    @classmethod
    def coerce(cls, key: Any) -> Info:
        if isinstance(key, cls):
            return key
        try:
            return cls(str(key).lower())
        except ValueError:
            raise InvalidArgumentError(f"unknown transfer info key: {key!r}") from None


# Setting the key on the left (to a truthy value) clears the keys on the right.
EXCLUSIVE_OPTIONS: dict[Option, tuple[Option, ...]] = {
    Option.HTTP_GET: (Option.POST,),
    Option.POST: (Option.HTTP_GET,),
    Option.FILE: (Option.RETURN_TRANSFER,),
    Option.RETURN_TRANSFER: (Option.FILE,),
}


__all__ = ["EXCLUSIVE_OPTIONS", "Info", "Option"]
