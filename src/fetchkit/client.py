# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Stateful transfer client.

TransferClient owns one transfer handle and reuses it for every call until
`close()`. Setters configure the handle immediately; action methods finish the
per-call options, perform one transfer and return the body or `False`.

Example::

    client = TransferClient()
    client.set_user_agent("Mozilla/4.0 (compatible; MSIE 6.0; Windows NT 5.1)")
    client.store_cookies("/tmp/cookies.txt")
    html = client.send_post_data("http://www.foo.com/login.php", {"login": "pera", "password": "joe"})
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import IO, Any, Literal

from .config import TransferSettings
from .errors import HandleClosedError
from .transfer.engine import TransferEngine, TransferHandle
from .transfer.models import FileUpload
from .transfer.options import Info, Option
from .transfer.query import build_query
from .utils.context import get_settings, resolve_engine

logger = logging.getLogger(__name__)


class TransferClient:
    """Imperative wrapper around a single, reusable transfer handle."""

    def __init__(
        self,
        debug: bool | None = None,
        *,
        engine: TransferEngine | None = None,
        settings: TransferSettings | None = None,
    ):
        self.settings = settings or get_settings()
        self.debug = self.settings.debug if debug is None else bool(debug)
        self.engine = resolve_engine(engine, self.settings)
        self._handle: TransferHandle | None = None
        self.init()

    def init(self) -> None:
        """Create the transfer handle and apply the default hardening options."""
        if self._handle is not None and not self._handle.closed:
            self.engine.close(self._handle)
        self._handle = self.engine.create()

        # any final status >= 300 counts as an error
        self._set(Option.FAIL_ON_ERROR, self.settings.fail_on_error)
        self._set(Option.FOLLOW_LOCATION, self.settings.follow_redirects)
        self._set(Option.ENCODING, self.settings.encoding)
        # peer verification is off unless configured
        self._set(Option.SSL_VERIFY_PEER, self.settings.verify_ssl)

    @property
    def handle(self) -> TransferHandle:
        return self._require_open()

    @property
    def closed(self) -> bool:
        return self._handle is None or self._handle.closed

    def _require_open(self) -> TransferHandle:
        if self._handle is None or self._handle.closed:
            raise HandleClosedError("TransferClient is closed; call init() before reusing it")
        return self._handle

    def _set(self, option: Option, value: Any) -> None:
        self.engine.set_option(self.handle, option, value)

    def set_credentials(self, username: str, password: str) -> None:
        """Set username/password for basic HTTP auth."""
        self._set(Option.USER_PWD, f"{username}:{password}")

    def set_referrer(self, referrer_url: str) -> None:
        self._set(Option.REFERER, referrer_url)

    def set_user_agent(self, useragent: str) -> None:
        self._set(Option.USER_AGENT, useragent)

    def include_response_headers(self, value: bool) -> None:
        """Prefix the raw response header block to every returned body."""
        self._set(Option.HEADER, value)

    def set_http_header(self, headers: list[str]) -> None:
        """Replace the custom request header lines (`"Name: value"`)."""
        self._set(Option.HTTP_HEADER, list(headers))

    def set_proxy(self, proxy: str) -> None:
        self._set(Option.PROXY, proxy)

    def _prepare_call(self, url: str, ip: str | None, timeout: float | None) -> None:
        self._set(Option.URL, url)
        if ip:
            if self.debug:
                logger.info("Binding to ip %s", ip)
            self._set(Option.INTERFACE, ip)
        self._set(Option.TIMEOUT, timeout)

    def _execute(self) -> str | Literal[False]:
        result = self.engine.perform(self.handle)
        if not result.ok:
            return False
        return result.output if result.output is not None else ""

    def send_post_data(
        self,
        url: str,
        postdata: Mapping[str, Any] | str,
        ip: str | None = None,
        timeout: float | None = None,
    ) -> str | Literal[False]:
        """
        Send post data to target URL.

        `postdata` is either a mapping (URL-encoded here) or an already encoded
        `var=val1&var2=val2` string. Returns the response body, or False on error.
        """
        self._set(Option.RETURN_TRANSFER, True)
        self._prepare_call(url, ip, self.settings.post_timeout if timeout is None else timeout)
        self._set(Option.POST, True)

        if isinstance(postdata, Mapping):
            post_string = build_query(postdata)
            if self.debug:
                logger.info("Url: %s Post String: %s", url, post_string)
        else:
            post_string = postdata

        self._set(Option.POST_FIELDS, post_string)
        return self._execute()

    def fetch_url(self, url: str, ip: str | None = None, timeout: float | None = None) -> str | Literal[False]:
        """Fetch data from target URL; returns the body or False on error."""
        self._set(Option.HTTP_GET, True)
        self._set(Option.RETURN_TRANSFER, True)
        self._prepare_call(url, ip, self.settings.timeout if timeout is None else timeout)
        return self._execute()

    def fetch_into_file(self, url: str, fp: IO[Any], ip: str | None = None, timeout: float | None = None) -> bool:
        """Fetch target URL and stream the body into an already open, writable file."""
        self._set(Option.HTTP_GET, True)
        self._set(Option.FILE, fp)
        self._prepare_call(url, ip, self.settings.timeout if timeout is None else timeout)
        return self.engine.perform(self.handle).ok

    def send_multipart_post_data(
        self,
        url: str,
        postdata: Mapping[str, Any],
        file_field_array: Mapping[str, str] | None = None,
        ip: str | None = None,
        timeout: float | None = None,
    ) -> str | Literal[False]:
        """
        Send multipart post data to the target URL.

        `file_field_array` maps field names to local file paths. Returns the
        response body, or False on error or when `postdata` is not a mapping.
        """
        if not isinstance(postdata, Mapping):
            return False

        self._set(Option.RETURN_TRANSFER, True)
        self._prepare_call(url, ip, self.settings.multipart_timeout if timeout is None else timeout)
        self._set(Option.POST, True)

        # an empty Expect header stops the engine from waiting on "100 Continue"
        self.set_http_header(["Expect: "])

        post_array = dict(postdata)
        if self.debug:
            logger.info("Post String: %s", build_query(post_array))

        files: dict[str, Any] = {}
        for name, path in (file_field_array or {}).items():
            location = str(path)
            if os.name == "nt":
                location = location.replace("/", "\\")
            files[name] = FileUpload(field=name, path=location)

        self._set(Option.POST_FIELDS, {**post_array, **files})
        return self._execute()

    def store_cookies(self, cookie_file: str) -> None:
        """Read cookies from and persist them to `cookie_file` on every request."""
        self._set(Option.COOKIE_JAR, cookie_file)
        self._set(Option.COOKIE_FILE, cookie_file)

    def set_cookie(self, cookie: str) -> None:
        self._set(Option.COOKIE, cookie)

    def get_effective_url(self) -> str | None:
        """Last URL reached; differs from the requested one after redirects."""
        return self.engine.get_info(self.handle, Info.EFFECTIVE_URL)

    def get_http_response_code(self) -> int:
        return self.engine.get_info(self.handle, Info.HTTP_CODE)

    def get_error_msg(self) -> str:
        handle = self.handle
        return f"Transfer error #{self.engine.error_code(handle)}: {self.engine.error_message(handle)}"

    def has_error(self) -> bool:
        return self.engine.error_code(self.handle) != 0

    def close(self) -> None:
        """Release the handle. `init()` must be called before the client is used again."""
        if self._handle is not None:
            self.engine.close(self._handle)

    def download(
        self,
        url: str,
        filepath: str | os.PathLike[str],
        mode: str = "w+",
        ip: str | None = None,
        timeout: float | None = None,
    ) -> bool:
        """
        Download a remote file to `filepath`.

        `url` must be a non-empty string; any other value (numbers included) and an
        empty or non-path `filepath` return False without touching the filesystem,
        as does a file that cannot be opened.
        Once the file is open the result is True whatever the transfer outcome;
        check `has_error()` to learn whether the fetch itself succeeded.
        """
        if not isinstance(url, str) or not url:
            return False
        if not isinstance(filepath, (str, os.PathLike)) or not os.fspath(filepath):
            return False

        # a closed client must fail before the target file is created or truncated
        self._require_open()
        try:
            fp = open(filepath, mode)
        except (OSError, ValueError) as exc:
            logger.debug("Cannot open %s for download: %s", filepath, exc)
            return False

        with fp:
            self.fetch_into_file(url, fp, ip, timeout)
        return True

    def __enter__(self) -> TransferClient:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()


__all__ = ["TransferClient"]
