# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Fluent request builder.

Request only accumulates options and headers; nothing touches a transfer handle
until an action method (`get`, `post`, `download_to`) builds a Response.

Example::

    try:
        response = (
            Request()
            .set_useragent("Mozilla/4.0 (compatible; MSIE 6.0; Windows NT 5.1)")
            .set_cookie_storage("/tmp/cookies.txt")
            .post("http://www.foo.com/login.php", {"login": "pera", "pass": "secret"})
        )
    except InvalidArgumentError as exc:
        print(exc)
"""

from __future__ import annotations

import logging
import os
import warnings
from collections.abc import Mapping
from typing import Any

from .config import TransferSettings
from .errors import InvalidArgumentError
from .response import Response
from .transfer.engine import TransferEngine
from .transfer.models import FileUpload
from .transfer.options import Option
from .transfer.query import build_query, has_nested_values
from .utils.context import get_settings, resolve_engine

logger = logging.getLogger(__name__)


def _own_value(value: Any) -> Any:
    # multi-value headers are held as a private list
    return list(value) if isinstance(value, (list, tuple)) else value


def default_options(settings: TransferSettings) -> dict[Option, Any]:
    """Sensible defaults for most transfers."""
    return {
        Option.RETURN_TRANSFER: True,
        Option.FAIL_ON_ERROR: settings.fail_on_error,
        Option.FOLLOW_LOCATION: settings.follow_redirects,
        Option.ENCODING: settings.encoding,
        Option.SSL_VERIFY_PEER: settings.verify_ssl,
        Option.TIMEOUT: settings.timeout,
    }


class Request:
    """Chainable accumulator of transfer options and request headers."""

    def __init__(
        self,
        options: Mapping[Option | str, Any] | None = None,
        *,
        engine: TransferEngine | None = None,
        settings: TransferSettings | None = None,
    ):
        self.settings = settings or get_settings()
        self._engine = engine
        self._options: dict[Option, Any] = default_options(self.settings)
        for option, value in (options or {}).items():
            self._options[Option.coerce(option)] = value
        self._headers: dict[str, Any] = {}

    def set_credentials(self, username: str, password: str) -> Request:
        return self.set_option(Option.USER_PWD, f"{username}:{password}")

    def set_referer(self, referer: str) -> Request:
        return self.set_option(Option.REFERER, referer)

    def set_useragent(self, agent: str) -> Request:
        return self.set_option(Option.USER_AGENT, agent)

    def set_headers_used(self, used: bool) -> Request:
        """Capture the raw response header block."""
        return self.set_option(Option.HEADER, used)

    def set_body_used(self, used: bool) -> Request:
        """Return the body to the caller (False reads and discards it)."""
        return self.set_option(Option.RETURN_TRANSFER, used)

    def set_proxy(self, proxy: str) -> Request:
        return self.set_option(Option.PROXY, proxy)

    def set_cookie_storage(self, file: str) -> Request:
        """Load cookies from and store them to `file` (must be in a writable dir)."""
        self.set_option(Option.COOKIE_JAR, file)
        return self.set_option(Option.COOKIE_FILE, file)

    def set_timeout(self, timeout: float) -> Request:
        return self.set_option(Option.TIMEOUT, timeout)

    def set_interface(self, interface: str) -> Request:
        return self.set_option(Option.INTERFACE, interface)

    def set_option(self, option: Option | str, value: Any) -> Request:
        self._options[Option.coerce(option)] = value
        return self

    def get_option(self, option: Option | str) -> Any:
        return self._options.get(Option.coerce(option))

    def get_options(self) -> dict[Option, Any]:
        return dict(self._options)

    def get_headers(self) -> dict[str, str]:
        """Snapshot of the headers; repeated headers are joined with "; "."""
        headers: dict[str, str] = {}
        for name, value in self._headers.items():
            if isinstance(value, list):
                headers[name] = "; ".join(str(item) for item in value)
            else:
                headers[name] = value
        return headers

    def add_header(self, name: str, value: Any) -> Request:
        """Add a value to a header, keeping any value already present."""
        if name in self._headers:
            current = self._headers[name]
            if isinstance(current, list):
                current.append(value)
            else:
                self._headers[name] = [current, value]
        else:
            self._headers[name] = _own_value(value)
        return self

    def set_header(self, name: str, value: Any) -> Request:
        """Set a header, discarding any previous value."""
        self._headers[name] = _own_value(value)
        return self

    def set_headers(self, headers: Mapping[str, Any]) -> Request:
        self._headers = {name: _own_value(value) for name, value in headers.items()}
        return self

    def prepare_files(self, files: Mapping[str, str | os.PathLike[str]]) -> dict[str, FileUpload]:
        """Resolve each upload path and wrap it as a FileUpload marker."""
        prepared: dict[str, FileUpload] = {}
        for name, location in files.items():
            resolved = os.path.realpath(location)
            if not os.path.isfile(resolved):
                raise InvalidArgumentError(f"failed to open the file {location} for reading")
            prepared[name] = FileUpload(field=name, path=resolved)
        return prepared

    def prepare_post(self, post: Any) -> Any:
        """
        Flatten the POST payload for the engine's one-level field model.

        A mapping holding any nested mapping/list is serialized as a whole into a
        URL-encoded string; flat mappings and raw strings pass through.
        """
        if not isinstance(post, Mapping):
            return post
        if has_nested_values(post):
            if any(isinstance(value, FileUpload) for value in post.values()):
                logger.warning("Nested POST payload is serialized as a string; file uploads in it are not sent")
            return build_query(post)
        return dict(post)

    def post(
        self,
        url: str,
        post: Mapping[str, Any] | str | None = None,
        files: Mapping[str, str | os.PathLike[str]] | None = None,
    ) -> Response:
        """Send post data (and optional file uploads) to target URL."""
        if post is None:
            post = {}
        if files:
            if not isinstance(post, Mapping):
                raise InvalidArgumentError("can not support array of files and post data string")
            merged = dict(post)
            for name, upload in self.prepare_files(files).items():
                merged.setdefault(name, upload)
            post = merged

        options = self._finalize(url)
        options.pop(Option.HTTP_GET, None)
        options[Option.POST] = True
        options[Option.POST_FIELDS] = self.prepare_post(post)
        return Response(options, self.get_headers(), engine=self._resolve_engine())

    def get(self, url: str) -> Response:
        """Get data from target URL."""
        options = self._finalize(url)
        options.pop(Option.POST, None)
        options[Option.HTTP_GET] = True
        return Response(options, self.get_headers(), engine=self._resolve_engine())

    def download_to(self, url: str, target: Any, mode: str = "w+") -> Response:
        """
        Fetch target URL and store the body directly in a file.

        `target` is an open, writable file object (left open) or a path that is
        opened with `mode` here and always closed after the transfer.
        """
        options = self._finalize(url)
        options.pop(Option.POST, None)
        options.pop(Option.RETURN_TRANSFER, None)
        options[Option.HTTP_GET] = True

        owned = not hasattr(target, "write")
        if owned:
            try:
                fp = open(target, mode)
            except (OSError, TypeError, ValueError) as exc:
                raise InvalidArgumentError(f"failed to open the file {target} for writing") from exc
        else:
            fp = target

        options[Option.FILE] = fp
        try:
            return Response(options, self.get_headers(), engine=self._resolve_engine())
        finally:
            if owned:
                fp.close()

    def upload_to(
        self,
        url: str,
        post: Mapping[str, Any],
        files: Mapping[str, str | os.PathLike[str]],
    ) -> Response:
        """Deprecated alias for `post`."""
        warnings.warn("Request.upload_to() is deprecated; use Request.post()", DeprecationWarning, stacklevel=2)
        return self.post(url, post, files)

    def _finalize(self, url: str) -> dict[Option, Any]:
        options = dict(self._options)
        options[Option.URL] = url
        return options

    def _resolve_engine(self) -> TransferEngine:
        return resolve_engine(self._engine, self.settings)


__all__ = ["Request", "default_options"]
