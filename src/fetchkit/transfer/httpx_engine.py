# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed TransferEngine implementation."""

from __future__ import annotations

import io
import logging
import os
from collections.abc import Callable, Mapping
from contextlib import ExitStack
from http.cookiejar import CookieJar, LoadError, MozillaCookieJar
from typing import Any

import httpx

from ..config import TransferSettings, load_settings
from ..errors import OutputWriteError, TransferError
from .engine import FAIL_ON_ERROR_STATUS, BaseTransferEngine, TransferHandle
from .headers import format_header_block, normalize_headers, parse_header_lines
from .models import FileUpload, TransferResult
from .options import Option

logger = logging.getLogger(__name__)

TransportFactory = Callable[..., httpx.BaseTransport]


def _field_value(value: Any) -> str:
    if value is True:
        return "1"
    if value is False:
        return "0"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class HttpxEngine(BaseTransferEngine):
    """
    Synchronous httpx engine.

    Each perform builds a short-lived httpx.Client on an HTTPTransport carrying the
    handle's TLS, proxy and bind-address options; cookie state lives on the handle so
    it survives across performs of a reused handle.
    """

    def __init__(
        self,
        settings: TransferSettings | None = None,
        transport_factory: TransportFactory | None = None,
    ):
        self.settings = settings or load_settings()
        self._transport_factory = transport_factory or httpx.HTTPTransport

    def _transfer(self, handle: TransferHandle) -> TransferResult:
        options = handle.options
        url = str(options[Option.URL])
        method = "POST" if options.get(Option.POST) else "GET"
        timeout = options.get(Option.TIMEOUT)

        with ExitStack() as stack:
            body_kwargs, content_type = self._prepare_body(options, stack) if method == "POST" else ({}, None)
            header_pairs, removed = self._prepare_headers(options, content_type)

            client = stack.enter_context(
                httpx.Client(
                    transport=self._build_transport(options),
                    follow_redirects=bool(options.get(Option.FOLLOW_LOCATION, False)),
                    max_redirects=self.settings.max_redirects,
                    timeout=float(timeout) if timeout else None,
                    cookies=self._cookie_jar(handle),
                    auth=self._auth(options),
                )
            )
            request = client.build_request(method, url, headers=header_pairs, **body_kwargs)
            for name in removed:
                request.headers.pop(name, None)

            response = client.send(request, stream=True)
            stack.callback(response.close)
            result = self._read_response(response, options)

        self._save_cookies(handle)
        return result

    def _read_response(self, response: httpx.Response, options: Mapping[Option, Any]) -> TransferResult:
        result = TransferResult(
            status_code=response.status_code,
            effective_url=str(response.url),
            headers=normalize_headers(response.headers),
            encoding=response.encoding,
            redirect_count=len(response.history),
        )
        if options.get(Option.HEADER):
            result.header_text = "".join(
                format_header_block(
                    f"{hop.http_version} {hop.status_code} {hop.reason_phrase}".rstrip(),
                    [(key.decode("latin-1"), value.decode("latin-1")) for key, value in hop.headers.raw],
                )
                for hop in [*response.history, response]
            )

        if options.get(Option.FAIL_ON_ERROR) and response.status_code >= FAIL_ON_ERROR_STATUS:
            result.error_code = TransferError.HTTP_RETURNED_ERROR
            result.error_message = f"The requested URL returned error: {response.status_code}"
            return result

        target = options.get(Option.FILE)
        if target is not None:
            self._stream_to(response, target, result.header_text)
        elif options.get(Option.RETURN_TRANSFER):
            result.content = response.read()
        else:
            for _ in response.iter_bytes():
                pass
        return result

    @staticmethod
    def _stream_to(response: httpx.Response, target: Any, header_text: str | None = None) -> None:
        try:
            text_mode = isinstance(target, io.TextIOBase)
            # the header block precedes the body in the output stream
            if header_text:
                target.write(header_text if text_mode else header_text.encode("latin-1"))
            if text_mode:
                for text in response.iter_text():
                    target.write(text)
            else:
                for chunk in response.iter_bytes():
                    target.write(chunk)
            flush = getattr(target, "flush", None)
            if callable(flush):
                flush()
        except (OSError, ValueError, TypeError) as exc:
            raise OutputWriteError(f"Failed writing body: {exc}") from exc

    def _build_transport(self, options: Mapping[Option, Any]) -> httpx.BaseTransport:
        verify = options.get(Option.SSL_VERIFY_PEER)
        return self._transport_factory(
            verify=self.settings.verify_ssl if verify is None else bool(verify),
            proxy=options.get(Option.PROXY) or None,
            local_address=options.get(Option.INTERFACE) or None,
        )

    @staticmethod
    def _auth(options: Mapping[Option, Any]) -> httpx.BasicAuth | None:
        credentials = options.get(Option.USER_PWD)
        if not credentials:
            return None
        username, _, password = str(credentials).partition(":")
        return httpx.BasicAuth(username, password)

    def _prepare_headers(
        self,
        options: Mapping[Option, Any],
        content_type: str | None,
    ) -> tuple[list[tuple[str, str]], list[str]]:
        internal: dict[str, str] = {"User-Agent": str(options.get(Option.USER_AGENT) or self.settings.user_agent)}
        if options.get(Option.ENCODING):
            internal["Accept-Encoding"] = str(options[Option.ENCODING])
        if options.get(Option.REFERER):
            internal["Referer"] = str(options[Option.REFERER])
        if options.get(Option.COOKIE):
            internal["Cookie"] = str(options[Option.COOKIE])
        if content_type:
            internal["Content-Type"] = content_type

        raw_lines = options.get(Option.HTTP_HEADER)
        if isinstance(raw_lines, str):
            raw_lines = [raw_lines]
        custom = parse_header_lines(raw_lines)
        custom_names = {name.lower() for name, _ in custom}

        pairs = [(name, value) for name, value in internal.items() if name.lower() not in custom_names]
        pairs.extend((name, value) for name, value in custom if value is not None)
        removed = [name for name, value in custom if value is None]
        return pairs, removed

    @staticmethod
    def _prepare_body(options: Mapping[Option, Any], stack: ExitStack) -> tuple[dict[str, Any], str | None]:
        fields = options.get(Option.POST_FIELDS)
        if fields is None:
            return {}, None
        if isinstance(fields, (str, bytes)):
            content = fields.encode("utf-8") if isinstance(fields, str) else fields
            return {"content": content}, "application/x-www-form-urlencoded"
        if not isinstance(fields, Mapping):
            return {"content": _field_value(fields).encode("utf-8")}, "application/x-www-form-urlencoded"

        # mappings always go out as multipart/form-data; plain fields carry no filename
        parts: list[tuple[str, tuple[str | None, Any, str | None]]] = []
        for name, value in fields.items():
            if value is None:
                continue
            if isinstance(value, FileUpload):
                fp = stack.enter_context(open(value.path, "rb"))
                parts.append((str(name), (value.filename, fp, value.content_type or "application/octet-stream")))
            elif isinstance(value, (list, tuple)):
                parts.extend((str(name), (None, _field_value(item).encode("utf-8"), None)) for item in value)
            else:
                parts.append((str(name), (None, _field_value(value).encode("utf-8"), None)))
        if not parts:
            return {}, None
        return {"files": parts}, None

    @staticmethod
    def _cookie_jar(handle: TransferHandle) -> CookieJar | None:
        options = handle.options
        cookie_file = options.get(Option.COOKIE_FILE)
        if not cookie_file and not options.get(Option.COOKIE_JAR):
            return handle.state.get("cookies")

        jar = handle.state.get("cookies")
        if jar is None:
            jar = MozillaCookieJar()
            handle.state["cookies"] = jar

        loaded: set[str] = handle.state.setdefault("cookie_files_loaded", set())
        if cookie_file and str(cookie_file) not in loaded:
            loaded.add(str(cookie_file))
            if os.path.exists(cookie_file):
                try:
                    jar.load(str(cookie_file), ignore_discard=True, ignore_expires=True)
                except (OSError, LoadError) as exc:
                    logger.warning("Could not load cookies from %s: %s", cookie_file, exc)
        return jar

    @staticmethod
    def _save_cookies(handle: TransferHandle) -> None:
        path = handle.options.get(Option.COOKIE_JAR)
        jar = handle.state.get("cookies")
        if not path or jar is None:
            return
        try:
            jar.save(str(path), ignore_discard=True, ignore_expires=True)
        except OSError as exc:
            logger.warning("Could not store cookies in %s: %s", path, exc)


__all__ = ["HttpxEngine"]
