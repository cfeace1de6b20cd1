# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl
from enum import IntEnum

import httpx


class FetchKitError(Exception):
    """Base class for failures raised (not returned) by fetchkit."""


class InvalidArgumentError(FetchKitError, ValueError):
    """A caller-supplied argument or local resource cannot be used for a transfer."""


class HandleClosedError(FetchKitError, RuntimeError):
    """An operation was attempted on a transfer handle that has been released."""


class OutputWriteError(FetchKitError):
    """Writing the response body to the output stream failed."""


class TransferError(IntEnum):
    """Transfer outcome codes, numbered like the classic native transfer engine."""

    OK = 0
    UNSUPPORTED_PROTOCOL = 1
    URL_MALFORMAT = 3
    COULDNT_RESOLVE_PROXY = 5
    COULDNT_RESOLVE_HOST = 6
    COULDNT_CONNECT = 7
    HTTP_RETURNED_ERROR = 22
    WRITE_ERROR = 23
    READ_ERROR = 26
    OPERATION_TIMEDOUT = 28
    SSL_CONNECT_ERROR = 35
    TOO_MANY_REDIRECTS = 47
    SEND_ERROR = 55
    RECV_ERROR = 56
    PEER_FAILED_VERIFICATION = 60
    BAD_CONTENT_ENCODING = 61
    UNKNOWN = 99


def _exception_chain(exc: BaseException):
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _categorize_os_error(exc: BaseException) -> TransferError | None:
    if isinstance(exc, ssl.SSLCertVerificationError):
        return TransferError.PEER_FAILED_VERIFICATION
    if isinstance(exc, ssl.SSLError):
        return TransferError.SSL_CONNECT_ERROR
    if isinstance(exc, (socket.gaierror, socket.herror)):
        return TransferError.COULDNT_RESOLVE_HOST
    if isinstance(exc, ConnectionError):
        return TransferError.COULDNT_CONNECT
    return None


def categorize_exception(exc: BaseException) -> TransferError:
    """
    Map httpx/ssl/socket/OS exceptions raised during a transfer to a TransferError.

    httpx wraps the low-level cause, so TLS and DNS failures are recognized by
    walking the exception chain of a ConnectError.
    """
    if isinstance(exc, OutputWriteError):
        return TransferError.WRITE_ERROR
    if isinstance(exc, httpx.TimeoutException):
        return TransferError.OPERATION_TIMEDOUT
    if isinstance(exc, httpx.ProxyError):
        return TransferError.COULDNT_RESOLVE_PROXY
    if isinstance(exc, httpx.UnsupportedProtocol):
        return TransferError.UNSUPPORTED_PROTOCOL
    if isinstance(exc, httpx.InvalidURL):
        return TransferError.URL_MALFORMAT
    if isinstance(exc, httpx.TooManyRedirects):
        return TransferError.TOO_MANY_REDIRECTS
    if isinstance(exc, httpx.DecodingError):
        return TransferError.BAD_CONTENT_ENCODING
    if isinstance(exc, httpx.ConnectError):
        for cause in _exception_chain(exc):
            category = _categorize_os_error(cause)
            if category is not None:
                return category
        message = str(exc).lower()
        if "name or service not known" in message or "nodename nor servname" in message:
            return TransferError.COULDNT_RESOLVE_HOST
        return TransferError.COULDNT_CONNECT
    if isinstance(exc, httpx.WriteError):
        return TransferError.SEND_ERROR
    if isinstance(exc, (httpx.ReadError, httpx.RemoteProtocolError)):
        return TransferError.RECV_ERROR

    category = _categorize_os_error(exc)
    if category is not None:
        return category
    if isinstance(exc, OSError):
        # Local file problems (e.g. an upload that cannot be read).
        return TransferError.READ_ERROR
    return TransferError.UNKNOWN


def error_code_to_reason(code: int | None) -> str:
    """Human-readable reason for an error code."""
    mapping = {
        TransferError.OK: "",
        TransferError.UNSUPPORTED_PROTOCOL: "Unsupported protocol",
        TransferError.URL_MALFORMAT: "URL using bad/illegal format or missing URL",
        TransferError.COULDNT_RESOLVE_PROXY: "Couldn't resolve proxy name",
        TransferError.COULDNT_RESOLVE_HOST: "Couldn't resolve host name",
        TransferError.COULDNT_CONNECT: "Couldn't connect to server",
        TransferError.HTTP_RETURNED_ERROR: "HTTP response code said error",
        TransferError.WRITE_ERROR: "Failed writing received data to disk/application",
        TransferError.READ_ERROR: "Failed to open/read local data from file/application",
        TransferError.OPERATION_TIMEDOUT: "Timeout was reached",
        TransferError.SSL_CONNECT_ERROR: "SSL connect error",
        TransferError.TOO_MANY_REDIRECTS: "Number of redirects hit maximum amount",
        TransferError.SEND_ERROR: "Failed sending data to the peer",
        TransferError.RECV_ERROR: "Failure when receiving data from the peer",
        TransferError.PEER_FAILED_VERIFICATION: "SSL peer certificate or SSH remote key was not OK",
        TransferError.BAD_CONTENT_ENCODING: "Unrecognized or bad HTTP Content or Transfer-Encoding",
        TransferError.UNKNOWN: "Unknown error",
    }
    if code is None:
        return ""
    try:
        return mapping[TransferError(code)]
    except ValueError:
        return "Unknown error"


__all__ = [
    "FetchKitError",
    "HandleClosedError",
    "InvalidArgumentError",
    "OutputWriteError",
    "TransferError",
    "categorize_exception",
    "error_code_to_reason",
]
