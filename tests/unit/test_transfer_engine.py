# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import io

import pytest

from fetchkit.errors import HandleClosedError, InvalidArgumentError, TransferError
from fetchkit.transfer.adapters import StubTransferEngine
from fetchkit.transfer.engine import open_handle
from fetchkit.transfer.models import TransferResult
from fetchkit.transfer.options import Info, Option


def test_option_coerce_accepts_members_and_values():
    assert Option.coerce(Option.URL) is Option.URL
    assert Option.coerce("timeout") is Option.TIMEOUT
    assert Option.coerce("HTTP_HEADER") is Option.HTTP_HEADER
    with pytest.raises(InvalidArgumentError):
        Option.coerce("no_such_option")
    with pytest.raises(InvalidArgumentError):
        Info.coerce(42)


def test_later_writes_overwrite_and_method_selector_is_exclusive():
    engine = StubTransferEngine()
    handle = engine.create()

    engine.set_option(handle, Option.TIMEOUT, 5)
    engine.set_option(handle, "timeout", 9)
    assert handle.options[Option.TIMEOUT] == 9

    engine.set_option(handle, Option.POST, True)
    engine.set_option(handle, Option.HTTP_GET, True)
    assert Option.POST not in handle.options

    engine.set_option(handle, Option.POST, True)
    assert Option.HTTP_GET not in handle.options


def test_write_target_is_exclusive():
    engine = StubTransferEngine()
    handle = engine.create()
    sink = io.BytesIO()

    engine.set_option(handle, Option.RETURN_TRANSFER, True)
    engine.set_option(handle, Option.FILE, sink)
    assert Option.RETURN_TRANSFER not in handle.options

    engine.set_option(handle, Option.RETURN_TRANSFER, True)
    assert Option.FILE not in handle.options


def test_perform_records_result_and_info():
    engine = StubTransferEngine(
        {"http://example/": {"status_code": 200, "body": "OK", "effective_url": "http://example/home"}}
    )
    handle = engine.create()
    assert engine.get_info(handle, Info.HTTP_CODE) == 0

    engine.set_option(handle, Option.URL, "http://example/")
    engine.set_option(handle, Option.RETURN_TRANSFER, True)
    result = engine.perform(handle)

    assert result.ok
    assert result.body == "OK"
    assert engine.get_info(handle, Info.HTTP_CODE) == 200
    assert engine.get_info(handle, "effective_url") == "http://example/home"
    assert engine.error_code(handle) == 0
    assert engine.error_message(handle) == ""


def test_perform_without_url_fails_deterministically():
    engine = StubTransferEngine()
    handle = engine.create()
    result = engine.perform(handle)
    assert result.error_code == TransferError.URL_MALFORMAT
    assert engine.performed == []


def test_unknown_url_reports_transport_failure():
    engine = StubTransferEngine()
    with open_handle(engine) as handle:
        engine.set_option(handle, Option.URL, "http://nowhere/")
        result = engine.perform(handle)
        assert not result.ok
        assert engine.error_code(handle) == TransferError.COULDNT_RESOLVE_HOST
        assert engine.error_message(handle) == "No stubbed response configured"


def test_closed_handle_rejects_every_call():
    engine = StubTransferEngine()
    handle = engine.create()
    engine.close(handle)
    engine.close(handle)

    assert engine.released == 1
    with pytest.raises(HandleClosedError):
        engine.set_option(handle, Option.URL, "http://example/")
    with pytest.raises(HandleClosedError):
        engine.perform(handle)
    with pytest.raises(HandleClosedError):
        engine.get_info(handle, Info.HTTP_CODE)


def test_open_handle_releases_on_error():
    engine = StubTransferEngine()
    with pytest.raises(RuntimeError):
        with open_handle(engine) as handle:
            raise RuntimeError("boom")
    assert handle.closed
    assert engine.created == engine.released == 1


def test_stub_applies_fail_on_error_and_header_capture():
    engine = StubTransferEngine(
        {
            "http://example/missing": TransferResult(status_code=404, content=b"nope"),
            "http://example/ok": TransferResult(status_code=200, content=b"body", header_text="HTTP/1.1 200 OK\r\n\r\n"),
        }
    )
    with open_handle(engine) as handle:
        engine.set_options(handle, {Option.URL: "http://example/missing", Option.FAIL_ON_ERROR: True})
        failed = engine.perform(handle)
    assert failed.error_code == TransferError.HTTP_RETURNED_ERROR
    assert failed.error_message == "The requested URL returned error: 404"
    assert failed.content is None

    with open_handle(engine) as handle:
        engine.set_options(handle, {Option.URL: "http://example/ok", Option.RETURN_TRANSFER: True})
        plain = engine.perform(handle)
    assert plain.header_text is None
    assert plain.output == "body"

    with open_handle(engine) as handle:
        engine.set_options(
            handle,
            {Option.URL: "http://example/ok", Option.RETURN_TRANSFER: True, Option.HEADER: True},
        )
        with_headers = engine.perform(handle)
    assert with_headers.output == "HTTP/1.1 200 OK\r\n\r\nbody"


def test_stub_streams_into_file_targets():
    engine = StubTransferEngine({"http://example/file": {"status_code": 200, "body": b"\x00binary"}})
    sink = io.BytesIO()
    with open_handle(engine) as handle:
        engine.set_options(handle, {Option.URL: "http://example/file", Option.FILE: sink})
        result = engine.perform(handle)
    assert result.ok
    assert result.content is None
    assert sink.getvalue() == b"\x00binary"

    text_sink = io.StringIO()
    engine.add("http://example/text", {"status_code": 200, "body": "hello"})
    with open_handle(engine) as handle:
        engine.set_options(handle, {Option.URL: "http://example/text", Option.FILE: text_sink})
        engine.perform(handle)
    assert text_sink.getvalue() == "hello"


def test_stub_write_failure_maps_to_write_error():
    engine = StubTransferEngine({"http://example/file": {"status_code": 200, "body": "x"}})
    sink = io.BytesIO()
    sink.close()
    with open_handle(engine) as handle:
        engine.set_options(handle, {Option.URL: "http://example/file", Option.FILE: sink})
        result = engine.perform(handle)
    assert result.error_code == TransferError.WRITE_ERROR


def test_transfer_result_from_mapping_keeps_meta():
    result = TransferResult.from_mapping(
        {"status_code": 201, "headers": {"X-Test": "1"}, "body": "hello", "url": "http://x", "extra": "value"}
    )
    assert result.ok
    assert result.status_code == 201
    assert result.headers["x-test"] == "1"
    assert result.content == b"hello"
    assert result.effective_url == "http://x"
    assert result.meta == {"extra": "value"}


def test_stub_writes_header_block_before_body_into_file():
    engine = StubTransferEngine(
        {"http://example/file": {"status_code": 200, "body": "body", "header_text": "HTTP/1.1 200 OK\r\n\r\n"}}
    )
    sink = io.StringIO()
    with open_handle(engine) as handle:
        engine.set_options(handle, {Option.URL: "http://example/file", Option.FILE: sink, Option.HEADER: True})
        engine.perform(handle)
    assert sink.getvalue() == "HTTP/1.1 200 OK\r\n\r\nbody"
