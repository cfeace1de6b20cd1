# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import io
import os

import pytest

from fetchkit import transfer_context
from fetchkit.config import TransferSettings
from fetchkit.errors import InvalidArgumentError, TransferError
from fetchkit.request import Request, default_options
from fetchkit.response import Response
from fetchkit.transfer.adapters import StubTransferEngine
from fetchkit.transfer.models import FileUpload
from fetchkit.transfer.options import Option

URL = "http://www.foo.com/login.php"


@pytest.fixture
def engine():
    return StubTransferEngine(
        {
            URL: {"status_code": 200, "body": "OK", "headers": {"Content-Type": "text/html"}},
            "http://www.foo.com/file.txt": {"status_code": 200, "body": "payload"},
        }
    )


@pytest.fixture
def request_builder(engine):
    return Request(engine=engine, settings=TransferSettings())


def test_defaults_and_constructor_overrides(engine):
    settings = TransferSettings(timeout=9)
    builder = Request({"timeout": 3, Option.PROXY: "http://proxy:8080"}, engine=engine, settings=settings)
    assert builder.get_option(Option.TIMEOUT) == 3
    assert builder.get_option("proxy") == "http://proxy:8080"
    assert builder.get_option(Option.RETURN_TRANSFER) is True
    assert builder.get_option(Option.URL) is None
    assert default_options(settings)[Option.TIMEOUT] == 9


def test_unknown_option_key_is_rejected(engine):
    with pytest.raises(InvalidArgumentError):
        Request({"no_such_option": 1}, engine=engine)
    with pytest.raises(InvalidArgumentError):
        Request(engine=engine).set_option("bogus", True)


def test_setters_chain_and_record_options(request_builder):
    returned = (
        request_builder.set_credentials("user", "secret")
        .set_referer("http://ref/")
        .set_useragent("Mozilla/4.0")
        .set_headers_used(True)
        .set_body_used(False)
        .set_proxy("http://proxy:8080")
        .set_cookie_storage("/tmp/cookies.txt")
        .set_timeout(12)
        .set_interface("10.0.0.9")
    )
    assert returned is request_builder

    options = request_builder.get_options()
    assert options[Option.USER_PWD] == "user:secret"
    assert options[Option.REFERER] == "http://ref/"
    assert options[Option.USER_AGENT] == "Mozilla/4.0"
    assert options[Option.HEADER] is True
    assert options[Option.RETURN_TRANSFER] is False
    assert options[Option.COOKIE_JAR] == options[Option.COOKIE_FILE] == "/tmp/cookies.txt"
    assert options[Option.TIMEOUT] == 12
    assert options[Option.INTERFACE] == "10.0.0.9"

    options[Option.TIMEOUT] = 99
    assert request_builder.get_option(Option.TIMEOUT) == 12


def test_header_accumulation(request_builder):
    request_builder.add_header("Accept", "text/html").add_header("Accept", "application/json")
    request_builder.set_header("X-Id", "1")
    assert request_builder.get_headers() == {"Accept": "text/html; application/json", "X-Id": "1"}

    request_builder.set_header("Accept", "*/*")
    assert request_builder.get_headers()["Accept"] == "*/*"

    request_builder.set_headers({"X-Only": ["a", "b"]})
    assert request_builder.get_headers() == {"X-Only": "a; b"}


def test_set_header_copies_multi_values(request_builder, engine):
    values = ["a"]
    request_builder.set_header("X-List", values).add_header("X-List", "b")
    assert values == ["a"]
    assert request_builder.get_headers()["X-List"] == "a; b"

    request_builder.set_header("X-Tuple", ("a", "b"))
    assert request_builder.get_headers()["X-Tuple"] == "a; b"
    request_builder.get(URL)
    assert "X-Tuple: a; b" in engine.last_options[Option.HTTP_HEADER]


def test_prepare_post_flattens_nested_payloads(request_builder):
    assert request_builder.prepare_post("a=1&b=2") == "a=1&b=2"
    assert request_builder.prepare_post({"a": "1"}) == {"a": "1"}
    assert request_builder.prepare_post({"a": {"b": "1"}}) == "a%5Bb%5D=1"


def test_prepare_post_warns_when_uploads_are_flattened(request_builder, caplog):
    payload = {"meta": {"k": "v"}, "doc": FileUpload(field="doc", path="/tmp/f.txt")}
    assert isinstance(request_builder.prepare_post(payload), str)
    assert "file uploads in it are not sent" in caplog.text


def test_prepare_files(request_builder, tmp_path):
    upload = tmp_path / "f.txt"
    upload.write_text("x")
    prepared = request_builder.prepare_files({"doc": str(upload)})
    assert prepared == {"doc": FileUpload(field="doc", path=os.path.realpath(upload))}

    with pytest.raises(InvalidArgumentError):
        request_builder.prepare_files({"doc": str(tmp_path / "missing.txt")})


def test_post_flat_payload(request_builder, engine):
    response = request_builder.post(URL, {"login": "pera", "pass": "joe"})
    assert isinstance(response, Response)
    assert response.body == "OK"
    assert str(response) == "OK"
    assert response.status_code == 200
    assert not response.has_error()

    options = engine.last_options
    assert options[Option.POST] is True
    assert Option.HTTP_GET not in options
    assert options[Option.POST_FIELDS] == {"login": "pera", "pass": "joe"}
    assert options[Option.URL] == URL


def test_post_nested_payload_is_serialized(request_builder, engine):
    request_builder.post(URL, {"user": {"name": "pera"}, "x": "1"})
    assert engine.last_options[Option.POST_FIELDS] == "user%5Bname%5D=pera&x=1"


def test_post_raw_string_with_files_is_rejected(request_builder, engine, tmp_path):
    upload = tmp_path / "f.txt"
    upload.write_text("x")
    with pytest.raises(InvalidArgumentError, match="can not support array of files and post data string"):
        request_builder.post(URL, "a=1", {"doc": str(upload)})
    assert engine.performed == []


def test_post_merges_files_without_overriding_fields(request_builder, engine, tmp_path):
    upload = tmp_path / "f.txt"
    upload.write_text("x")
    request_builder.post(URL, {"title": "t", "keep": "field"}, {"doc": str(upload), "keep": str(upload)})
    assert engine.last_options[Option.POST_FIELDS] == {
        "title": "t",
        "keep": "field",
        "doc": FileUpload(field="doc", path=os.path.realpath(upload)),
    }


def test_get_sends_header_lines_without_mutating_builder(request_builder, engine):
    request_builder.set_header("Accept", "text/html").add_header("X-A", "1").add_header("X-A", "2")
    response = request_builder.get(URL)

    assert response.ok
    options = engine.last_options
    assert options[Option.HTTP_GET] is True
    assert options[Option.HTTP_HEADER] == ["Accept: text/html", "X-A: 1; 2"]

    assert request_builder.get_option(Option.URL) is None
    assert request_builder.get_option(Option.HTTP_GET) is None
    assert request_builder.get_option(Option.HTTP_HEADER) is None


def test_get_after_post_uses_fresh_handles(request_builder, engine):
    request_builder.post(URL, {"a": "1"})
    request_builder.get(URL)
    assert Option.POST not in engine.last_options
    assert engine.created == engine.released == 2


def test_download_to_path_closes_file(request_builder, engine, tmp_path):
    target = tmp_path / "out.txt"
    response = request_builder.download_to("http://www.foo.com/file.txt", str(target))
    assert response.ok
    assert response.content is None
    assert target.read_text() == "payload"

    options = engine.last_options
    assert Option.RETURN_TRANSFER not in options
    assert options[Option.FILE].closed


def test_download_to_open_file_leaves_it_open(request_builder):
    sink = io.BytesIO()
    response = request_builder.download_to("http://www.foo.com/file.txt", sink)
    assert response.ok
    assert not sink.closed
    assert sink.getvalue() == b"payload"


def test_download_to_unopenable_target(request_builder, engine, tmp_path):
    with pytest.raises(InvalidArgumentError):
        request_builder.download_to(URL, str(tmp_path / "missing-dir" / "out.txt"))
    assert engine.performed == []


def test_upload_to_is_deprecated_alias(request_builder, engine, tmp_path):
    upload = tmp_path / "f.txt"
    upload.write_text("x")
    with pytest.warns(DeprecationWarning):
        response = request_builder.upload_to(URL, {"title": "t"}, {"doc": str(upload)})
    assert response.ok
    assert engine.last_options[Option.POST] is True


def test_ambient_context_supplies_engine(engine):
    with transfer_context(engine=engine, settings=TransferSettings(timeout=7)):
        response = Request().get(URL)
    assert response.body == "OK"
    assert engine.last_options[Option.TIMEOUT] == 7


def test_response_reports_transport_failure(engine):
    response = Response({Option.URL: "http://nowhere/", Option.RETURN_TRANSFER: True}, engine=engine)
    assert response.has_error()
    assert not response.ok
    assert response.error_code == TransferError.COULDNT_RESOLVE_HOST
    assert response.error_message == "No stubbed response configured"
    assert response.effective_url == "http://nowhere/"
    assert response.body is None
    assert str(response) == ""
    assert engine.created == engine.released == 1


def test_response_exposes_headers_and_merges_header_lines(engine):
    response = Response(
        {"url": URL, "return_transfer": True, "http_header": "X-Raw: 1"},
        {"Accept": "text/html"},
        engine=engine,
    )
    assert response.header("Content-Type") == "text/html"
    assert response.header("X-Missing", "none") == "none"
    assert response.headers == {"content-type": "text/html"}
    assert response.options[Option.HTTP_HEADER] == ["X-Raw: 1", "Accept: text/html"]
    assert engine.last_options[Option.HTTP_HEADER] == ["X-Raw: 1", "Accept: text/html"]
    assert "200" in repr(response)
