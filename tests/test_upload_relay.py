"""Tests for the upload relay. The external image host is simulated with
httpx.MockTransport; every outbound request is recorded."""

import asyncio
import io
import json

import httpx
import pytest
from starlette.datastructures import Headers, UploadFile

from catalog_api.api.deps import get_upload_relay
from catalog_api.core.exceptions import (
    ImageUrlMissingError,
    NoFileProvidedError,
    ServerFault,
    UpstreamUploadError,
)
from catalog_api.server import app
from catalog_api.services.upload_service import (
    UploadRelay,
    build_authorization_header,
    resolve_image_url,
    url_origin,
)

UPLOAD_URL = "https://img.example.com/up"


class FakeImageHost:
    """Answers every upload with a fixed response and keeps the requests it saw."""

    def __init__(self, status_code=200, json_body=None, text=None, error=None, moved_to=None):
        self.status_code = status_code
        self.json_body = {"success": True, "path": "/assets/x.png"} if json_body is None else json_body
        self.text = text
        self.error = error
        self.moved_to = moved_to
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.moved_to is not None and str(request.url) != self.moved_to:
            return httpx.Response(307, headers={"location": self.moved_to})
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body)

    def relay(self, upload_url=UPLOAD_URL, token=None):
        return UploadRelay(upload_url=upload_url, token=token, transport=httpx.MockTransport(self))


def _upload_file(data=b"\x89PNG fake image", filename="poster.png", content_type="image/png"):
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        size=len(data),
        headers=Headers({"content-type": content_type}),
    )


class TestResolveImageUrl:
    def test_path_absolute_is_prefixed_with_origin(self):
        assert resolve_image_url("/assets/x.png", UPLOAD_URL) == "https://img.example.com/assets/x.png"

    def test_absolute_url_is_returned_unchanged(self):
        assert resolve_image_url("https://cdn.other.com/x.png", UPLOAD_URL) == "https://cdn.other.com/x.png"

    def test_scheme_check_is_case_insensitive(self):
        assert resolve_image_url("HTTP://cdn.other.com/x.png", UPLOAD_URL) == "HTTP://cdn.other.com/x.png"

    def test_relative_path_gets_a_separator(self):
        assert resolve_image_url("assets/x.png", UPLOAD_URL) == "https://img.example.com/assets/x.png"

    def test_origin_keeps_port_and_drops_path_and_query(self):
        url = "http://localhost:9000/api/upload?bucket=posters"
        assert url_origin(url) == "http://localhost:9000"
        assert resolve_image_url("/x.png", url) == "http://localhost:9000/x.png"

    def test_unusable_upload_url_falls_back_to_raw_path(self):
        assert resolve_image_url("/assets/x.png", "not a url") == "/assets/x.png"
        assert resolve_image_url("assets/x.png", None) == "assets/x.png"
        assert resolve_image_url("/x.png", "http://host:notaport/up") == "/x.png"


class TestAuthorizationHeader:
    def test_raw_token_is_wrapped(self):
        assert build_authorization_header("abc123") == "Bearer abc123"

    def test_prefixed_token_passes_through(self):
        assert build_authorization_header("Bearer abc123") == "Bearer abc123"

    def test_prefix_match_is_case_insensitive(self):
        assert build_authorization_header("bearer abc123") == "bearer abc123"

    def test_no_token_no_header(self):
        assert build_authorization_header(None) is None
        assert build_authorization_header("") is None


class TestUploadRelay:
    def test_relative_path_becomes_absolute_url(self):
        host = FakeImageHost(json_body={"success": True, "path": "/assets/x.png"})
        url = asyncio.run(host.relay().upload(_upload_file()))
        assert url == "https://img.example.com/assets/x.png"

    def test_absolute_path_returned_unchanged(self):
        host = FakeImageHost(json_body={"path": "https://cdn.other.com/x.png"})
        assert asyncio.run(host.relay().upload(_upload_file())) == "https://cdn.other.com/x.png"

    def test_forwards_file_as_multipart_with_content_type(self):
        host = FakeImageHost()
        asyncio.run(host.relay().upload(_upload_file(data=b"IMAGEDATA", filename="a.jpg", content_type="image/jpeg")))

        assert len(host.requests) == 1
        request = host.requests[0]
        assert request.method == "POST"
        assert str(request.url) == UPLOAD_URL
        assert request.headers["content-type"].startswith("multipart/form-data")
        body = request.content
        assert b'name="file"; filename="a.jpg"' in body
        assert b"Content-Type: image/jpeg" in body
        assert b"IMAGEDATA" in body

    def test_sends_bearer_token(self):
        host = FakeImageHost()
        asyncio.run(host.relay(token="secret").upload(_upload_file()))
        assert host.requests[0].headers["authorization"] == "Bearer secret"

    def test_preformatted_token_sent_verbatim(self):
        host = FakeImageHost()
        asyncio.run(host.relay(token="Bearer already").upload(_upload_file()))
        assert host.requests[0].headers["authorization"] == "Bearer already"

    def test_no_token_no_authorization_header(self):
        host = FakeImageHost()
        asyncio.run(host.relay(token=None).upload(_upload_file()))
        assert "authorization" not in host.requests[0].headers

    def test_empty_file_rejected_without_outbound_call(self):
        host = FakeImageHost()
        with pytest.raises(NoFileProvidedError):
            asyncio.run(host.relay().upload(_upload_file(data=b"")))
        assert host.requests == []

    def test_missing_file_rejected_without_outbound_call(self):
        host = FakeImageHost()
        with pytest.raises(NoFileProvidedError):
            asyncio.run(host.relay().upload(None))
        assert host.requests == []

    def test_upstream_status_is_propagated(self):
        host = FakeImageHost(status_code=413, json_body={"error": "too large"})
        with pytest.raises(UpstreamUploadError) as exc_info:
            asyncio.run(host.relay().upload(_upload_file()))
        assert exc_info.value.status_code == 413
        assert exc_info.value.message == "Upload failed"
        assert len(host.requests) == 1

    def test_redirect_is_followed_with_the_file(self):
        host = FakeImageHost(moved_to="https://img.example.com/v2/up")
        url = asyncio.run(host.relay(token="secret").upload(_upload_file(data=b"IMAGEDATA")))

        assert url == "https://img.example.com/assets/x.png"
        assert [str(r.url) for r in host.requests] == [UPLOAD_URL, "https://img.example.com/v2/up"]
        resent = host.requests[1]
        assert resent.method == "POST"
        assert b"IMAGEDATA" in resent.content
        assert resent.headers["authorization"] == "Bearer secret"

    def test_missing_path_is_image_url_error(self):
        host = FakeImageHost(json_body={"success": True})
        with pytest.raises(ImageUrlMissingError):
            asyncio.run(host.relay().upload(_upload_file()))

    def test_empty_path_is_image_url_error(self):
        host = FakeImageHost(json_body={"path": ""})
        with pytest.raises(ImageUrlMissingError):
            asyncio.run(host.relay().upload(_upload_file()))

    def test_non_json_answer_is_server_fault(self):
        host = FakeImageHost(text="<html>ok</html>")
        with pytest.raises(ServerFault):
            asyncio.run(host.relay().upload(_upload_file()))

    def test_network_error_is_server_fault(self):
        host = FakeImageHost(error=httpx.ConnectError("connection refused"))
        with pytest.raises(ServerFault):
            asyncio.run(host.relay().upload(_upload_file()))

    def test_unconfigured_upload_url_is_server_fault(self):
        host = FakeImageHost()
        with pytest.raises(ServerFault):
            asyncio.run(host.relay(upload_url=None).upload(_upload_file()))
        assert host.requests == []


class TestUploadEndpoint:
    @pytest.fixture()
    def host(self, client):
        host = FakeImageHost()
        app.dependency_overrides[get_upload_relay] = lambda: host.relay(token="tok")
        return host

    def test_upload_returns_absolute_url(self, client, host):
        resp = client.post("/api/upload", files={"file": ("x.png", b"data", "image/png")})
        assert resp.status_code == 200
        assert resp.json() == {"url": "https://img.example.com/assets/x.png"}
        assert host.requests[0].headers["authorization"] == "Bearer tok"

    def test_first_file_part_used_when_field_name_differs(self, client, host):
        resp = client.post("/api/upload", files={"image": ("x.png", b"data", "image/png")})
        assert resp.status_code == 200
        assert len(host.requests) == 1

    def test_no_file_is_bad_request(self, client, host):
        resp = client.post("/api/upload", data={"title": "no file here"})
        assert resp.status_code == 400
        assert resp.json() == {"message": "No file provided"}
        assert host.requests == []

    def test_empty_file_is_bad_request(self, client, host):
        resp = client.post("/api/upload", files={"file": ("x.png", b"", "image/png")})
        assert resp.status_code == 400
        assert host.requests == []

    def test_upstream_failure_status_forwarded(self, client, host):
        host.status_code = 503
        resp = client.post("/api/upload", files={"file": ("x.png", b"data", "image/png")})
        assert resp.status_code == 503
        assert resp.json() == {"message": "Upload failed"}

    def test_missing_path_is_server_error(self, client, host):
        host.json_body = {"success": False}
        resp = client.post("/api/upload", files={"file": ("x.png", b"data", "image/png")})
        assert resp.status_code == 500
        assert resp.json() == {"message": "Failed to get image URL from upload service"}

    def test_network_error_does_not_leak_details(self, client, host):
        host.error = httpx.ConnectError("10.0.0.7 refused")
        resp = client.post("/api/upload", files={"file": ("x.png", b"data", "image/png")})
        assert resp.status_code == 500
        assert json.loads(resp.text) == {"message": "Internal server error"}
