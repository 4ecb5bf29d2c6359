"""Unit tests for the GitHub REST client, against httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from carto_ci.config import CIConfig
from carto_ci.github.client import GitHubAPIError, GitHubClient, get_client


def _client(handler) -> GitHubClient:
    return GitHubClient("tok", transport=httpx.MockTransport(handler))


class TestRequests:
    def test_create_status(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"state": "pending"})

        _client(handler).create_status(
            "owner/carto", "abc123", state="pending", context="carto-linux-amd64", description="d" * 200
        )

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/repos/owner/carto/statuses/abc123"
        assert request.headers["Authorization"] == "Bearer tok"
        body = json.loads(request.content)
        assert body["context"] == "carto-linux-amd64"
        assert len(body["description"]) == 140

    def test_create_release(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert body == {"tag_name": "v1.0.0", "name": "v1.0.0", "draft": True}
            return httpx.Response(201, json={"id": 7, "upload_url": "u"})

        data = _client(handler).create_release("owner/carto", tag="v1.0.0", name="v1.0.0", draft=True)
        assert data["id"] == 7

    def test_upload_goes_to_upload_host(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"name": "carto-linux-amd64"})

        _client(handler).upload_release_asset(
            "owner/carto", 7, name="carto-linux-amd64", content_type="application/octet-stream", data=b"bin"
        )

        request = seen[0]
        assert request.url.host == "uploads.github.com"
        assert request.url.path == "/repos/owner/carto/releases/7/assets"
        assert request.url.params["name"] == "carto-linux-amd64"
        assert request.headers["Content-Type"] == "application/octet-stream"
        assert request.content == b"bin"

    def test_upload_uses_release_upload_url(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={})

        _client(handler).upload_release_asset(
            "owner/carto",
            7,
            name="carto-windows-amd64.exe",
            content_type="application/octet-stream",
            data=b"MZ",
            upload_url="https://ghe.example/api/uploads/repos/owner/carto/releases/7/assets{?name,label}",
        )

        request = seen[0]
        assert request.url.host == "ghe.example"
        assert request.url.path == "/api/uploads/repos/owner/carto/releases/7/assets"
        assert request.url.params["name"] == "carto-windows-amd64.exe"


class TestErrors:
    def test_http_error_status(self):
        client = _client(lambda request: httpx.Response(422, json={"message": "already_exists"}))
        with pytest.raises(GitHubAPIError) as excinfo:
            client.create_release("owner/carto", tag="v1", name="v1")
        assert excinfo.value.status_code == 422

    def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(GitHubAPIError):
            _client(handler).create_status("owner/carto", "abc", state="pending", context="c")


class TestGetClient:
    def test_no_token_no_client(self):
        assert get_client(CIConfig(github_token="")) is None

    def test_token_gives_client(self):
        client = get_client(CIConfig(github_token="tok"))
        assert isinstance(client, GitHubClient)
        client.close()
