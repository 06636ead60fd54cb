from __future__ import annotations

from pathlib import Path

import pytest
import requests

from clients.gitea_client import (
    API_ERROR_PREFIX,
    UPLOAD_ERROR_PREFIX,
    AssetUploadError,
    GiteaApiError,
    GiteaClient,
    build_api_url,
    get_token,
)
from configs.config import Config
from configs.release_config import ConfigurationError, resolve_config
from conftest import FakeResponse, FakeSession
from utils.release_models import ReleasePayload


def _client(session, env=None, **options):
    opts = {"host": "https://g.example.com", "owner": "o", "repository": "r"}
    opts.update(options)
    return GiteaClient(resolve_config(opts), env=env if env is not None else {"GITEA_TOKEN": "tok"}, session=session)


def test_build_api_url_ignores_trailing_slash():
    assert build_api_url("https://g.example.com/", "/repos/o/r") == "https://g.example.com/api/v1/repos/o/r"
    assert build_api_url("https://g.example.com", "/repos/o/r") == "https://g.example.com/api/v1/repos/o/r"


def test_build_api_url_defaults_to_https():
    assert build_api_url("g.example.com", "/x") == "https://g.example.com/api/v1/x"
    assert build_api_url("http://g.local:3000/", "/x") == "http://g.local:3000/api/v1/x"


def test_build_api_url_scheme_check_is_not_fooled_by_http_prefixed_hostnames():
    assert build_api_url("httpbin.example.com", "/x") == "https://httpbin.example.com/api/v1/x"
    assert build_api_url("https-mirror.local/", "x") == "https://https-mirror.local/api/v1/x"


def test_build_api_url_uses_configured_api_prefix(monkeypatch):
    monkeypatch.setattr(Config, "API_PREFIX", "/gitea/api/v1")
    assert build_api_url("g.example.com", "/x") == "https://g.example.com/gitea/api/v1/x"


def test_get_token_reads_injected_env():
    assert get_token("GITEA_TOKEN", {"GITEA_TOKEN": "abc"}) == "abc"


def test_get_token_missing_names_variable():
    with pytest.raises(ConfigurationError) as exc:
        get_token("MY_TOKEN", {})
    assert exc.value.code == "MISSING_TOKEN"
    assert "MY_TOKEN" in str(exc.value)


def test_get_token_reads_process_env_at_call_time(monkeypatch):
    monkeypatch.setenv("LATE_TOKEN", "late")
    assert get_token("LATE_TOKEN") == "late"


def test_api_request_sends_headers_and_json_body():
    session = FakeSession([FakeResponse(201, {"id": 7, "html_url": "u"})])
    client = _client(session, timeout=1500)

    data = client.api_request("/repos/o/r/releases", method="POST", body={"tag_name": "v1"})

    assert data == {"id": 7, "html_url": "u"}
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://g.example.com/api/v1/repos/o/r/releases"
    assert call["headers"]["Authorization"] == "token tok"
    assert call["headers"]["Accept"] == "application/json"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["data"] == '{"tag_name": "v1"}'
    assert call["timeout"] == 1.5


def test_api_request_http_error_carries_status_and_text():
    session = FakeSession([FakeResponse(500, text="internal boom")])
    with pytest.raises(GiteaApiError) as exc:
        _client(session).api_request("/repos/o/r")
    err = exc.value
    assert err.status == 500
    assert err.body == "internal boom"
    assert str(err).startswith(API_ERROR_PREFIX)
    assert "500" in str(err) and "internal boom" in str(err)


def test_api_request_transport_error_is_wrapped():
    session = FakeSession([requests.ConnectionError("dns failure")])
    with pytest.raises(GiteaApiError) as exc:
        _client(session).api_request("/repos/o/r")
    assert exc.value.code == "NETWORK"
    assert exc.value.status is None
    assert str(exc.value) == f"{API_ERROR_PREFIX}: dns failure"


def test_api_request_timeout():
    session = FakeSession([requests.Timeout("slow")])
    with pytest.raises(GiteaApiError) as exc:
        _client(session).api_request("/repos/o/r")
    assert exc.value.code == "TIMEOUT"


def test_missing_token_fails_before_sending():
    session = FakeSession([])
    with pytest.raises(ConfigurationError):
        _client(session, env={}).api_request("/repos/o/r")
    assert session.calls == []


def test_update_release_patches_by_tag():
    session = FakeSession([FakeResponse(200, {"id": 3, "html_url": "h"})])
    payload = ReleasePayload(tag_name="v1", name="T", body="B")
    release = _client(session).update_release("v1", payload)
    assert release.id == 3
    assert session.calls[0]["method"] == "PATCH"
    assert session.calls[0]["url"].endswith("/api/v1/repos/o/r/releases/tags/v1")


def test_upload_asset_multipart(tmp_path: Path):
    f = tmp_path / "app.js"
    f.write_bytes(b"console.log(1)")
    session = FakeSession([FakeResponse(201, {"id": 1, "name": "app.js"})])

    _client(session).upload_asset(9, str(f), "renamed.js", label="Bundle")

    call = session.calls[0]
    assert call["url"] == "https://g.example.com/api/v1/repos/o/r/releases/9/assets"
    assert call["uploaded"] == {"filename": "renamed.js", "content_type": "application/octet-stream", "data": b"console.log(1)"}
    assert call["data"] == {"name": "Bundle"}
    assert "Content-Type" not in call["headers"]
    assert call["headers"]["Authorization"] == "token tok"


def test_upload_asset_without_label_sends_no_form_field(tmp_path: Path):
    f = tmp_path / "a.txt"
    f.write_text("a")
    session = FakeSession([FakeResponse(201, {"id": 1})])
    _client(session).upload_asset(9, str(f), "a.txt")
    assert session.calls[0]["data"] is None


def test_upload_asset_failure(tmp_path: Path):
    f = tmp_path / "a.txt"
    f.write_text("a")
    session = FakeSession([FakeResponse(413, text="too large")])
    with pytest.raises(AssetUploadError) as exc:
        _client(session).upload_asset(9, str(f), "a.txt")
    assert exc.value.status == 413
    assert str(exc.value).startswith(UPLOAD_ERROR_PREFIX)
    assert "too large" in str(exc.value)


def test_injected_session_is_not_closed():
    session = FakeSession([])
    _client(session).close()
    assert session.closed is False
