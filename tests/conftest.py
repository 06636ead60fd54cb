from __future__ import annotations

import json
from typing import Any

import pytest

from utils.host import LocalHost


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self.text = text
        self.content = text.encode("utf-8")

    def json(self) -> Any:
        return json.loads(self.text)


class FakeSession:
    """Records requests and replays queued responses (or raises queued exceptions)."""

    def __init__(self, responses: list | None = None):
        self.responses = list(responses or [])
        self.calls: list[dict] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        call = {"method": method, "url": url, **kwargs}
        files = kwargs.get("files")
        if files:
            name, fh, content_type = files["attachment"]
            call["uploaded"] = {"filename": name, "content_type": content_type, "data": fh.read()}
        self.calls.append(call)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


class RecordingLog:
    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def error(self, message: str) -> None:
        self.records.append(("error", message))

    def info(self, message: str) -> None:
        self.records.append(("info", message))

    def verbose(self, message: str) -> None:
        self.records.append(("verbose", message))

    def warn(self, message: str) -> None:
        self.records.append(("warn", message))

    def messages(self, level: str) -> list[str]:
        return [m for lvl, m in self.records if lvl == level]


@pytest.fixture
def log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture
def host(log: RecordingLog) -> LocalHost:
    return LocalHost(
        context={
            "version": "1.0.0",
            "latestVersion": "0.9.0",
            "changelog": "* fix things",
            "name": "pkg",
            "branchName": "main",
            "tagName": "v1.0.0",
            "repo": {
                "host": "gitea.example.com",
                "owner": "o",
                "repository": "r",
                "project": "r",
            },
        },
        log=log,
    )


@pytest.fixture
def env() -> dict:
    return {"GITEA_TOKEN": "test-token-123"}
