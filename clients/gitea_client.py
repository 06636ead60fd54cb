#!/usr/bin/env python3
"""Gitea REST API client for the release endpoints.

Covers only what the release workflow needs: release lookup by tag, create,
update, and multipart asset upload. Every failure is normalized into
`GiteaApiError` carrying the HTTP status when there was one. There are no
retries; a failed call fails the step that made it.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Mapping, Optional

import requests

from configs.config import Config
from configs.release_config import ConfigurationError
from utils.release_models import ReleaseConfig, ReleasePayload, ReleaseResponse

logger = logging.getLogger(__name__)

API_ERROR_PREFIX = "Gitea API request failed"
UPLOAD_ERROR_PREFIX = "Asset upload failed"


class GiteaApiError(Exception):
    """Raised when a Gitea API call fails (HTTP status or transport)."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN",
        status: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.status = status
        self.body = body

    def wrap(self, prefix: str) -> "GiteaApiError":
        return type(self)(f"{prefix}: {self}", code=self.code, status=self.status, body=self.body)


class AssetUploadError(GiteaApiError):
    """Raised when an asset upload is rejected or cannot be sent."""


def normalize_host(host: str) -> str:
    host = host.rstrip("/")
    if "://" not in host:
        host = f"https://{host}"
    return host


def build_api_url(host: str, endpoint: str) -> str:
    """`{host}/api/v1{endpoint}` with the host normalized."""
    if not endpoint.startswith("/"):
        endpoint = f"/{endpoint}"
    return f"{normalize_host(host)}{Config.get_http_config()['api_prefix']}{endpoint}"


def get_token(token_ref: str, env: Optional[Mapping[str, str]] = None) -> str:
    """Read the API token from `env[token_ref]` at call time.

    Raises:
        ConfigurationError: if the variable name is empty or the variable is unset
    """
    if not token_ref:
        raise ConfigurationError("Token environment variable name is not configured", code="MISSING_TOKEN_REF")
    source = os.environ if env is None else env
    token = source.get(token_ref)
    if not token:
        raise ConfigurationError(
            f"Gitea API token not found. Please set the environment variable {token_ref}",
            code="MISSING_TOKEN",
        )
    return token


class GiteaClient:
    """Thin client bound to one resolved ReleaseConfig."""

    def __init__(
        self,
        config: ReleaseConfig,
        *,
        env: Optional[Mapping[str, str]] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.env = env
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.user_agent = Config.get_http_config()["user_agent"]

    # -------- URL / auth --------
    def build_api_url(self, endpoint: str) -> str:
        return build_api_url(self.config.host, endpoint)

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Authorization": f"token {get_token(self.config.token_ref, self.env)}",
            "User-Agent": self.user_agent,
        }

    # -------- Core request --------
    def api_request(self, endpoint: str, *, method: str = "GET", body: Any = None) -> Any:
        """Send a JSON request and return the decoded JSON response.

        Raises:
            ConfigurationError: if the token cannot be resolved
            GiteaApiError: prefixed with API_ERROR_PREFIX on any HTTP or transport failure
        """
        url = self.build_api_url(endpoint)
        headers = self._auth_headers()
        headers["Content-Type"] = "application/json"
        data = json.dumps(body) if body is not None else None

        logger.debug(f"Sending {method} request to: {url} body: {'yes' if data else 'none'}")
        try:
            response = self.session.request(
                method, url, headers=headers, data=data, timeout=self.config.timeout_s
            )
            return self._decode(response)
        except GiteaApiError as e:
            raise e.wrap(API_ERROR_PREFIX) from e
        except requests.Timeout as e:
            raise GiteaApiError(f"{API_ERROR_PREFIX}: request timed out: {e}", code="TIMEOUT") from e
        except requests.RequestException as e:
            raise GiteaApiError(f"{API_ERROR_PREFIX}: {e}", code="NETWORK") from e

    @staticmethod
    def _decode(response: Any, error_cls: type = GiteaApiError) -> Any:
        sc = response.status_code
        if not 200 <= sc < 300:
            text = response.text
            raise error_cls(f"HTTP {sc}: {text}", code="HTTP", status=sc, body=text)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise error_cls(f"Invalid JSON in response (HTTP {sc}): {e}", code="DECODE", status=sc) from e

    # -------- Release endpoints --------
    def get_release_by_tag(self, tag: str) -> ReleaseResponse:
        data = self.api_request(f"{self.config.repo_path}/releases/tags/{tag}")
        return ReleaseResponse.model_validate(data)

    def create_release(self, payload: ReleasePayload) -> ReleaseResponse:
        data = self.api_request(
            f"{self.config.repo_path}/releases", method="POST", body=payload.model_dump()
        )
        return ReleaseResponse.model_validate(data)

    def update_release(self, tag: str, payload: ReleasePayload) -> ReleaseResponse:
        data = self.api_request(
            f"{self.config.repo_path}/releases/tags/{tag}",
            method="PATCH",
            body=payload.model_dump(exclude_unset=True),
        )
        return ReleaseResponse.model_validate(data)

    def upload_asset(self, release_id: int, file_path: str, file_name: str, label: Optional[str] = None) -> Any:
        """POST one file as multipart `attachment` to the release's assets.

        Raises:
            AssetUploadError: prefixed with UPLOAD_ERROR_PREFIX on failure
        """
        url = self.build_api_url(f"{self.config.repo_path}/releases/{release_id}/assets")
        headers = self._auth_headers()
        form: Dict[str, str] = {}
        if label:
            form["name"] = label

        logger.debug(f"Uploading asset {file_name} to release {release_id}")
        try:
            with open(file_path, "rb") as fh:
                response = self.session.request(
                    "POST",
                    url,
                    headers=headers,
                    files={"attachment": (file_name, fh, "application/octet-stream")},
                    data=form or None,
                    timeout=self.config.timeout_s,
                )
            return self._decode(response, AssetUploadError)
        except AssetUploadError as e:
            raise e.wrap(UPLOAD_ERROR_PREFIX) from e
        except requests.RequestException as e:
            raise AssetUploadError(f"{UPLOAD_ERROR_PREFIX}: {e}", code="NETWORK") from e
        except OSError as e:
            raise AssetUploadError(f"{UPLOAD_ERROR_PREFIX}: {e}", code="IO") from e

    def close(self) -> None:
        if self._owns_session and self.session:
            self.session.close()
