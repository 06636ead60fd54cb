#!/usr/bin/env python3
"""Resolve raw plugin options plus host repository metadata into a ReleaseConfig."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from configs.config import Config
from utils.release_models import ReleaseConfig


class ConfigurationError(Exception):
    def __init__(self, message: str, code: str = "INVALID_OPTIONS"):
        super().__init__(message)
        self.code = code


# Options surface key -> ReleaseConfig field
_OPTION_KEYS = {
    "host": "host",
    "owner": "owner",
    "repository": "repository",
    "release": "release",
    "releaseTitle": "release_title",
    "release_title": "release_title",
    "releaseNotes": "release_notes",
    "release_notes": "release_notes",
    "prerelease": "prerelease",
    "draft": "draft",
    "tokenRef": "token_ref",
    "token_ref": "token_ref",
    "timeout": "timeout",
    "assets": "assets",
}


def is_enabled(options: Optional[Mapping[str, Any]] = None) -> bool:
    """Only an explicit `release: false` disables the plugin."""
    if not options:
        return True
    return options.get("release") is not False


def _explicit(options: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in options.items():
        field = _OPTION_KEYS.get(key)
        if field is None or value is None:
            continue
        out.setdefault(field, value)
    return out


def resolve_config(
    options: Optional[Mapping[str, Any]],
    repo: Optional[Mapping[str, Any]] = None,
) -> ReleaseConfig:
    """Build the effective configuration.

    Defaulting order: explicit option -> repository metadata (host, owner,
    repository) -> hardcoded default. Validation stops at the first missing
    field in the order host, owner, repository.

    Raises:
        ConfigurationError: if a required field is missing or an option is malformed
    """
    explicit = _explicit(options or {})
    repo = repo or {}

    values: Dict[str, Any] = dict(Config.get_gitea_defaults())
    values.update(explicit)
    values["release"] = explicit.get("release") is not False
    values["host"] = explicit.get("host") or repo.get("host")
    values["owner"] = explicit.get("owner") or repo.get("owner")
    values["repository"] = explicit.get("repository") or repo.get("project") or repo.get("repository")

    if not values["host"]:
        raise ConfigurationError("Gitea host is required", code="MISSING_HOST")
    if not values["owner"]:
        raise ConfigurationError("Gitea owner is required", code="MISSING_OWNER")
    if not values["repository"]:
        raise ConfigurationError("Gitea repository is required", code="MISSING_REPOSITORY")

    try:
        return ReleaseConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid Gitea options: {e}", code="INVALID_OPTIONS") from e
