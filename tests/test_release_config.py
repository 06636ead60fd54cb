from __future__ import annotations

import pytest

from configs.release_config import ConfigurationError, is_enabled, resolve_config

REPO = {"host": "gitea.example.com", "owner": "repo-owner", "project": "repo-project", "repository": "repo-name"}


def test_is_enabled_only_disabled_by_explicit_false():
    assert is_enabled({}) is True
    assert is_enabled({"release": None}) is True
    assert is_enabled(None) is True
    assert is_enabled({"release": "false"}) is True
    assert is_enabled({"release": False}) is False


def test_defaults_applied():
    cfg = resolve_config({"host": "https://g.example.com", "owner": "o", "repository": "r"})
    assert cfg.release is True
    assert cfg.draft is False
    assert cfg.prerelease is False
    assert cfg.token_ref == "GITEA_TOKEN"
    assert cfg.timeout == 30000
    assert cfg.timeout_s == 30.0
    assert cfg.release_title == "v${version}"
    assert cfg.release_notes == "${changelog}"
    assert list(cfg.assets) == []


def test_repo_metadata_fallback():
    cfg = resolve_config({}, REPO)
    assert cfg.host == "gitea.example.com"
    assert cfg.owner == "repo-owner"
    assert cfg.repository == "repo-project"


def test_explicit_options_win_over_repo_metadata():
    cfg = resolve_config({"host": "h", "owner": "me", "repository": "mine"}, REPO)
    assert (cfg.host, cfg.owner, cfg.repository) == ("h", "me", "mine")


def test_camel_case_and_snake_case_keys():
    cfg = resolve_config(
        {"releaseTitle": "T ${version}", "tokenRef": "MY_TOKEN", "release_notes": "N", "timeout": 5000},
        REPO,
    )
    assert cfg.release_title == "T ${version}"
    assert cfg.release_notes == "N"
    assert cfg.token_ref == "MY_TOKEN"
    assert cfg.timeout_s == 5.0


def test_callable_title_is_kept():
    def title(ctx):
        return "x"

    cfg = resolve_config({"releaseTitle": title}, REPO)
    assert cfg.release_title is title


def test_release_non_false_values_enable():
    assert resolve_config({"release": 0}, REPO).release is True
    assert resolve_config({"release": False}, REPO).release is False


def test_missing_host_wins_over_other_missing_fields():
    with pytest.raises(ConfigurationError) as exc:
        resolve_config({}, {})
    assert exc.value.code == "MISSING_HOST"


def test_missing_owner_then_repository():
    with pytest.raises(ConfigurationError) as exc:
        resolve_config({"host": "h"}, {})
    assert exc.value.code == "MISSING_OWNER"

    with pytest.raises(ConfigurationError) as exc:
        resolve_config({"host": "h", "owner": "o"}, {})
    assert exc.value.code == "MISSING_REPOSITORY"


def test_assets_are_kept_raw_for_the_pipeline():
    raw = ["dist/*.js", {"path": "dist/**", "type": "zip", "name": "bundle.zip"}, {"path": "x", "type": "tar"}]
    cfg = resolve_config({"assets": raw}, REPO)
    assert list(cfg.assets) == raw


def test_invalid_option_shape_is_configuration_error():
    with pytest.raises(ConfigurationError) as exc:
        resolve_config({"timeout": "soon"}, REPO)
    assert exc.value.code == "INVALID_OPTIONS"


def test_config_is_frozen():
    cfg = resolve_config({}, REPO)
    with pytest.raises(Exception):
        cfg.owner = "someone-else"
