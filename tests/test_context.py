"""Tests for trigger context parsing."""

from __future__ import annotations

import json
from pathlib import Path

from pkg.cdktf_action.context import GitHubContext, RepoRef, read_event_payload


def _write_event(tmp_path: Path, payload: dict) -> Path:
    path = tmp_path / "event.json"
    path.write_text(json.dumps(payload))
    return path


def test_pull_request_event(tmp_path: Path):
    event = _write_event(
        tmp_path,
        {
            "pull_request": {"number": 17},
            "repository": {"full_name": "acme/infra", "name": "infra", "owner": {"login": "acme"}},
        },
    )
    ctx = GitHubContext.from_env(
        {
            "GITHUB_EVENT_PATH": str(event),
            "GITHUB_SHA": "abc123",
            "GITHUB_REPOSITORY": "acme/infra",
            "GITHUB_EVENT_NAME": "pull_request",
        }
    )

    assert ctx.sha == "abc123"
    assert ctx.repo == RepoRef(owner="acme", repo="infra")
    assert ctx.pull_request_number == 17
    assert ctx.repository_full_name == "acme/infra"
    assert ctx.event_name == "pull_request"


def test_push_event_has_no_pull_request(tmp_path: Path):
    event = _write_event(tmp_path, {"repository": {"full_name": "acme/infra"}})
    ctx = GitHubContext.from_env(
        {"GITHUB_EVENT_PATH": str(event), "GITHUB_SHA": "abc", "GITHUB_REPOSITORY": "acme/infra"}
    )

    assert ctx.pull_request_number is None
    assert ctx.repository_full_name == "acme/infra"


def test_repo_falls_back_to_payload_owner():
    ctx = GitHubContext.from_payload(
        {"repository": {"full_name": "acme/infra", "name": "infra", "owner": {"login": "acme"}}}
    )
    assert ctx.repo.full_name == "acme/infra"


def test_missing_event_file_gives_empty_context(tmp_path: Path):
    ctx = GitHubContext.from_env({"GITHUB_EVENT_PATH": str(tmp_path / "nope.json")})

    assert ctx.pull_request_number is None
    assert ctx.repository_full_name is None
    assert ctx.repo == RepoRef(owner="", repo="")


def test_blank_full_name_is_unknown():
    ctx = GitHubContext.from_payload({"repository": {"full_name": "  "}})
    assert ctx.repository_full_name is None


def test_invalid_pull_request_numbers_are_ignored():
    for number in (None, 0, "12", True):
        ctx = GitHubContext.from_payload({"pull_request": {"number": number}})
        assert ctx.pull_request_number is None


def test_read_event_payload_non_object(tmp_path: Path):
    path = tmp_path / "event.json"
    path.write_text("[]")
    assert read_event_payload(str(path)) == {}
    assert read_event_payload(None) == {}


def test_to_dict_round_trips_fields():
    ctx = GitHubContext(sha="s", repo=RepoRef("o", "r"), pull_request_number=3)
    assert ctx.to_dict()["repo"] == {"owner": "o", "repo": "r"}
    assert ctx.to_dict()["pull_request_number"] == 3
