"""Trigger context of the workflow run."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping


@dataclass(frozen=True)
class RepoRef:
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class GitHubContext:
    """What the comment logic needs to know about the triggering event."""

    sha: str
    repo: RepoRef
    pull_request_number: int | None = None
    repository_full_name: str | None = None
    event_name: str = ""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GitHubContext":
        env = os.environ if environ is None else environ
        payload = read_event_payload(env.get("GITHUB_EVENT_PATH"))
        return cls.from_payload(
            payload,
            sha=str(env.get("GITHUB_SHA") or ""),
            repository=str(env.get("GITHUB_REPOSITORY") or ""),
            event_name=str(env.get("GITHUB_EVENT_NAME") or ""),
        )

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        *,
        sha: str = "",
        repository: str = "",
        event_name: str = "",
    ) -> "GitHubContext":
        repo_payload = payload.get("repository")
        repo_payload = repo_payload if isinstance(repo_payload, dict) else {}
        full_name = repo_payload.get("full_name")
        full_name = full_name.strip() if isinstance(full_name, str) and full_name.strip() else None

        return cls(
            sha=sha,
            repo=_repo_ref(repository, repo_payload),
            pull_request_number=_pull_request_number(payload),
            repository_full_name=full_name,
            event_name=event_name,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sha": self.sha,
            "repo": {"owner": self.repo.owner, "repo": self.repo.repo},
            "pull_request_number": self.pull_request_number,
            "repository_full_name": self.repository_full_name,
            "event_name": self.event_name,
        }


def read_event_payload(path: str | None) -> dict[str, Any]:
    """Read the webhook payload; an absent file means an empty payload."""
    if not path:
        return {}
    event_file = Path(path)
    if not event_file.is_file():
        return {}
    data = json.loads(event_file.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


def _repo_ref(repository: str, repo_payload: Mapping[str, Any]) -> RepoRef:
    if "/" in repository:
        owner, _, name = repository.partition("/")
        return RepoRef(owner=owner, repo=name)

    owner = repo_payload.get("owner")
    login = owner.get("login") if isinstance(owner, dict) else None
    name = repo_payload.get("name")
    return RepoRef(owner=str(login or ""), repo=str(name or ""))


def _pull_request_number(payload: Mapping[str, Any]) -> int | None:
    pull_request = payload.get("pull_request")
    if not isinstance(pull_request, dict):
        return None
    number = pull_request.get("number")
    if isinstance(number, bool) or not isinstance(number, int) or number <= 0:
        return None
    return number
