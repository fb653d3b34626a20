"""Shared fixtures: default inputs, trigger contexts and an in-memory issue client."""

from __future__ import annotations

import pytest

from pkg.cdktf_action.context import GitHubContext, RepoRef
from pkg.cdktf_action.inputs import ActionInputs

FIXTURE_HASH = "761811df765e65db8321b6c4002ca358"
FIXTURE_TAG = f"<!-- terraform cdk action for options with hash {FIXTURE_HASH} -->"


class FakeIssueClient:
    """Records every call; comments are served in pages of `per_page`."""

    def __init__(self, comments=None, search_items=None, per_page: int = 100):
        self.comments = list(comments or [])
        self.search_items = list(search_items or [])
        self.per_page = per_page
        self.calls: list[tuple] = []
        self.pages_served = 0

    def search_issues(self, query):
        self.calls.append(("search", query))
        return list(self.search_items)

    def iter_comments(self, repo, issue_number):
        self.calls.append(("list", repo, issue_number))
        for start in range(0, len(self.comments), self.per_page):
            self.pages_served += 1
            yield from self.comments[start : start + self.per_page]

    def create_comment(self, repo, issue_number, body):
        self.calls.append(("create", repo, issue_number, body))
        return {"id": 1, "body": body}

    def update_comment(self, repo, comment_id, body):
        self.calls.append(("update", repo, comment_id, body))

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def default_inputs() -> ActionInputs:
    return ActionInputs(
        cdktf_version="1.4.0",
        terraform_version="1.4.0",
        working_directory="some-directory",
        stack_name="some-stack",
        mode="plan-only",
        terraform_cloud_token="xxx",
        github_token="xxx",
        comment_on_pr=True,
        update_comment=True,
        custom_npx_args="",
    )


@pytest.fixture
def pr_context() -> GitHubContext:
    return GitHubContext(
        sha="some-sha",
        repo=RepoRef(owner="some-org", repo="some-repo"),
        pull_request_number=1,
        repository_full_name="some-org/some-repo",
    )


@pytest.fixture
def push_context() -> GitHubContext:
    return GitHubContext(
        sha="some-sha",
        repo=RepoRef(owner="some-org", repo="some-repo"),
        repository_full_name="some-org/some-repo",
    )
