"""Idempotent status comment on the pull request of a run.

Each comment starts with an HTML marker that fingerprints the run options
(cdktf version, terraform version, working directory, stack, mode). Later
runs with the same options find that marker and edit the comment in place;
runs with different options get their own comment.

Known limitation: the lookup is read-then-write against GitHub, so two
concurrent runs with the same options can both miss each other and each
create a comment.
"""

from __future__ import annotations

import hashlib
from typing import Iterable, Protocol

from . import workflow
from .context import GitHubContext
from .github import find_comment_by_marker
from .inputs import ActionInputs, RunConfig

TAG_TEMPLATE = "<!-- terraform cdk action for options with hash {digest} -->"


class IssueClient(Protocol):
    def search_issues(self, query: str) -> list[dict]: ...

    def iter_comments(self, repo: str, issue_number: int) -> Iterable[dict]: ...

    def create_comment(self, repo: str, issue_number: int, body: str) -> dict: ...

    def update_comment(self, repo: str, comment_id: int | str, body: str) -> None: ...


def options_hash(config: RunConfig) -> str:
    return hashlib.md5(config.to_json().encode("utf-8")).hexdigest()


def comment_tag(config: RunConfig) -> str:
    """Marker line identifying comments posted for these run options."""
    return TAG_TEMPLATE.format(digest=options_hash(config))


class CommentController:
    def __init__(self, inputs: ActionInputs, context: GitHubContext, client: IssueClient) -> None:
        self._inputs = inputs
        self._context = context
        self._client = client

    def post_comment_on_pr(self, message: str) -> None:
        """Create or update the status comment for this run.

        Does nothing when commenting is disabled or no pull request can be
        found for the commit. API errors propagate to the caller.
        """
        if not self._inputs.comment_on_pr:
            workflow.debug("Not commenting on PR by configuration")
            return

        pull_number = self.get_pull_number()
        if not pull_number:
            workflow.debug("Not commenting on PR since it could not be identified")
            return

        tag = comment_tag(self._inputs.run_config)
        message_with_tag = f"{tag}\n{message}"
        repo = self._context.repo.full_name

        previous_comment = None
        if self._inputs.update_comment:
            previous_comment = find_comment_by_marker(
                self._client.iter_comments(repo, pull_number), tag
            )

        if previous_comment is not None:
            workflow.debug("Updating previous comment")
            self._client.update_comment(repo, previous_comment["id"], message_with_tag)
            return

        workflow.debug("Adding new comment")
        self._client.create_comment(repo, pull_number, message_with_tag)

    def get_pull_number(self) -> int | None:
        if self._context.pull_request_number:
            return self._context.pull_request_number

        workflow.debug("Not running on a PR, looking for a pull request number via search")
        full_name = self._context.repository_full_name
        if not full_name:
            workflow.debug("Could not identify repository name, skipping comment on PR")
            return None

        query = f"is:pr repo:{full_name} sha:{self._context.sha}"
        items = self._client.search_issues(query)
        workflow.debug(f"Searched for '{query}', got {len(items)} result(s)")
        if not items:
            return None
        number = items[0].get("number")
        return number if isinstance(number, int) else None
