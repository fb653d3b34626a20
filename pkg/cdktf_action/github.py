"""GitHub issue/PR API access through the gh CLI.

Every call is a single attempt: failures surface as exceptions and the
workflow run fails, which is the signal users see.
"""

from __future__ import annotations

import json
import os
import subprocess
from typing import Any, Iterable, Iterator

DEFAULT_PER_PAGE = 100
MAX_PER_PAGE = 100
WRITE_METHODS = {"POST", "PATCH"}


class GitHubApiError(RuntimeError):
    """A gh api call failed."""


class CommentPermissionError(GitHubApiError):
    """Token lacks pull-requests: write permission."""


def _is_permission_error(stderr: str) -> bool:
    lower_stderr = stderr.lower()
    return any(
        s in lower_stderr
        for s in ("http 403", "(http 403)", "resource not accessible", "insufficient")
    )


def _is_write(args: list[str]) -> bool:
    for flag, method in zip(args, args[1:]):
        if flag in ("-X", "--method") and method.upper() in WRITE_METHODS:
            return True
    return False


def _run_gh(
    args: list[str],
    *,
    check: bool = True,
    stdin: str | None = None,
    token: str | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a gh CLI command once.

    Raises:
        CommentPermissionError: A POST or PATCH was refused (HTTP 403)
        GitHubApiError: Any other non-zero exit when check is set
    """
    env = os.environ.copy()
    if token:
        env["GH_TOKEN"] = token

    result = subprocess.run(
        ["gh", *args],
        input=stdin,
        capture_output=True,
        text=True,
        check=False,
        env=env,
    )
    if result.returncode == 0 or not check:
        return result

    stderr = (result.stderr or "").strip()
    if _is_write(args) and _is_permission_error(stderr):
        raise CommentPermissionError(
            f"Unable to post PR comment: {stderr}\n"
            "The token likely lacks pull-requests: write permission. Add this to your workflow:\n"
            "permissions:\n"
            "  contents: read\n"
            "  pull-requests: write"
        )
    raise GitHubApiError(f"gh {' '.join(args[:3])} failed (exit {result.returncode}): {stderr}")


def _decode(result: subprocess.CompletedProcess[str], what: str) -> Any:
    try:
        return json.loads(result.stdout or "null")
    except json.JSONDecodeError as exc:
        raise GitHubApiError(f"invalid JSON from {what}: {exc}") from exc


class GitHubClient:
    """The four issue/PR operations the comment controller relies on."""

    def __init__(self, token: str | None = None, *, per_page: int = DEFAULT_PER_PAGE) -> None:
        self._token = token or None
        # GitHub serves at most 100 per page.
        self._per_page = max(1, min(per_page, MAX_PER_PAGE))

    def _api(self, args: list[str], *, stdin: str | None = None) -> subprocess.CompletedProcess[str]:
        return _run_gh(["api", *args], stdin=stdin, token=self._token)

    def search_issues(self, query: str) -> list[dict]:
        """Search issues and pull requests; returns the `items` of the first result page."""
        result = self._api(["-X", "GET", "search/issues", "-f", f"q={query}"])
        payload = _decode(result, "search/issues")
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    def iter_comment_pages(self, repo: str, issue_number: int) -> Iterator[list[dict]]:
        """Yield issue comments page by page until the listing is exhausted."""
        page = 1
        while True:
            endpoint = (
                f"repos/{repo}/issues/{issue_number}/comments"
                f"?per_page={self._per_page}&page={page}"
            )
            payload = _decode(self._api([endpoint]), endpoint)
            if not isinstance(payload, list) or not payload:
                return
            yield [c for c in payload if isinstance(c, dict)]
            if len(payload) < self._per_page:
                return
            page += 1

    def iter_comments(self, repo: str, issue_number: int) -> Iterator[dict]:
        for comments in self.iter_comment_pages(repo, issue_number):
            yield from comments

    def create_comment(self, repo: str, issue_number: int, body: str) -> dict:
        result = self._api(
            ["-X", "POST", f"repos/{repo}/issues/{issue_number}/comments", "--input", "-"],
            stdin=json.dumps({"body": body}),
        )
        data = _decode(result, "create comment")
        return data if isinstance(data, dict) else {}

    def update_comment(self, repo: str, comment_id: int | str, body: str) -> None:
        self._api(
            ["-X", "PATCH", f"repos/{repo}/issues/comments/{comment_id}", "--input", "-"],
            stdin=json.dumps({"body": body}),
        )


def find_comment_by_marker(comments: Iterable[dict], marker: str) -> dict | None:
    """Return the first comment whose body contains the marker."""
    for comment in comments:
        body = comment.get("body")
        if isinstance(body, str) and marker in body:
            return comment
    return None
