"""Markdown for the status comment.

Keep surface area small: heading, run link, collapsible command output.
"""

from __future__ import annotations


def run_link(run_url: str | None) -> str:
    if not run_url:
        return ""
    return f"<a target=\"_blank\" href='{run_url}'>🌍 View run</a>"


def output_block(output: str | None, *, summary: str) -> str:
    """Command output folded into a <details> block; empty when there is no output."""
    if not output:
        return ""
    return "\n".join(
        [
            f"<details><summary>{summary}</summary>",
            "",
            "```shell",
            output,
            "```",
            "",
            "</details>",
        ]
    )


def render_status_comment(
    title: str,
    run_url: str | None = None,
    output: str | None = None,
    output_title: str | BaseException = "",
) -> str:
    """Render status comment."""
    return "\n".join(
        [
            f"### {title}",
            "",
            run_link(run_url),
            "",
            output_block(output, summary=str(output_title)),
        ]
    )
