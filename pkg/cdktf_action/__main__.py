"""Action entry point: python -m pkg.cdktf_action"""

from __future__ import annotations

import json

from . import workflow
from .action import run
from .context import GitHubContext
from .github import GitHubClient
from .inputs import ActionInputs


def main() -> None:
    """Main."""
    try:
        inputs = ActionInputs.from_env()
        context = GitHubContext.from_env()
        workflow.debug(f"Starting action with context: {json.dumps(context.to_dict(), indent=2)}")
        run(inputs, context, GitHubClient(token=inputs.github_token))
    except Exception as exc:
        workflow.set_failed(str(exc))


if __name__ == "__main__":
    main()
