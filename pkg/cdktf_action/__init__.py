"""GitHub Action that runs Terraform CDK and reports the result on the pull request."""

from .action import ActionError, ActionRunner, CommandFailedError, ExecutionMode, run
from .comment import CommentController, comment_tag, options_hash
from .context import GitHubContext, RepoRef
from .github import CommentPermissionError, GitHubApiError, GitHubClient
from .inputs import ActionInputs, InputError, RunConfig
from .setup_terraform import TerraformInstaller, TerraformSetupError, setup_terraform

__all__ = [
    "ActionError",
    "ActionInputs",
    "ActionRunner",
    "CommandFailedError",
    "CommentController",
    "CommentPermissionError",
    "ExecutionMode",
    "GitHubApiError",
    "GitHubClient",
    "GitHubContext",
    "InputError",
    "RepoRef",
    "RunConfig",
    "TerraformInstaller",
    "TerraformSetupError",
    "comment_tag",
    "options_hash",
    "run",
    "setup_terraform",
]
