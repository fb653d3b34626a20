"""Run a cdktf command for the configured mode and report it on the PR."""

from __future__ import annotations

import codecs
import os
import shlex
import subprocess
import sys
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Callable, Mapping

from . import workflow
from .comment import CommentController, IssueClient
from .context import GitHubContext
from .inputs import ActionInputs
from .markdown import render_status_comment
from .setup_terraform import setup_terraform

RUN_URL_IDENTIFIER = "Created speculative Terraform Cloud run:"
NO_CHANGES_MARKER = "No changes. Your infrastructure matches the configuration."
CHUNK_SIZE = 4096


class ExecutionMode(str, Enum):
    SYNTH_ONLY = "synth-only"
    PLAN_ONLY = "plan-only"
    AUTO_APPROVE_APPLY = "auto-approve-apply"
    AUTO_APPROVE_DESTROY = "auto-approve-destroy"


class ActionError(RuntimeError):
    """The action was configured in a way it cannot run."""


class CommandFailedError(RuntimeError):
    """The cdktf command exited non-zero or could not be started (returncode None)."""

    def __init__(
        self,
        command: str,
        returncode: int | None,
        output: str,
        *,
        message: str | None = None,
    ) -> None:
        super().__init__(message or f"The process '{command}' failed with exit code {returncode}")
        self.command = command
        self.returncode = returncode
        self.output = output


@dataclass(frozen=True)
class ModePlan:
    """Command and comment titles for one execution mode."""

    command: tuple[str, ...]
    success_title: str
    failure_title: str
    no_changes_title: str | None = None
    output_title: str = ""
    report_output: bool = False


CommandRunner = Callable[[list[str], Path, Mapping[str, str]], str]
Installer = Callable[[str], object]


def has_terraform_changes(output: str) -> bool:
    return NO_CHANGES_MARKER not in output


def get_run_url(output: str) -> str | None:
    """URL of the speculative Terraform Cloud run, if the output mentions one."""
    for line in output.split("\n"):
        if RUN_URL_IDENTIFIER in line:
            url_start = line.find("http")
            return line[url_start:] if url_start >= 0 else line
    return None


def parse_mode(mode: str) -> ExecutionMode:
    try:
        return ExecutionMode(mode)
    except ValueError:
        allowed = "', '".join(m.value for m in ExecutionMode)
        raise ActionError(f"Invalid mode passed: '{mode}', needs to be one of '{allowed}'") from None


def plan_for(mode: ExecutionMode, stack_name: str) -> ModePlan:
    if mode is ExecutionMode.SYNTH_ONLY:
        return ModePlan(
            command=("synth",),
            success_title="✅ Successfully synthesized the Terraform CDK Application",
            failure_title="❌ Error synthesizing the Terraform CDK Application",
        )

    if not stack_name:
        raise ActionError(f"Stack name must be provided when running in '{mode.value}' mode")

    if mode is ExecutionMode.PLAN_ONLY:
        return ModePlan(
            command=("plan", stack_name),
            success_title=f"✅ Successfully planned Terraform CDK Stack '{stack_name}'",
            no_changes_title=f"🟰 No changes in Terraform CDK Stack '{stack_name}'",
            failure_title=f"❌ Error planning Terraform CDK Stack '{stack_name}'",
            output_title="Show Plan",
            report_output=True,
        )
    if mode is ExecutionMode.AUTO_APPROVE_APPLY:
        return ModePlan(
            command=("apply", stack_name, "--auto-approve"),
            success_title=f"✅ Successfully applied Terraform CDK Stack '{stack_name}'",
            no_changes_title=f"🟰 No changes to apply in Terraform CDK Stack '{stack_name}'",
            failure_title=f"❌ Error applying Terraform CDK Stack '{stack_name}'",
            output_title="Show Run",
            report_output=True,
        )
    return ModePlan(
        command=("destroy", stack_name, "--auto-approve"),
        success_title=f"✅ Successfully destroyed the Terraform CDK Application '{stack_name}'",
        failure_title=f"❌ Error destroying the Terraform CDK Application '{stack_name}'",
    )


def build_command(inputs: ActionInputs, cdktf_args: tuple[str, ...]) -> list[str]:
    cmd = ["npx", "--yes"]
    if inputs.custom_npx_args:
        cmd.extend(shlex.split(inputs.custom_npx_args))
    cmd.append(f"cdktf-cli@{inputs.cdktf_version}")
    cmd.extend(cdktf_args)
    return cmd


def command_env(inputs: ActionInputs, base: Mapping[str, str] | None = None) -> dict[str, str]:
    env = dict(os.environ if base is None else base)
    env.update(
        {
            "FORCE_COLOR": "0",
            "TF_CLI_ARGS": "-no-color",
            "TF_TOKEN_app_terraform_io": inputs.terraform_cloud_token,
        }
    )
    return env


def _pump(stream: BinaryIO, sink: Callable[[str], None]) -> None:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    with stream:
        for chunk in iter(lambda: stream.read1(CHUNK_SIZE), b""):
            text = decoder.decode(chunk)
            if text:
                sink(text)
        tail = decoder.decode(b"", final=True)
        if tail:
            sink(tail)


def _start_failure(cmd: list[str], exc: OSError) -> CommandFailedError:
    if isinstance(exc, FileNotFoundError):
        message = f"Unable to locate executable file: {cmd[0]}"
    else:
        message = f"The process '{cmd[0]}' could not be started: {exc}"
    return CommandFailedError(cmd[0], None, message, message=message)


def run_command(cmd: list[str], cwd: Path, env: Mapping[str, str]) -> str:
    """Run the command, stream its output to the log, return it in arrival order.

    stderr chunks are also raised as warnings.

    Raises:
        CommandFailedError: Non-zero exit or the process could not start;
            carries the captured output
    """
    if not cwd.is_dir():
        message = f"The cwd: {cwd} does not exist!"
        raise CommandFailedError(cmd[0], None, message, message=message)

    try:
        proc = subprocess.Popen(
            cmd,
            cwd=cwd,
            env=dict(env),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        raise _start_failure(cmd, exc) from exc

    chunks: list[str] = []
    lock = threading.Lock()

    def on_stdout(text: str) -> None:
        with lock:
            chunks.append(text)
            sys.stdout.write(text)
            sys.stdout.flush()

    def on_stderr(text: str) -> None:
        with lock:
            chunks.append(text)
            workflow.warning(text)

    readers = [
        threading.Thread(target=_pump, args=(proc.stdout, on_stdout), daemon=True),
        threading.Thread(target=_pump, args=(proc.stderr, on_stderr), daemon=True),
    ]
    for reader in readers:
        reader.start()
    returncode = proc.wait()
    for reader in readers:
        reader.join()

    output = "".join(chunks)
    if returncode != 0:
        raise CommandFailedError(cmd[0], returncode, output)
    return output


class ActionRunner:
    """Execution driver: install Terraform, run cdktf, report the outcome."""

    def __init__(
        self,
        inputs: ActionInputs,
        comments: CommentController,
        *,
        installer: Installer = setup_terraform,
        command_runner: CommandRunner = run_command,
    ) -> None:
        self._inputs = inputs
        self._comments = comments
        self._installer = installer
        self._command_runner = command_runner

    def post_comment(
        self,
        title: str,
        run_url: str | None = None,
        output: str | None = None,
        output_title: str | BaseException = "",
    ) -> None:
        self._comments.post_comment_on_pr(render_status_comment(title, run_url, output, output_title))

    def execute(self, cdktf_args: tuple[str, ...]) -> str:
        """Install Terraform and run the cdktf command; returns the captured output."""
        workflow.debug("Installing terraform")
        self._installer(self._inputs.terraform_version)

        cmd = build_command(self._inputs, cdktf_args)
        workflow.debug(f"Executing: {shlex.join(cmd)}")
        cwd = Path(self._inputs.working_directory or os.getcwd())
        output = self._command_runner(cmd, cwd, command_env(self._inputs))
        workflow.debug("Finished executing")
        return output

    def run(self) -> None:
        mode = parse_mode(self._inputs.mode)
        workflow.debug(f"Running action in '{mode.value}' mode")
        plan = plan_for(mode, self._inputs.stack_name)

        try:
            output = self.execute(plan.command)
        except CommandFailedError as exc:
            workflow.debug(f"Output: {exc.output}")
            run_url = get_run_url(exc.output) if plan.report_output else None
            self.post_comment(plan.failure_title, run_url, exc.output, exc)
            raise

        if not plan.report_output:
            self.post_comment(plan.success_title)
            return

        title = plan.success_title
        if plan.no_changes_title and not has_terraform_changes(output):
            title = plan.no_changes_title
        self.post_comment(title, get_run_url(output), output, plan.output_title)


def run(
    inputs: ActionInputs,
    context: GitHubContext,
    client: IssueClient,
    **kwargs,
) -> None:
    controller = CommentController(inputs, context, client)
    ActionRunner(inputs, controller, **kwargs).run()
