"""Typed action inputs.

The runner exposes every `with:` value as an `INPUT_<NAME>` environment
variable. `action.yml` stays the single source of input names and defaults,
so the loader reads it instead of repeating the defaults here.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

ACTION_FILE = Path(__file__).resolve().parents[2] / "action.yml"

TRUE_VALUES = {"true", "True", "TRUE"}
FALSE_VALUES = {"false", "False", "FALSE"}


class InputError(ValueError):
    """An action input has a value the action cannot use."""


@dataclass(frozen=True)
class RunConfig:
    """The inputs that identify a run for comment deduplication."""

    cdktf_version: str
    terraform_version: str
    working_directory: str
    stack_name: str
    mode: str

    def to_json(self) -> str:
        """Compact JSON with a fixed key order; the fingerprint hashes this."""
        options = {
            "cdktfVersion": self.cdktf_version,
            "terraformVersion": self.terraform_version,
            "workingDirectory": self.working_directory,
            "stackName": self.stack_name,
            "mode": self.mode,
        }
        return json.dumps(options, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class ActionInputs:
    """All inputs of the action, parsed once at startup."""

    cdktf_version: str
    terraform_version: str
    working_directory: str
    stack_name: str
    mode: str
    terraform_cloud_token: str = ""
    github_token: str = ""
    comment_on_pr: bool = True
    update_comment: bool = True
    custom_npx_args: str = ""

    @property
    def run_config(self) -> RunConfig:
        return RunConfig(
            cdktf_version=self.cdktf_version,
            terraform_version=self.terraform_version,
            working_directory=self.working_directory,
            stack_name=self.stack_name,
            mode=self.mode,
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        defaults: Mapping[str, str] | None = None,
    ) -> "ActionInputs":
        """Build inputs from `INPUT_*` variables, falling back to action.yml defaults."""
        env = os.environ if environ is None else environ
        if defaults is None:
            defaults = load_input_defaults(action_file(env))

        def get(name: str) -> str:
            return get_input(name, env, defaults)

        return cls(
            cdktf_version=get("cdktfVersion"),
            terraform_version=get("terraformVersion"),
            working_directory=get("workingDirectory"),
            stack_name=get("stackName"),
            mode=get("mode"),
            terraform_cloud_token=get("terraformCloudToken"),
            github_token=get("githubToken"),
            comment_on_pr=_parse_bool(get("commentOnPr"), "commentOnPr"),
            update_comment=_parse_bool(get("updateComment"), "updateComment"),
            custom_npx_args=get("customNpxArgs"),
        )


def action_file(environ: Mapping[str, str]) -> Path:
    """Locate action.yml: the checked-out action first, then the source tree."""
    action_path = str(environ.get("GITHUB_ACTION_PATH") or "").strip()
    if action_path:
        candidate = Path(action_path) / "action.yml"
        if candidate.is_file():
            return candidate
    return ACTION_FILE


def load_input_defaults(path: Path) -> dict[str, str]:
    """Map input name -> declared default (inputs without one are omitted)."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise InputError(f"{path}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise InputError(f"{path}: expected mapping")
    inputs = data.get("inputs") or {}
    if not isinstance(inputs, dict):
        raise InputError(f"{path}: inputs: expected mapping")

    defaults: dict[str, str] = {}
    for name, declared in inputs.items():
        if isinstance(declared, dict) and declared.get("default") is not None:
            defaults[str(name)] = _stringify(declared["default"])
    return defaults


def get_input(name: str, environ: Mapping[str, str], defaults: Mapping[str, str]) -> str:
    """Same lookup the runner does: INPUT_<NAME>, spaces to underscores, upper-cased."""
    key = "INPUT_" + name.replace(" ", "_").upper()
    value = environ.get(key)
    if value is None or value == "":
        value = defaults.get(name, "")
    return value.strip()


def _stringify(value: Any) -> str:
    # YAML turns `default: true` into a bool; the runner hands it over as "true".
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse_bool(value: str, name: str) -> bool:
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise InputError(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}\n"
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )
