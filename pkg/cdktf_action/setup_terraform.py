"""Install a Terraform release from releases.hashicorp.com into the tool cache."""

from __future__ import annotations

import io
import json
import os
import platform
import re
import stat
import sys
import tempfile
import zipfile
from pathlib import Path
from typing import Any, Callable
from urllib import request

from . import workflow

RELEASES_URL = "https://releases.hashicorp.com/terraform"
USER_AGENT = "GitHub Action: Terraform CDK"
DEFAULT_TIMEOUT_SECONDS = 60

ReleaseOpen = Callable[[request.Request, int], Any]

_OS_MAPPINGS = {"win32": "windows", "cygwin": "windows"}
_ARCH_MAPPINGS = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "x32": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
}
_STABLE_VERSION = re.compile(r"^\d+\.\d+\.\d+$")


class TerraformSetupError(RuntimeError):
    """Terraform could not be resolved or installed."""


def map_os(os_platform: str) -> str:
    """sys.platform -> HashiCorp os name (linux, darwin, windows, freebsd...)."""
    if os_platform in _OS_MAPPINGS:
        return _OS_MAPPINGS[os_platform]
    return re.sub(r"\d+$", "", os_platform)


def map_arch(machine: str) -> str:
    return _ARCH_MAPPINGS.get(machine.lower(), machine.lower())


def _default_opener(req: request.Request, timeout: int) -> Any:
    return request.urlopen(req, timeout=timeout)


def _tool_cache_root() -> Path:
    root = os.environ.get("RUNNER_TOOL_CACHE", "").strip()
    if root:
        return Path(root)
    return Path(tempfile.gettempdir()) / "tool-cache"


def _binary_name(os_name: str) -> str:
    return "terraform.exe" if os_name == "windows" else "terraform"


def _version_key(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


class TerraformInstaller:
    def __init__(
        self,
        opener: ReleaseOpen | None = None,
        *,
        cache_root: Path | None = None,
        os_name: str | None = None,
        arch: str | None = None,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._opener = opener or _default_opener
        self._cache_root = cache_root or _tool_cache_root()
        self._os = os_name or map_os(sys.platform)
        self._arch = arch or map_arch(platform.machine())
        self._timeout = timeout_seconds

    def _fetch(self, url: str) -> bytes:
        req = request.Request(url, headers={"User-Agent": USER_AGENT})
        with self._opener(req, self._timeout) as response:
            return response.read()

    def _fetch_json(self, url: str) -> dict[str, Any]:
        try:
            data = json.loads(self._fetch(url).decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise TerraformSetupError(f"invalid release metadata at {url}: {exc}") from exc
        if not isinstance(data, dict):
            raise TerraformSetupError(f"invalid release metadata at {url}: expected object")
        return data

    def resolve_version(self, version: str) -> str:
        """Resolve `latest` (or an empty version) to the newest stable release."""
        version = version.strip().lstrip("v")
        if version and version != "latest":
            return version
        index = self._fetch_json(f"{RELEASES_URL}/index.json")
        versions = [v for v in (index.get("versions") or {}) if _STABLE_VERSION.match(v)]
        if not versions:
            raise TerraformSetupError("no stable Terraform release found")
        return max(versions, key=_version_key)

    def find_build(self, version: str) -> dict[str, Any]:
        workflow.debug(f"Finding releases for Terraform version {version}")
        release = self._fetch_json(f"{RELEASES_URL}/{version}/index.json")
        workflow.debug(
            f"Getting build for Terraform version {release.get('version', version)}: {self._os} {self._arch}"
        )
        for build in release.get("builds") or []:
            if not isinstance(build, dict):
                continue
            if build.get("os") == self._os and build.get("arch") == self._arch:
                return build
        raise TerraformSetupError(
            f"Terraform version {version} not available for {self._os} and {self._arch}"
        )

    def download(self, url: str, destination: Path) -> Path:
        workflow.debug(f"Downloading Terraform CLI from {url}")
        archive = self._fetch(url)
        workflow.debug("Extracting Terraform CLI zip file")
        destination.mkdir(parents=True, exist_ok=True)
        try:
            with zipfile.ZipFile(io.BytesIO(archive)) as bundle:
                bundle.extractall(destination)
        except zipfile.BadZipFile as exc:
            raise TerraformSetupError(f"Unable to download Terraform from {url}") from exc

        binary = destination / _binary_name(self._os)
        if not binary.is_file():
            raise TerraformSetupError(f"Unable to download Terraform from {url}")
        binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        workflow.debug(f"Terraform CLI path is {destination}.")
        return destination

    def install(self, version: str) -> Path:
        """Install (or reuse) the requested version and put it on PATH."""
        version = self.resolve_version(version)
        cached = self._cache_root / "terraform" / version / self._arch
        if (cached / _binary_name(self._os)).is_file():
            workflow.debug(f"Using cached Terraform CLI at {cached}")
        else:
            build = self.find_build(version)
            self.download(str(build["url"]), cached)
        workflow.add_path(cached)
        return cached


def setup_terraform(version: str) -> Path:
    return TerraformInstaller().install(version)
