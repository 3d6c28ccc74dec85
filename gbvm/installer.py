"""
Installation of Go commands through ``go install``.

``go install <path>@<version>`` builds the command in module mode and
replaces any existing binary of the same name in GOBIN.
"""

from __future__ import annotations

import os
import subprocess
import time
from dataclasses import dataclass
from typing import Mapping, Protocol

from .common import vlog
from .config import Config
from .errors import InstallFailed

# Characters of stderr kept in error messages
STDERR_LIMIT = 400


class Installer(Protocol):
    """Anything that can install an exact version of a command path."""

    def install(self, command_path: str, version: str) -> "InstallResult":
        ...


@dataclass(frozen=True)
class InstallResult:
    """
    Result of one ``go install`` invocation.

    Attributes:
        directive: The ``path@version`` argument
        success: Whether the install succeeded
        exit_code: Process exit code
        stdout: Standard output
        stderr: Standard error
        duration_seconds: Time taken
    """
    directive: str
    success: bool
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0


def install_directive(command_path: str, version: str) -> str:
    """Format the ``go install`` argument for a command and version."""
    return f"{command_path}@{version}"


def _trim(stderr: str) -> str:
    stderr = stderr.strip()
    if len(stderr) > STDERR_LIMIT:
        stderr = stderr[:STDERR_LIMIT] + "..."
    return stderr


class GoInstaller:
    """
    Runs ``go install`` for one command at a time.

    Args:
        go_binary: Go executable to run
        gobin: Install directory exported as GOBIN (None keeps the default)
        timeout: Optional timeout in seconds
        env: Base environment (defaults to os.environ)
        verbose: Enable verbose logging
    """

    def __init__(
        self,
        go_binary: str = "go",
        gobin: str | None = None,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
        verbose: bool = False,
    ):
        self.go_binary = go_binary
        self.gobin = gobin
        self.timeout = timeout
        self.env = dict(os.environ if env is None else env)
        if gobin:
            self.env["GOBIN"] = gobin
        self.verbose = verbose

    @classmethod
    def from_config(cls, config: Config, verbose: bool = False) -> "GoInstaller":
        # pin GOBIN so the new binary replaces the one that was scanned
        return cls(go_binary=config.go_binary, gobin=config.bin_dir, verbose=verbose)

    def install(self, command_path: str, version: str) -> InstallResult:
        """
        Install an exact version of a command.

        Args:
            command_path: Command path recorded in the binary
            version: Version to install

        Returns:
            InstallResult of the successful install

        Raises:
            InstallFailed: If the go command cannot be started, times out
                or exits non-zero
        """
        directive = install_directive(command_path, version)
        command = [self.go_binary, "install", directive]
        vlog(f"Executing: {' '.join(command)}", self.verbose)

        start_time = time.time()
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                env=self.env,
                stdin=subprocess.DEVNULL,
                check=False,
            )
        except FileNotFoundError:
            raise InstallFailed(directive, -1, reason=f"command not found: {self.go_binary}") from None
        except subprocess.TimeoutExpired:
            raise InstallFailed(directive, -1, reason=f"timed out after {self.timeout}s") from None
        except OSError as e:
            raise InstallFailed(directive, -1, reason=f"cannot run {self.go_binary}: {e}") from e

        duration = time.time() - start_time
        if result.returncode != 0:
            raise InstallFailed(directive, result.returncode, _trim(result.stderr or ""))

        vlog(f"Installed {directive} in {duration:.1f}s", self.verbose)
        return InstallResult(
            directive=directive,
            success=True,
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            duration_seconds=duration,
        )
