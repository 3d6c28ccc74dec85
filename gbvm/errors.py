"""
Error taxonomy for inventory, registry, install and manifest operations.

Per-artifact errors (extraction, registry, install) are caught at the
orchestration boundary and reported; the rest abort the whole operation.
"""

from __future__ import annotations


class GbvmError(Exception):
    """
    Base exception for gbvm errors.

    Attributes:
        message: Human-readable error message
    """
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigError(GbvmError):
    """Raised when configuration cannot be loaded or is invalid."""


class NotABuildArtifact(GbvmError):
    """Raised when a file is not a Go executable carrying build metadata."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ArtifactNotFound(GbvmError):
    """Raised when a named binary does not exist in the bin directory."""

    def __init__(self, name: str, directory: str):
        self.name = name
        self.directory = directory
        super().__init__(f"binary '{name}' not found in {directory}")


class InventoryUnreadable(GbvmError):
    """Raised when the bin directory cannot be listed."""


class RegistryError(GbvmError):
    """Base class for module proxy lookup failures."""


class RegistryUnavailable(RegistryError):
    """Raised on transport failures (DNS, refused connection, timeout)."""


class RegistryStatusError(RegistryError):
    """
    Raised when the proxy answers with a non-success status.

    Attributes:
        status: HTTP status code
    """
    def __init__(self, url: str, status: int, reason: str = ""):
        self.url = url
        self.status = status
        text = f"HTTP error: {status} {reason}".rstrip()
        super().__init__(f"{text} ({url})")


class RegistryMalformedResponse(RegistryError):
    """Raised when the proxy body is not a JSON object with a Version."""


class InstallFailed(GbvmError):
    """
    Raised when ``go install`` does not succeed.

    Attributes:
        directive: The ``path@version`` that was requested
        exit_code: Process exit code (-1 if the process never ran)
        stderr: Trimmed standard error output
    """
    def __init__(self, directive: str, exit_code: int, stderr: str = "", reason: str | None = None):
        self.directive = directive
        self.exit_code = exit_code
        self.stderr = stderr
        if reason is None:
            reason = f"exit status {exit_code}"
            if stderr:
                reason += f": {stderr}"
        super().__init__(f"go install {directive}: {reason}")


class ManifestError(GbvmError):
    """Base class for manifest failures. Always fatal for a restore."""


class ManifestUnreadable(ManifestError):
    """Raised when the manifest file cannot be read."""


class ManifestMalformed(ManifestError):
    """Raised when the manifest content is not a valid record list."""
