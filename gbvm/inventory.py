"""
Inventory of Go binaries installed in the bin directory.

Records are built fresh on every scan; nothing is cached between calls.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from .buildinfo import BuildInfo, read_build_info
from .errors import ArtifactNotFound, InventoryUnreadable, NotABuildArtifact

logger = logging.getLogger(__name__)

# Manifest keys, in the order they are written
MANIFEST_FIELDS = ("name", "version", "mod", "path")


@dataclass(frozen=True)
class InstalledArtifact:
    """
    One installed Go binary.

    Attributes:
        name: File name of the binary (never taken from build metadata)
        version: Main module version embedded at build time
        module: Main module path, the module proxy lookup key
        path: Command path passed to ``go install``
    """
    name: str
    version: str
    module: str
    path: str

    def to_dict(self) -> dict[str, str]:
        """Convert to the manifest representation."""
        return {
            "name": self.name,
            "version": self.version,
            "mod": self.module,
            "path": self.path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InstalledArtifact":
        """Create from a manifest entry. Missing keys raise KeyError."""
        return cls(
            name=data["name"],
            version=data["version"],
            module=data["mod"],
            path=data["path"],
        )

    @classmethod
    def from_build_info(cls, name: str, info: BuildInfo) -> "InstalledArtifact":
        return cls(name=name, version=info.version, module=info.module, path=info.path)


def load_artifact(binary_path: str) -> InstalledArtifact:
    """
    Read one installed binary.

    Raises:
        NotABuildArtifact: If the file carries no Go build information
    """
    info = read_build_info(binary_path)
    return InstalledArtifact.from_build_info(os.path.basename(binary_path), info)


def scan_artifacts(directory: str) -> list[InstalledArtifact]:
    """
    Read every Go binary in a directory.

    Entries that are not Go binaries are skipped. Results are ordered by
    file name.

    Args:
        directory: Bin directory to scan

    Returns:
        One record per recognised binary

    Raises:
        InventoryUnreadable: If the directory cannot be listed
    """
    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError as e:
        raise InventoryUnreadable(f"cannot read bin directory {directory}: {e}") from e

    artifacts = []
    for entry in entries:
        try:
            if entry.is_dir():
                continue
        except OSError:
            continue
        try:
            artifacts.append(load_artifact(entry.path))
        except NotABuildArtifact as e:
            logger.debug(f"skipping {e}")

    logger.debug(f"found {len(artifacts)} Go binaries in {directory}")
    return artifacts


def find_artifact(directory: str, name: str) -> InstalledArtifact:
    """
    Resolve a binary by file name.

    Raises:
        ArtifactNotFound: If no such file exists in the directory
        NotABuildArtifact: If the file is not a Go binary
    """
    binary_path = os.path.join(directory, name)
    if os.path.basename(name) != name or not os.path.isfile(binary_path):
        raise ArtifactNotFound(name, directory)
    return load_artifact(binary_path)
