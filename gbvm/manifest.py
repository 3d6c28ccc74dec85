"""
Manifest export and restore.

A manifest is a JSON array of ``{"name", "version", "mod", "path"}``
objects, two-space indented, fields in that order. It is the only state
gbvm persists: ``export`` writes the current inventory, and restore
reinstalls each entry at exactly the recorded version.
"""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Sequence

from .common import vlog
from .config import Config
from .errors import ManifestMalformed, ManifestUnreadable, NotABuildArtifact
from .installer import Installer
from .inventory import MANIFEST_FIELDS, InstalledArtifact, load_artifact, scan_artifacts
from .upgrade import (
    STATUS_FAILED,
    STATUS_PLANNED,
    STATUS_SKIPPED,
    STATUS_UPGRADED,
    ArtifactOutcome,
    BatchResult,
    Echo,
)
from .versions import versions_equal


def dumps_manifest(artifacts: Sequence[InstalledArtifact]) -> str:
    """Serialize records to manifest JSON (no trailing newline)."""
    return json.dumps([a.to_dict() for a in artifacts], indent=2, ensure_ascii=False)


def loads_manifest(text: str) -> list[InstalledArtifact]:
    """
    Parse manifest JSON.

    ``null`` is accepted as an empty manifest. Unknown keys are ignored.

    Raises:
        ManifestMalformed: If the text is not an array of complete records
    """
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ManifestMalformed(f"invalid manifest JSON: {e}") from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise ManifestMalformed("manifest must be a JSON array")

    records = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ManifestMalformed(f"manifest entry {index} is not an object")
        missing = [key for key in MANIFEST_FIELDS if not isinstance(entry.get(key), str)]
        if missing:
            raise ManifestMalformed(
                f"manifest entry {index} has missing or non-string fields: {', '.join(missing)}"
            )
        records.append(InstalledArtifact.from_dict(entry))
    return records


def read_manifest(path: str | Path) -> list[InstalledArtifact]:
    """
    Load a manifest file.

    Raises:
        ManifestUnreadable: If the file cannot be read
        ManifestMalformed: If its content is invalid
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise ManifestMalformed(f"{path}: not UTF-8 text: {e}") from e
    except OSError as e:
        raise ManifestUnreadable(f"cannot read manifest {path}: {e}") from e
    return loads_manifest(text)


def write_manifest(artifacts: Sequence[InstalledArtifact], path: str | Path) -> None:
    """
    Write a manifest file atomically (temp file, then rename).

    Raises:
        OSError: If the file cannot be written
    """
    path = Path(path)
    temp_path = path.with_name(path.name + ".tmp")
    with open(temp_path, "w", encoding="utf-8") as f:
        f.write(dumps_manifest(artifacts))
        f.write("\n")
    temp_path.replace(path)


def export_manifest(config: Config) -> list[InstalledArtifact]:
    """
    Collect the full inventory for export.

    Raises:
        InventoryUnreadable: If the bin directory cannot be listed
    """
    return scan_artifacts(config.bin_dir)


def restore_manifest(
    config: Config,
    records: Sequence[InstalledArtifact],
    installer: Installer,
    echo: Echo = print,
    dry_run: bool = False,
    verbose: bool = False,
) -> BatchResult:
    """
    Reinstall every manifest entry at its recorded version.

    Each entry is compared against the binary of the same name in the bin
    directory. Entries already at the recorded version are skipped; missing
    binaries are installed. A failure on one entry is reported and the pass
    continues with the next.

    Args:
        config: Resolved configuration
        records: Manifest entries
        installer: Performs the installs
        echo: Receives progress and failure lines
        dry_run: Report installs without running them
        verbose: Enable verbose logging

    Returns:
        BatchResult with one outcome per entry
    """
    start_time = time.time()
    outcomes: list[ArtifactOutcome] = []

    for record in records:
        outcome = _restore_one(config, record, installer, echo, dry_run, verbose)
        outcomes.append(outcome)

    return BatchResult(outcomes=tuple(outcomes), duration_seconds=time.time() - start_time)


def _restore_one(
    config: Config,
    record: InstalledArtifact,
    installer: Installer,
    echo: Echo,
    dry_run: bool,
    verbose: bool,
) -> ArtifactOutcome:
    if not record.name or os.path.basename(record.name) != record.name:
        message = f"invalid binary name {record.name!r}"
        echo(f"failed to load {record.name}: {message}")
        return ArtifactOutcome(name=record.name, status=STATUS_FAILED, error_message=message)

    binary_path = os.path.join(config.bin_dir, record.name)
    current_version = None
    if os.path.lexists(binary_path):
        try:
            current_version = load_artifact(binary_path).version
        except NotABuildArtifact as e:
            echo(f"failed to load {record.name}: {e}")
            return ArtifactOutcome(name=record.name, status=STATUS_FAILED, error_message=str(e))
    else:
        vlog(f"{record.name}: not installed", verbose)

    if current_version is not None and versions_equal(current_version, record.version):
        echo(f"skip {record.name}")
        return ArtifactOutcome(
            name=record.name,
            status=STATUS_SKIPPED,
            previous_version=current_version,
            target_version=record.version,
        )

    echo(f"installing {record.name} {record.version}")
    if dry_run:
        return ArtifactOutcome(
            name=record.name,
            status=STATUS_PLANNED,
            previous_version=current_version,
            target_version=record.version,
        )

    try:
        installer.install(record.path, record.version)
    except Exception as e:
        echo(f"failed to install {record.name}: {e}")
        return ArtifactOutcome(
            name=record.name,
            status=STATUS_FAILED,
            previous_version=current_version,
            target_version=record.version,
            error_message=str(e) or type(e).__name__,
        )

    return ArtifactOutcome(
        name=record.name,
        status=STATUS_UPGRADED,
        previous_version=current_version,
        target_version=record.version,
    )
