"""
Upgrade orchestration for installed Go binaries.

For each binary: fetch the latest version of its module from the proxy,
compare it with the embedded version, and reinstall when the binary is
older. Bulk runs isolate failures so one broken module never stops the
rest of the batch; everything runs sequentially in inventory order.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from .common import vlog
from .config import Config
from .installer import Installer
from .inventory import InstalledArtifact, find_artifact, scan_artifacts
from .registry import Registry
from .versions import compare_versions, is_devel

Echo = Callable[[str], None]

STATUS_UPGRADED = "upgraded"
STATUS_PLANNED = "planned"
STATUS_UP_TO_DATE = "up_to_date"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


class DecisionKind(Enum):
    UP_TO_DATE = "up_to_date"
    UPGRADE = "upgrade"
    SKIPPED_DEVEL = "skipped_devel"


@dataclass(frozen=True)
class UpgradeDecision:
    """
    Outcome of comparing an installed version with the latest one.

    Attributes:
        kind: What to do with the binary
        current: Installed version
        latest: Latest published version (None when not fetched)
    """
    kind: DecisionKind
    current: str
    latest: str | None = None

    @property
    def target(self) -> str | None:
        """Version to install, if any."""
        return self.latest if self.kind is DecisionKind.UPGRADE else None


@dataclass(frozen=True)
class ArtifactOutcome:
    """
    Result of processing one binary in an upgrade or restore pass.

    Attributes:
        name: Binary name
        status: One of upgraded, planned, up_to_date, skipped, failed
        previous_version: Version found on disk (None if unreadable)
        target_version: Version installed or requested
        error_message: Human-readable error message if failed
    """
    name: str
    status: str
    previous_version: str | None = None
    target_version: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "status": self.status,
            "previous_version": self.previous_version,
            "target_version": self.target_version,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class BatchResult:
    """
    Result of an upgrade or restore pass.

    Attributes:
        outcomes: Per-binary outcomes in processing order
        duration_seconds: Total execution time
    """
    outcomes: tuple[ArtifactOutcome, ...]
    duration_seconds: float = 0.0

    def _with_status(self, status: str) -> tuple[ArtifactOutcome, ...]:
        return tuple(o for o in self.outcomes if o.status == status)

    @property
    def upgraded(self) -> tuple[ArtifactOutcome, ...]:
        return self._with_status(STATUS_UPGRADED)

    @property
    def planned(self) -> tuple[ArtifactOutcome, ...]:
        return self._with_status(STATUS_PLANNED)

    @property
    def up_to_date(self) -> tuple[ArtifactOutcome, ...]:
        return self._with_status(STATUS_UP_TO_DATE)

    @property
    def skipped(self) -> tuple[ArtifactOutcome, ...]:
        return self._with_status(STATUS_SKIPPED)

    @property
    def failures(self) -> tuple[ArtifactOutcome, ...]:
        return self._with_status(STATUS_FAILED)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "outcomes": [o.to_dict() for o in self.outcomes],
            "duration_seconds": self.duration_seconds,
        }

    def summary(self) -> str:
        """Human-readable summary."""
        parts = [f"{len(self.upgraded)} upgraded"]
        if self.planned:
            parts.append(f"{len(self.planned)} planned")
        parts.append(f"{len(self.up_to_date)} up to date")
        parts.append(f"{len(self.skipped)} skipped")
        parts.append(f"{len(self.failures)} failed")
        return ", ".join(parts) + f" ({self.duration_seconds:.1f}s)"


def decide_upgrade(current: str, latest: str, skip_dev: bool = False) -> UpgradeDecision:
    """
    Decide whether a binary needs reinstalling.

    Uses version ordering rather than string equality, so ``v1.2`` and
    ``v1.2.0`` count as the same release. A ``(devel)`` build sorts below
    every release and is therefore always upgraded unless skip_dev is set.
    """
    if skip_dev and is_devel(current):
        return UpgradeDecision(DecisionKind.SKIPPED_DEVEL, current, latest)
    if compare_versions(current, latest) < 0:
        return UpgradeDecision(DecisionKind.UPGRADE, current, latest)
    return UpgradeDecision(DecisionKind.UP_TO_DATE, current, latest)


def check_and_upgrade(
    artifact: InstalledArtifact,
    registry: Registry,
    installer: Installer,
    echo: Echo = print,
    dry_run: bool = False,
    verbose: bool = False,
) -> ArtifactOutcome:
    """
    Upgrade one binary if its module has a newer version.

    Args:
        artifact: Installed binary
        registry: Latest-version source
        installer: Performs the reinstall
        echo: Receives progress lines
        dry_run: Report the upgrade without installing
        verbose: Enable verbose logging

    Returns:
        ArtifactOutcome with status upgraded, planned or up_to_date

    Raises:
        RegistryError: If the latest version cannot be fetched
        InstallFailed: If the reinstall fails
    """
    latest = registry.fetch_latest(artifact.module)
    decision = decide_upgrade(artifact.version, latest)

    if decision.kind is DecisionKind.UP_TO_DATE:
        vlog(f"{artifact.name}: up-to-date at {artifact.version} (latest {latest})", verbose)
        return ArtifactOutcome(
            name=artifact.name,
            status=STATUS_UP_TO_DATE,
            previous_version=artifact.version,
            target_version=latest,
        )

    target = decision.target
    echo(f"upgrading {artifact.name} from {artifact.version} to {target}")
    if dry_run:
        return ArtifactOutcome(
            name=artifact.name,
            status=STATUS_PLANNED,
            previous_version=artifact.version,
            target_version=target,
        )

    installer.install(artifact.path, target)
    return ArtifactOutcome(
        name=artifact.name,
        status=STATUS_UPGRADED,
        previous_version=artifact.version,
        target_version=target,
    )


def upgrade_artifact(
    artifact: InstalledArtifact,
    registry: Registry,
    installer: Installer,
    echo: Echo = print,
    dry_run: bool = False,
    verbose: bool = False,
) -> ArtifactOutcome:
    """
    Like :func:`check_and_upgrade`, but any failure becomes a failed outcome.
    """
    try:
        return check_and_upgrade(artifact, registry, installer, echo, dry_run, verbose)
    except Exception as e:
        return ArtifactOutcome(
            name=artifact.name,
            status=STATUS_FAILED,
            previous_version=artifact.version,
            error_message=str(e) or type(e).__name__,
        )


def upgrade_all(
    config: Config,
    registry: Registry,
    installer: Installer,
    skip_dev: bool | None = None,
    echo: Echo = print,
    dry_run: bool = False,
    verbose: bool = False,
) -> BatchResult:
    """
    Upgrade every Go binary in the bin directory.

    Args:
        config: Resolved configuration
        registry: Latest-version source
        installer: Performs reinstalls
        skip_dev: Leave ``(devel)`` binaries alone (defaults to config.skip_dev)
        echo: Receives progress and failure lines
        dry_run: Report upgrades without installing
        verbose: Enable verbose logging

    Returns:
        BatchResult with one outcome per binary

    Raises:
        InventoryUnreadable: If the bin directory cannot be listed
    """
    if skip_dev is None:
        skip_dev = config.skip_dev

    start_time = time.time()
    artifacts = scan_artifacts(config.bin_dir)
    vlog(f"Checking {len(artifacts)} binaries in {config.bin_dir}", verbose)

    outcomes: list[ArtifactOutcome] = []
    for artifact in artifacts:
        if skip_dev and is_devel(artifact.version):
            vlog(f"{artifact.name}: skipping development build", verbose)
            outcomes.append(ArtifactOutcome(
                name=artifact.name,
                status=STATUS_SKIPPED,
                previous_version=artifact.version,
            ))
            continue

        outcome = upgrade_artifact(artifact, registry, installer, echo, dry_run, verbose)
        if outcome.status == STATUS_FAILED:
            echo(f"failed to upgrade {artifact.name}: {outcome.error_message}")
        outcomes.append(outcome)

    return BatchResult(outcomes=tuple(outcomes), duration_seconds=time.time() - start_time)


def upgrade_named(
    config: Config,
    names: Sequence[str],
    registry: Registry,
    installer: Installer,
    echo: Echo = print,
    dry_run: bool = False,
    verbose: bool = False,
) -> BatchResult:
    """
    Upgrade specific binaries by file name.

    The first failure aborts the invocation: a named binary that is missing,
    unreadable, or cannot be upgraded raises to the caller.

    Raises:
        ArtifactNotFound: If a named binary does not exist
        NotABuildArtifact: If a named file is not a Go binary
        RegistryError: If the latest version cannot be fetched
        InstallFailed: If the reinstall fails
    """
    start_time = time.time()
    outcomes: list[ArtifactOutcome] = []
    for name in names:
        echo(f"upgrading {name}")
        artifact = find_artifact(config.bin_dir, name)
        outcomes.append(check_and_upgrade(artifact, registry, installer, echo, dry_run, verbose))

    return BatchResult(outcomes=tuple(outcomes), duration_seconds=time.time() - start_time)
