"""
gbvm - Go binary version manager.

Core Modules:
- Inventory: build-info extraction and bin directory scans
- Versions: ordering of Go module versions and pseudo-versions
- Registry: latest-version lookups against the module proxy
- Upgrade: per-binary upgrade decisions with failure isolation
- Manifest: export and exact-version restore of the inventory
"""

__version__ = "0.3.0"

VERSION = __version__

from .errors import (
    GbvmError,
    ConfigError,
    NotABuildArtifact,
    ArtifactNotFound,
    InventoryUnreadable,
    RegistryError,
    RegistryUnavailable,
    RegistryStatusError,
    RegistryMalformedResponse,
    InstallFailed,
    ManifestError,
    ManifestUnreadable,
    ManifestMalformed,
)
from .config import Config, load_config, load_config_file
from .buildinfo import BuildInfo, read_build_info
from .inventory import InstalledArtifact, load_artifact, scan_artifacts, find_artifact
from .versions import DEVEL_VERSION, compare_versions, is_devel, is_pseudo_version
from .registry import Registry, ProxyRegistry
from .installer import Installer, InstallResult, GoInstaller
from .upgrade import (
    DecisionKind,
    UpgradeDecision,
    ArtifactOutcome,
    BatchResult,
    decide_upgrade,
    upgrade_artifact,
    upgrade_all,
    upgrade_named,
)
from .manifest import (
    dumps_manifest,
    loads_manifest,
    read_manifest,
    write_manifest,
    export_manifest,
    restore_manifest,
)
from .logging_config import setup_logging, get_logger

__all__ = [
    "__version__",
    "VERSION",
    # Errors
    "GbvmError",
    "ConfigError",
    "NotABuildArtifact",
    "ArtifactNotFound",
    "InventoryUnreadable",
    "RegistryError",
    "RegistryUnavailable",
    "RegistryStatusError",
    "RegistryMalformedResponse",
    "InstallFailed",
    "ManifestError",
    "ManifestUnreadable",
    "ManifestMalformed",
    # Configuration
    "Config",
    "load_config",
    "load_config_file",
    # Inventory
    "BuildInfo",
    "read_build_info",
    "InstalledArtifact",
    "load_artifact",
    "scan_artifacts",
    "find_artifact",
    # Versions
    "DEVEL_VERSION",
    "compare_versions",
    "is_devel",
    "is_pseudo_version",
    # Registry and installer
    "Registry",
    "ProxyRegistry",
    "Installer",
    "InstallResult",
    "GoInstaller",
    # Upgrade
    "DecisionKind",
    "UpgradeDecision",
    "ArtifactOutcome",
    "BatchResult",
    "decide_upgrade",
    "upgrade_artifact",
    "upgrade_all",
    "upgrade_named",
    # Manifest
    "dumps_manifest",
    "loads_manifest",
    "read_manifest",
    "write_manifest",
    "export_manifest",
    "restore_manifest",
    # Logging
    "setup_logging",
    "get_logger",
]
