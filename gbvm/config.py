"""
Configuration file parsing and management.

Configuration is read from YAML files, merged in priority order
(custom path -> project -> user -> defaults) and finally overlaid with the
Go environment variables (GOPATH, GOBIN, GOPROXY). The result is resolved
once at startup and passed explicitly to the components that need it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping

import yaml

from .common import expand_path, vlog
from .errors import ConfigError


DEFAULT_GOPATH = "~/go"
DEFAULT_GOPROXY = "https://proxy.golang.org"
DEFAULT_GO_BINARY = "go"
DEFAULT_TIMEOUT_SECONDS = 10

# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".gbvm.yml",                                      # Project root (highest priority)
    ".gbvm.yaml",
    os.path.expanduser("~/.config/gbvm/config.yml"),  # User global
    os.path.expanduser("~/.config/gbvm/config.yaml"),
]

# Environment variable -> config field
ENV_OVERRIDES = {
    "GOPATH": "gopath",
    "GOBIN": "gobin",
    "GOPROXY": "goproxy",
    "GBVM_TIMEOUT_SECONDS": "timeout_seconds",
}


def first_gopath(gopath: str) -> str:
    """
    Return the first entry of a GOPATH list, with ``~`` expanded.

    ``go install`` writes to the bin directory of the first GOPATH entry.
    """
    for entry in gopath.split(os.pathsep):
        entry = entry.strip()
        if entry:
            return expand_path(entry)
    return expand_path(DEFAULT_GOPATH)


def resolve_goproxy(value: str) -> str | None:
    """
    Pick the proxy URL to query from a GOPROXY list.

    GOPROXY entries are separated by ``,`` or ``|``. The keywords ``direct``
    and ``off`` name no HTTP endpoint and are skipped.

    Args:
        value: Raw GOPROXY value

    Returns:
        First http(s) entry without trailing slash, or None if there is none
    """
    for entry in value.replace("|", ",").split(","):
        entry = entry.strip()
        if entry.startswith(("http://", "https://")):
            return entry.rstrip("/")
    return None


@dataclass(frozen=True)
class Config:
    """
    Complete gbvm configuration.

    Attributes:
        gopath: GOPATH value; may be a list, the first entry is used
        gobin: Explicit bin directory, overrides ``<gopath>/bin``
        goproxy: Base URL of the module proxy
        go_binary: Go executable used for installs
        timeout_seconds: Timeout for proxy requests
        skip_dev: Exclude ``(devel)`` binaries from bulk upgrades by default
        source: Path of the configuration file that was loaded
    """
    gopath: str = DEFAULT_GOPATH
    gobin: str | None = None
    goproxy: str = DEFAULT_GOPROXY
    go_binary: str = DEFAULT_GO_BINARY
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    skip_dev: bool = False
    source: str = ""

    def __post_init__(self):
        """Validate config after initialization."""
        if not self.gopath:
            raise ValueError("Invalid gopath: must not be empty")

        if not self.goproxy.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid goproxy: {self.goproxy}. "
                "Must be an http:// or https:// URL"
            )

        if not self.go_binary:
            raise ValueError("Invalid go_binary: must not be empty")

        if isinstance(self.timeout_seconds, bool) or not isinstance(self.timeout_seconds, int):
            raise ValueError(f"Invalid timeout_seconds: {self.timeout_seconds!r}. Must be an integer")
        if self.timeout_seconds < 1 or self.timeout_seconds > 120:
            raise ValueError(
                f"Invalid timeout_seconds: {self.timeout_seconds}. "
                "Must be between 1 and 120"
            )

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        goproxy = data.get("goproxy") or DEFAULT_GOPROXY
        return Config(
            gopath=str(data.get("gopath") or DEFAULT_GOPATH),
            gobin=data.get("gobin") or None,
            goproxy=resolve_goproxy(goproxy) or goproxy,
            go_binary=data.get("go_binary") or DEFAULT_GO_BINARY,
            timeout_seconds=data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
            skip_dev=bool(data.get("skip_dev", False)),
            source=source,
        )

    @property
    def bin_dir(self) -> str:
        """Directory holding installed binaries (GOBIN or <GOPATH>/bin)."""
        if self.gobin:
            return expand_path(self.gobin)
        return os.path.join(first_gopath(self.gopath), "bin")

    @property
    def registry_base(self) -> str:
        """Module proxy base URL without trailing slash."""
        return self.goproxy.rstrip("/")

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        return Config(
            gopath=self.gopath if self.gopath != DEFAULT_GOPATH else other.gopath,
            gobin=self.gobin or other.gobin,
            goproxy=self.goproxy if self.goproxy != DEFAULT_GOPROXY else other.goproxy,
            go_binary=self.go_binary if self.go_binary != DEFAULT_GO_BINARY else other.go_binary,
            timeout_seconds=(
                self.timeout_seconds
                if self.timeout_seconds != DEFAULT_TIMEOUT_SECONDS
                else other.timeout_seconds
            ),
            skip_dev=self.skip_dev or other.skip_dev,
            source=self.source or other.source,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load a YAML configuration file.

    Returns:
        Parsed dictionary (empty for an empty file), or None if unreadable
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return None
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to configuration file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    data = _load_yaml(file_path)
    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None

    vlog(f"Loaded config successfully: {file_path}", verbose)
    return config


def apply_environment(config: Config, environ: Mapping[str, str] | None = None) -> Config:
    """
    Overlay Go environment variables onto a config.

    Empty variables are ignored, matching how the go command treats them.

    Raises:
        ConfigError: If an override produces an invalid configuration
    """
    if environ is None:
        environ = os.environ

    overrides: dict[str, Any] = {}
    for var, field_name in ENV_OVERRIDES.items():
        value = environ.get(var, "").strip()
        if not value:
            continue
        if field_name == "goproxy":
            proxy = resolve_goproxy(value)
            if proxy is None:
                continue
            overrides[field_name] = proxy
        elif field_name == "timeout_seconds":
            try:
                overrides[field_name] = int(value)
            except ValueError:
                raise ConfigError(f"Invalid {var}: {value!r} is not an integer") from None
        else:
            overrides[field_name] = value

    if not overrides:
        return config

    try:
        return replace(config, **overrides)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def load_config(
    custom_path: str | None = None,
    environ: Mapping[str, str] | None = None,
    verbose: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Environment variables (GOPATH, GOBIN, GOPROXY, GBVM_TIMEOUT_SECONDS)
    2. Custom path (if provided)
    3. Project .gbvm.yml
    4. User ~/.config/gbvm/config.yml
    5. Default configuration

    Args:
        custom_path: Optional path to custom configuration file
        environ: Environment mapping (defaults to os.environ)
        verbose: Enable verbose logging

    Returns:
        Merged Config object

    Raises:
        ConfigError: If custom_path cannot be loaded or an override is invalid
    """
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ConfigError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)
            vlog(f"Found config at: {location}", verbose)

    if configs:
        merged = configs[0]
        for config in configs[1:]:
            merged = merged.merge_with(config)
        vlog(f"Merged {len(configs)} config files", verbose)
    else:
        vlog("No config files found, using defaults", verbose)
        merged = Config()

    return apply_environment(merged, environ)
