"""
Shared fixtures: synthetic Go binaries, a fake module proxy and a recording
installer.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from gbvm.config import Config
from gbvm.errors import InstallFailed, RegistryUnavailable
from gbvm.installer import InstallResult, install_directive

BUILDINFO_MAGIC = b"\xff Go buildinf:"

# Sentinels cmd/go places around the module information
MODINFO_START = bytes.fromhex("3077af0c9274080241e1c107e6d618e6")
MODINFO_END = bytes.fromhex("f932433186182072008242104116d8f2")

ELF_HEADER = b"\x7fELF\x02\x01\x01" + b"\x00" * 57


def uvarint(value: int) -> bytes:
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def buildinfo_blob(
    module: str,
    version: str,
    command_path: str | None = None,
    go_version: str = "go1.22.3",
    ptr_size: int = 8,
    flags: int = 0x2,
) -> bytes:
    """Build a 16-byte aligned ``.go.buildinfo`` blob."""
    text = f"path\t{command_path or module}\nmod\t{module}\t{version}\th1:abc=\n"
    text += "dep\tgolang.org/x/mod\tv0.14.0\th1:def=\nbuild\t-compiler=gc\n"
    modinfo = MODINFO_START + text.encode() + MODINFO_END
    header = BUILDINFO_MAGIC + bytes([ptr_size, flags]) + b"\x00" * 16
    blob = header + uvarint(len(go_version)) + go_version.encode() + uvarint(len(modinfo)) + modinfo
    return blob + b"\x00" * (-len(blob) % 16)


def write_go_binary(
    path: Path,
    module: str,
    version: str,
    command_path: str | None = None,
    go_version: str = "go1.22.3",
    decoy: bool = False,
) -> Path:
    """
    Write a minimal ELF file carrying Go build information.

    With ``decoy`` set, an aligned copy of the magic with a legacy header is
    placed before the real blob, as happens in binaries that link
    debug/buildinfo.
    """
    data = ELF_HEADER
    if decoy:
        data += BUILDINFO_MAGIC + bytes([8, 0]) + b"\x00" * 16
    data += buildinfo_blob(module, version, command_path, go_version)
    data += b"\x00" * 64
    path.write_bytes(data)
    path.chmod(0o755)
    return path


class FakeRegistry:
    """Module proxy stand-in: module -> version string or exception."""

    def __init__(self, versions: dict | None = None):
        self.versions = dict(versions or {})
        self.calls: list[str] = []

    def fetch_latest(self, module: str) -> str:
        self.calls.append(module)
        result = self.versions.get(module.lower())
        if result is None:
            raise RegistryUnavailable(f"no route to proxy for {module}")
        if isinstance(result, Exception):
            raise result
        return result


class RecordingInstaller:
    """Installer stand-in that records (command_path, version) pairs."""

    def __init__(self, fail: set[str] | None = None):
        self.fail = set(fail or ())
        self.calls: list[tuple[str, str]] = []

    def install(self, command_path: str, version: str) -> InstallResult:
        self.calls.append((command_path, version))
        directive = install_directive(command_path, version)
        if command_path in self.fail:
            raise InstallFailed(directive, 1, "build failed")
        return InstallResult(directive=directive, success=True, exit_code=0)


@pytest.fixture
def bin_dir(tmp_path):
    directory = tmp_path / "bin"
    directory.mkdir()
    return directory


@pytest.fixture
def config(bin_dir):
    return Config(gobin=str(bin_dir))


@pytest.fixture
def installer():
    return RecordingInstaller()


@pytest.fixture
def echo_lines():
    return []


@pytest.fixture
def echo(echo_lines):
    return echo_lines.append
