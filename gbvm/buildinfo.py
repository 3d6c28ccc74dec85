"""
Read the build information the Go linker embeds in executables.

Since Go 1.18 the ``.go.buildinfo`` blob stores its strings inline: a
32-byte header starting with ``\\xff Go buildinf:``, then two
uvarint-length-prefixed strings, the toolchain version and the module
information text. The module text is the ``go version -m`` listing::

    path    golang.org/x/tools/gopls
    mod     golang.org/x/tools/gopls    v0.14.2    h1:...
    dep     ...
    build   ...

Older binaries store pointers into the data segment instead; those are
reported as unsupported rather than decoded.
"""

from __future__ import annotations

import logging
import mmap
import os
from dataclasses import dataclass

from .errors import NotABuildArtifact

logger = logging.getLogger(__name__)

BUILDINFO_MAGIC = b"\xff Go buildinf:"
BUILDINFO_HEADER_SIZE = 32
BUILDINFO_ALIGN = 16

FLAG_VERSION_INLINE = 0x2

# cmd/go wraps the module text in 16 sentinel bytes on each side
MODINFO_SENTINEL_SIZE = 16

EXECUTABLE_MAGICS = (
    b"\x7fELF",
    b"\xfe\xed\xfa\xce",  # Mach-O 32-bit
    b"\xce\xfa\xed\xfe",
    b"\xfe\xed\xfa\xcf",  # Mach-O 64-bit
    b"\xcf\xfa\xed\xfe",
    b"\xca\xfe\xba\xbe",  # Mach-O universal
    b"MZ",                # PE
)


@dataclass(frozen=True)
class BuildInfo:
    """
    Build metadata of one Go executable.

    Attributes:
        go_version: Toolchain that built the binary (e.g. "go1.22.3")
        path: Command path of the main package
        module: Path of the main module
        version: Main module version, "(devel)" for working-tree builds
        sum: Main module checksum, empty when unknown
    """
    go_version: str
    path: str
    module: str
    version: str
    sum: str = ""


def _read_uvarint(data: bytes, offset: int) -> tuple[int, int]:
    result = 0
    shift = 0
    for i in range(offset, min(len(data), offset + 10)):
        byte = data[i]
        result |= (byte & 0x7F) << shift
        if byte < 0x80:
            return result, i + 1
        shift += 7
    raise ValueError("truncated varint")


def _read_bytes(data: bytes, offset: int) -> tuple[bytes, int]:
    length, start = _read_uvarint(data, offset)
    end = start + length
    if end > len(data):
        raise ValueError("string runs past end of file")
    return bytes(data[start:end]), end


def _strip_sentinels(modinfo: bytes) -> str:
    if len(modinfo) >= 2 * MODINFO_SENTINEL_SIZE + 1 and modinfo[-MODINFO_SENTINEL_SIZE - 1] == 0x0A:
        return modinfo[MODINFO_SENTINEL_SIZE:-MODINFO_SENTINEL_SIZE].decode("utf-8", errors="replace")
    return ""


def parse_modinfo(text: str) -> tuple[str, str, str, str]:
    """
    Parse module information text.

    Args:
        text: ``go version -m`` style listing

    Returns:
        (path, module, version, sum); missing values are empty strings
    """
    path = module = version = checksum = ""
    for line in text.splitlines():
        fields = line.split("\t")
        if fields[0] == "path" and len(fields) >= 2:
            path = fields[1]
        elif fields[0] == "mod" and len(fields) >= 3:
            module = fields[1]
            version = fields[2]
            checksum = fields[3] if len(fields) >= 4 else ""
    return path, module, version, checksum


def _decode_at(data, offset: int) -> BuildInfo:
    """Decode the blob at ``offset``; ValueError if it is not a usable one."""
    header = data[offset:offset + BUILDINFO_HEADER_SIZE]
    if len(header) < BUILDINFO_HEADER_SIZE:
        raise ValueError("truncated build info header")

    ptr_size = header[14]
    flags = header[15]
    if ptr_size not in (4, 8):
        raise ValueError(f"invalid pointer size {ptr_size}")
    if not flags & FLAG_VERSION_INLINE:
        raise ValueError("build info predates Go 1.18 and is not supported")

    raw_version, pos = _read_bytes(data, offset + BUILDINFO_HEADER_SIZE)
    modinfo, _ = _read_bytes(data, pos)
    go_version = raw_version.decode("utf-8", errors="replace")
    if not go_version:
        raise ValueError("empty toolchain version")

    path, module, version, checksum = parse_modinfo(_strip_sentinels(modinfo))
    if not module or not version:
        raise ValueError("no module information")

    return BuildInfo(
        go_version=go_version,
        path=path or module,
        module=module,
        version=version,
        sum=checksum,
    )


def _scan(data, path: str) -> BuildInfo:
    if not bytes(data[:4]).startswith(EXECUTABLE_MAGICS):
        raise NotABuildArtifact(path, "unrecognized executable format")

    reason = "no Go build information"
    start = 0
    while True:
        offset = data.find(BUILDINFO_MAGIC, start)
        if offset < 0:
            raise NotABuildArtifact(path, reason)
        start = offset + 1
        if offset % BUILDINFO_ALIGN:
            continue
        try:
            return _decode_at(data, offset)
        except ValueError as e:
            # the magic string also occurs as a literal in binaries that
            # link debug/buildinfo; keep looking for the real blob
            logger.debug(f"{path}: candidate at {offset:#x} rejected: {e}")
            reason = str(e)


def read_build_info(path: str) -> BuildInfo:
    """
    Read embedded build information from an executable.

    Args:
        path: Filesystem path of the executable

    Returns:
        BuildInfo for the binary

    Raises:
        NotABuildArtifact: If the file is unreadable, not an executable, or
            carries no usable Go build information
    """
    try:
        with open(path, "rb") as f:
            size = os.fstat(f.fileno()).st_size
            if size < BUILDINFO_HEADER_SIZE:
                raise NotABuildArtifact(path, "unrecognized executable format")
            with mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) as data:
                return _scan(data, path)
    except OSError as e:
        raise NotABuildArtifact(path, f"cannot read file: {e}") from e
