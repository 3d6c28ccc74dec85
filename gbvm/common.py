"""
Small helpers shared across gbvm modules.
"""

from __future__ import annotations

import os


def debug_enabled() -> bool:
    """True when ``GBVM_DEBUG=1`` is set in the environment."""
    return os.environ.get("GBVM_DEBUG", "0") == "1"


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log a verbose message through the ``gbvm`` logger.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or debug_enabled():
        from .logging_config import get_logger
        get_logger().info(msg)


def expand_path(path: str) -> str:
    """Expand ``~`` and environment variables in a configured path."""
    return os.path.expandvars(os.path.expanduser(path))
