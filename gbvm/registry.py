"""
Latest-version lookups against a Go module proxy.

Implements the ``GET <proxy>/<module>/@latest`` endpoint of the module proxy
protocol, which answers with ``{"Version": "...", "Time": "..."}``.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from typing import Protocol

from . import __version__
from .errors import RegistryMalformedResponse, RegistryStatusError, RegistryUnavailable

logger = logging.getLogger(__name__)

USER_AGENT = f"gbvm/{__version__}"


class Registry(Protocol):
    """Anything that can report the latest published version of a module."""

    def fetch_latest(self, module: str) -> str:
        ...


def latest_url(base_url: str, module: str) -> str:
    """Build the ``@latest`` URL for a module (lowercased)."""
    return f"{base_url.rstrip('/')}/{module.lower()}/@latest"


def parse_latest(body: bytes, url: str) -> str:
    """
    Extract the version from an ``@latest`` response body.

    Raises:
        RegistryMalformedResponse: If the body is not a JSON object with a
            non-empty string ``Version``
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise RegistryMalformedResponse(f"invalid JSON from {url}: {e}") from e

    if not isinstance(data, dict):
        raise RegistryMalformedResponse(f"unexpected response from {url}: not a JSON object")

    version = data.get("Version")
    if not isinstance(version, str) or not version:
        raise RegistryMalformedResponse(f"unexpected response from {url}: missing Version")
    return version


class ProxyRegistry:
    """
    Module proxy client.

    No retries are attempted; a failed lookup is reported once.
    """

    def __init__(self, base_url: str, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def fetch_latest(self, module: str) -> str:
        """
        Fetch the latest published version of a module.

        Args:
            module: Module path (case is ignored)

        Returns:
            Version string, e.g. "v0.14.2"

        Raises:
            RegistryUnavailable: On transport failure or timeout
            RegistryStatusError: On a non-200 response
            RegistryMalformedResponse: On an unexpected body
        """
        url = latest_url(self.base_url, module)
        logger.debug(f"GET {url}")

        try:
            req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                status = response.status
                if status != 200:
                    raise RegistryStatusError(url, status, response.reason or "")
                body = response.read()
        except urllib.error.HTTPError as e:
            raise RegistryStatusError(url, e.code, str(e.reason or "")) from e
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            # ValueError covers malformed URLs rejected by urlopen
            raise RegistryUnavailable(f"failed to fetch {url}: {e}") from e

        return parse_latest(body, url)
