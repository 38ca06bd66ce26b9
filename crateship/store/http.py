"""Anonymous HTTP release store (small, dependency-free).

Assets are fetched from a predictable URL pattern:

    {uri_prefix}{tag}/{file_name}

e.g. https://github.com/owner/repo/releases/download/v1.2.0/x86_64-unknown-linux-gnu_libfoo.so

The store is read-only: it cannot list a release or upload to it.
"""

from __future__ import annotations

import logging
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from ..errors import StoreError, TransientStoreError
from ..retry import DOWNLOAD_RETRY, RetryPolicy

logger = logging.getLogger(__name__)


class HttpReleaseStore:
    """Read-only store over plain HTTP GET."""

    writable = False

    def __init__(
        self,
        uri_prefix: str,
        *,
        timeout_s: float = 60.0,
        retry: RetryPolicy = DOWNLOAD_RETRY,
    ) -> None:
        self.uri_prefix = uri_prefix
        self.timeout_s = timeout_s
        self.retry = retry

    def describe(self) -> str:
        return self.uri_prefix

    def url_for(self, tag: str, name: str) -> str:
        return f"{self.uri_prefix}{quote(tag)}/{quote(name)}"

    def _get_once(self, url: str) -> bytes | None:
        req = Request(url, method="GET", headers={"Accept": "application/octet-stream"})
        try:
            with urlopen(req, timeout=self.timeout_s) as resp:
                return resp.read()
        except HTTPError as e:
            if e.code == 404:
                return None
            raise StoreError(f"Failed to download {url}: status {e.code}") from e
        except URLError as e:
            if isinstance(e.reason, ConnectionResetError):
                raise TransientStoreError(f"Connection reset while downloading {url}") from e
            raise StoreError(f"Failed to download {url}: {e.reason}") from e
        except ConnectionResetError as e:
            raise TransientStoreError(f"Connection reset while downloading {url}") from e
        except (OSError, HTTPException) as e:
            # Timeouts and truncated bodies surface unwrapped from the socket read.
            raise StoreError(f"Failed to download {url}: {e!r}") from e

    def get_asset(self, tag: str, name: str) -> bytes | None:
        url = self.url_for(tag, name)
        logger.debug("Downloading %s", url)
        return self.retry.call(lambda: self._get_once(url), describe=f"Download of {url}")

    def exists(self, tag: str) -> bool:
        raise StoreError(f"Anonymous store {self.uri_prefix} cannot check releases; configure a repository")

    def list_assets(self, tag: str) -> list[str]:
        raise StoreError(f"Anonymous store {self.uri_prefix} cannot list release assets; configure a repository")

    def upload_asset(self, tag: str, name: str, data: bytes) -> None:
        raise StoreError(f"Anonymous store {self.uri_prefix} is read-only; configure a repository to upload")
