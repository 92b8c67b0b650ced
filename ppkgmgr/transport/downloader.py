"""
Handles the low-level downloading of files over HTTP with retry logic.

The engine is strictly sequential, so each call opens its own session and runs
one request to completion through ``asyncio.run``.
"""

import asyncio
import logging
import os
from typing import Optional

import aiofiles
import aiohttp

from ppkgmgr.exceptions import TransportError
from ppkgmgr.models.config import AppConfig

log = logging.getLogger(__name__)


def _remove_partial(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        log.debug(f"Could not remove partial download '{path}': {e}")


class Downloader:
    """A file downloader with retries and exponential backoff."""

    CHUNK_SIZE = 262144  # 256 KB

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.5,
        connect_timeout: float = 15.0,
        read_timeout: float = 90.0,
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.timeout = aiohttp.ClientTimeout(
            total=None, sock_connect=connect_timeout, sock_read=read_timeout
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> "Downloader":
        return cls(
            max_attempts=config.max_attempts,
            base_delay=config.base_delay,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        )

    def _session(self) -> aiohttp.ClientSession:
        # Artifacts are hashed byte for byte, so transfer encodings are not undone.
        return aiohttp.ClientSession(timeout=self.timeout, auto_decompress=False)

    async def _with_retries(self, url: str, operation):
        last_exception: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with self._session() as session:
                    return await operation(session)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Request attempt {attempt}/{self.max_attempts} for '{url}' "
                    f"failed: {e}. Retrying..."
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))
        raise TransportError(f"request {url}: {last_exception}") from last_exception

    async def download_file(self, url: str, destination_path: str) -> int:
        """
        Streams ``url`` into ``destination_path`` and returns the bytes written.

        Parent directories are created as needed. A partial file is removed on
        any failure; a body shorter than the advertised Content-Length is only
        reported.
        """
        parent = os.path.dirname(destination_path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        async def fetch(session: aiohttp.ClientSession) -> int:
            async with session.get(url, allow_redirects=True) as response:
                if response.status != 200:
                    raise TransportError(
                        f"unexpected status: {response.status} {response.reason or ''}".rstrip()
                    )
                written = 0
                async with aiofiles.open(destination_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                        await f.write(chunk)
                        written += len(chunk)

                expected = response.content_length
                if expected is not None and written < expected:
                    log.warning(f"Truncated: {url}")
                return written

        try:
            size = await self._with_retries(url, fetch)
        except BaseException:
            _remove_partial(destination_path)
            raise
        log.info(f"downloaded: {url} => {destination_path}")
        return size

    async def fetch_content(self, url: str) -> bytes:
        """Returns the full body of ``url``."""

        async def fetch(session: aiohttp.ClientSession) -> bytes:
            async with session.get(url, allow_redirects=True) as response:
                if response.status != 200:
                    raise TransportError(
                        f"unexpected status: {response.status} {response.reason or ''}".rstrip()
                    )
                return await response.read()

        return await self._with_retries(url, fetch)

    def download(self, url: str, destination_path: str) -> int:
        """Synchronous entry point matching the pipeline's downloader contract."""
        return asyncio.run(self.download_file(url, destination_path))

    def fetch_bytes(self, url: str) -> bytes:
        return asyncio.run(self.fetch_content(url))

    __call__ = download


def download(url: str, destination_path: str) -> int:
    """Downloads ``url`` to ``destination_path`` with default settings."""
    return Downloader().download(url, destination_path)


def fetch_bytes(url: str) -> bytes:
    """Fetches ``url`` into memory with default settings."""
    return Downloader().fetch_bytes(url)
