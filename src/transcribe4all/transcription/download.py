"""HTTP download of source audio files."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_USER_AGENT = "transcribe4all/1.0"


class DownloadError(RuntimeError):
    """Audio file could not be downloaded."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Failed to download {url}: {message}")
        self.url = url


def file_name_from_url(url: str) -> str:
    """Return the last path segment of ``url``.

    The name ends up in file paths and mail subjects, so decoded control
    characters such as ``%0D%0A`` are rejected.
    """

    name = PurePosixPath(unquote(urlparse(url).path)).name
    if not name:
        raise ValueError(f"URL has no file name: {url!r}")
    if any(ord(char) < 32 or ord(char) == 127 for char in name):
        raise ValueError(f"URL file name contains control characters: {url!r}")
    return name


class AudioDownloader:
    """HTTP client wrapper that streams remote files to disk."""

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers={"User-Agent": user_agent},
            transport=transport or httpx.HTTPTransport(retries=max_retries),
            follow_redirects=True,
        )

    def download(self, url: str, dest_dir: Path) -> Path:
        """Download ``url`` into ``dest_dir`` and return the local path."""

        dest_dir.mkdir(parents=True, exist_ok=True)
        destination = dest_dir / file_name_from_url(url)
        try:
            with self._client.stream("GET", url) as response:
                if not response.is_success:
                    raise DownloadError(url, f"HTTP {response.status_code}")
                with destination.open("wb") as handle:
                    for chunk in response.iter_bytes():
                        handle.write(chunk)
        except httpx.TimeoutException as error:
            destination.unlink(missing_ok=True)
            raise DownloadError(url, "timeout") from error
        except httpx.HTTPError as error:
            destination.unlink(missing_ok=True)
            raise DownloadError(url, str(error)) from error
        except DownloadError:
            destination.unlink(missing_ok=True)
            raise

        logger.info("Downloaded %s to %s", url, destination)
        return destination

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> AudioDownloader:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
