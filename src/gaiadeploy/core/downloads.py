"""
HTTP downloads.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import requests

from .exceptions import DownloadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def download_file(
    url: str,
    dest: Union[str, Path],
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> Path:
    """
    Download url to dest, overwriting any existing file.

    Raises DownloadError on any HTTP or network failure; there is no retry.
    """
    dest = Path(dest)
    http = session or requests
    logger.info(f"Downloading {dest.name} from {url}")
    try:
        with http.get(url, stream=True, timeout=timeout) as resp:
            resp.raise_for_status()
            with open(dest, "wb") as f:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
    except (requests.RequestException, OSError) as e:
        raise DownloadError(f"Failed to download {dest.name}: {e}", url) from e

    logger.debug(f"Saved {url} to {dest}")
    return dest
