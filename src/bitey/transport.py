"""
HTTP transport shared by every remote operation

One client (one session, one certificate policy) is used for all requests of
a single install/update operation.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import requests

from .errors import ArchiveDownloadError, RemoteUnreachableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = (10.0, 60.0)
CHUNK_SIZE = 8192


class HttpClient:
    """Thin wrapper over requests.Session with Bitey error translation"""

    def __init__(
        self,
        insecure: bool = False,
        timeout: Union[float, Tuple[float, float]] = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        self.insecure = insecure
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.verify = not insecure
        self.session.headers["User-Agent"] = "bitey"
        if insecure:
            logger.warning("Certificate validation is disabled for this operation")

    def get_text(self, url: str, what: str = "document") -> str:
        """GET a URL and return its body as text"""
        logger.debug("GET %s (%s)", url, what)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise RemoteUnreachableError(url, what, f"HTTP {status}", status_code=status) from e
        except requests.RequestException as e:
            raise RemoteUnreachableError(url, what, str(e)) from e
        return response.text

    def download(self, url: str, dest: Path) -> Path:
        """Stream a URL to a file"""
        logger.debug("Downloading %s -> %s", url, dest)
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with open(dest, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        f.write(chunk)
        except requests.RequestException as e:
            raise ArchiveDownloadError(url, str(e)) from e
        except OSError as e:
            raise ArchiveDownloadError(url, f"cannot write {dest}: {e}") from e
        return dest

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'HttpClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
