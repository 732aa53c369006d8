"""Streaming file downloads."""

import logging
from pathlib import Path

import httpx

from .errors import TransferHTTPError, TransferIOError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024


def download(
    url: str,
    destination: str | Path,
    *,
    client: httpx.Client | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """
    Stream a remote resource to a local file.

    The body is written chunk by chunk and never held in memory as a whole.
    The destination is created or truncated, and only opened once the
    response status is known to be a success.

    Args:
        url: Resource to fetch with GET
        destination: Local file path
        client: HTTP client to use; a temporary one is created when omitted
        chunk_size: Bytes per write

    Returns:
        Number of bytes written

    Raises:
        TransferHTTPError: On a non-success status or a transport failure
        TransferIOError: If the destination cannot be written
    """
    owns_client = client is None
    http = client or httpx.Client(follow_redirects=True, timeout=httpx.Timeout(None))
    path = Path(destination)
    written = 0

    try:
        with http.stream("GET", url) as response:
            if not response.is_success:
                raise TransferHTTPError(
                    f"Failed to fetch file: HTTP {response.status_code}",
                    url,
                    response.status_code,
                )

            try:
                with path.open("wb") as file:
                    for chunk in response.iter_bytes(chunk_size):
                        file.write(chunk)
                        written += len(chunk)
            except OSError as e:
                raise TransferIOError(f"Failed to write {path}: {e}", str(path)) from e

    except httpx.HTTPError as e:
        raise TransferHTTPError(f"Failed to fetch file: {e}", url) from e
    finally:
        if owns_client:
            http.close()

    logger.debug(f"Wrote {written} bytes from {url} to {path}")
    return written
