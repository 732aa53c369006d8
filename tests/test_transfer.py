import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest

from mapant_worker.errors import TransferHTTPError, TransferIOError
from mapant_worker.transfer import download

TILE_URL = "https://example.com/tiles/42_7.bin"


def mock_client(response: httpx.Response) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(lambda request: response))


@pytest.fixture
def opened_files(monkeypatch: pytest.MonkeyPatch) -> list[Any]:
    """Record every file opened through Path.open."""
    files: list[Any] = []
    real_open = Path.open

    def tracking_open(self: Path, *args: Any, **kwargs: Any) -> Any:
        handle = real_open(self, *args, **kwargs)
        files.append(handle)
        return handle

    monkeypatch.setattr(Path, "open", tracking_open)
    return files


def test_download_writes_identical_bytes(tmp_path: Path, opened_files: list[Any]) -> None:
    payload = os.urandom(3 * 1024 + 17)
    destination = tmp_path / "42_7.bin"

    written = download(TILE_URL, destination, client=mock_client(httpx.Response(200, content=payload)), chunk_size=1024)

    assert written == len(payload)
    assert destination.read_bytes() == payload
    assert all(handle.closed for handle in opened_files)


def test_download_truncates_existing_file(tmp_path: Path) -> None:
    destination = tmp_path / "tile.bin"
    destination.write_bytes(b"x" * 100)

    download(TILE_URL, destination, client=mock_client(httpx.Response(200, content=b"new")))

    assert destination.read_bytes() == b"new"


def test_download_streams_chunks(tmp_path: Path) -> None:
    def body() -> Iterator[bytes]:
        for i in range(5):
            yield bytes([i]) * 10

    destination = tmp_path / "tile.bin"
    download(TILE_URL, destination, client=mock_client(httpx.Response(200, content=body())))

    assert destination.read_bytes() == b"".join(bytes([i]) * 10 for i in range(5))


def test_download_raises_on_error_status(tmp_path: Path, opened_files: list[Any]) -> None:
    destination = tmp_path / "tile.bin"

    with pytest.raises(TransferHTTPError) as exc_info:
        download(TILE_URL, destination, client=mock_client(httpx.Response(404, text="missing")))

    assert exc_info.value.status_code == 404
    assert exc_info.value.url == TILE_URL
    assert not destination.exists()
    assert all(handle.closed for handle in opened_files)


def test_download_raises_on_mid_stream_failure(tmp_path: Path, opened_files: list[Any]) -> None:
    def body() -> Iterator[bytes]:
        yield b"first chunk"
        raise httpx.ReadError("connection reset")

    with pytest.raises(TransferHTTPError):
        download(TILE_URL, tmp_path / "tile.bin", client=mock_client(httpx.Response(200, content=body())))

    assert opened_files
    assert all(handle.closed for handle in opened_files)


def test_download_raises_io_error_for_unwritable_destination(tmp_path: Path) -> None:
    destination = tmp_path / "missing-dir" / "tile.bin"

    with pytest.raises(TransferIOError) as exc_info:
        download(TILE_URL, destination, client=mock_client(httpx.Response(200, content=b"data")))

    assert exc_info.value.path == str(destination)
    assert isinstance(exc_info.value.__cause__, OSError)


def test_download_raises_on_connection_error(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))

    with pytest.raises(TransferHTTPError):
        download(TILE_URL, tmp_path / "tile.bin", client=client)


def test_download_keeps_injected_client_open(tmp_path: Path) -> None:
    client = mock_client(httpx.Response(200, content=b"data"))

    download(TILE_URL, tmp_path / "tile.bin", client=client)

    assert not client.is_closed
