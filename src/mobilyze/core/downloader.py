"""HTTP download of prebuilt tool artifacts."""

import shutil
import tempfile
from pathlib import Path

import requests

from mobilyze.exceptions import DownloadError

# Responses up to this size are buffered in memory and written in one go;
# larger or unsized ones are spooled to a temporary file and moved.
BUFFER_THRESHOLD = 1024 * 1024
CHUNK_SIZE = 256 * 1024
NET_TIMEOUT = 60


def _content_length(response: requests.Response) -> int | None:
    value = response.headers.get("Content-Length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _write_buffered(response: requests.Response, path: Path) -> None:
    path.write_bytes(response.content)


def _write_spooled(response: requests.Response, path: Path) -> None:
    # Temp file lives beside the target so the final move stays on one filesystem
    with tempfile.NamedTemporaryFile(
        dir=path.parent, prefix=f".{path.name}.", suffix=".part", delete=False
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    tmp.write(chunk)
        except BaseException:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise

    shutil.move(str(tmp_path), path)


def download(url: str, path: Path, *, timeout: float = NET_TIMEOUT) -> Path:
    """Fetch a URL and persist its body to a path.

    Small responses with a declared Content-Length are held in memory and
    written directly; everything else is streamed into a temporary file
    which is then moved onto the destination.

    Args:
        url: URL to fetch.
        path: Destination file. Parent directories are created.
        timeout: Connect/read timeout in seconds.

    Returns:
        The destination path.

    Raises:
        DownloadError: On HTTP or connection errors, or if writing fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()

            length = _content_length(response)
            if length is not None and length <= BUFFER_THRESHOLD:
                _write_buffered(response, path)
            else:
                _write_spooled(response, path)
    except requests.exceptions.RequestException as e:
        raise DownloadError(f"Failed to download {url}: {e}") from e
    except OSError as e:
        raise DownloadError(f"Failed to write {path}: {e}") from e

    return path
