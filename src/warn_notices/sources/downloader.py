from __future__ import annotations

import hashlib
import logging
import shutil
import subprocess
from email.message import Message
from pathlib import Path, PurePosixPath
from typing import Optional, Protocol
from urllib.parse import unquote

import httpx

from warn_notices.core.config import DEFAULT_TIMEOUT_SEC, StagingSettings
from warn_notices.core.errors import DownloadingError


logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 1024 * 256

# Use browser-like headers to avoid server blocking
DOWNLOAD_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
    "Connection": "keep-alive",
}


class Retriever(Protocol):
    def retrieve(self, url: str, staging_dir: Path) -> None:
        """Download ``url`` into ``staging_dir`` under the server-suggested file name."""
        ...


def _safe_file_name(url: str, default_ext: Optional[str]) -> str:
    # Use last path segment when possible, fallback to hash
    filename = unquote(url.split("?")[0].rstrip("/").split("/")[-1])
    if "." in filename:
        return PurePosixPath(filename).name
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    ext = default_ext or "bin"
    return f"download_{digest}.{ext}"


def content_disposition_filename(header: Optional[str]) -> Optional[str]:
    """File name suggested by a Content-Disposition header (filename or filename*)."""
    if not header:
        return None
    msg = Message()
    msg["content-disposition"] = header
    filename = msg.get_filename()
    if not filename:
        return None
    # Never let the server pick a directory
    name = PurePosixPath(filename.replace("\\", "/")).name
    return name or None


class HttpxRetriever:
    """Streams the download with httpx, honoring the server-suggested file name."""

    def __init__(
        self,
        *,
        client: Optional[httpx.Client] = None,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        self.client = client
        self.timeout_sec = timeout_sec

    def retrieve(self, url: str, staging_dir: Path) -> None:
        owns_client = self.client is None
        client = self.client or httpx.Client(
            timeout=self.timeout_sec, follow_redirects=True, headers=DOWNLOAD_HEADERS
        )
        try:
            with client.stream("GET", url) as r:
                r.raise_for_status()
                file_name = content_disposition_filename(
                    r.headers.get("content-disposition")
                ) or _safe_file_name(str(r.url), None)
                output_path = staging_dir / file_name
                tmp_path = output_path.with_suffix(output_path.suffix + ".part")
                with open(tmp_path, "wb") as f:
                    for chunk in r.iter_bytes(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
            tmp_path.replace(output_path)
            logger.info(
                "Downloaded %s → %s (%d bytes)", url, output_path, output_path.stat().st_size
            )
        except httpx.HTTPError as e:
            raise DownloadingError(f"Failed to download {url}: {e}") from e
        finally:
            if owns_client:
                client.close()


class WgetRetriever:
    """Runs ``wget`` with --content-disposition so the real file name is kept."""

    def __init__(self, *, timeout_sec: float = DEFAULT_TIMEOUT_SEC) -> None:
        self.timeout_sec = timeout_sec

    def retrieve(self, url: str, staging_dir: Path) -> None:
        wget = shutil.which("wget")
        if not wget:
            raise DownloadingError("wget not found on PATH (install it or use the httpx retriever)")
        cmd = [
            wget,
            "--quiet",
            "--content-disposition",
            "--trust-server-names",
            f"--timeout={int(self.timeout_sec)}",
            "-P",
            str(staging_dir),
            url,
        ]
        try:
            subprocess.run(
                cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE
            )
        except (subprocess.CalledProcessError, OSError) as e:
            raise DownloadingError(f"wget failed for {url}: {e}") from e
        logger.info("Downloaded %s into %s", url, staging_dir)


def get_retriever(name: str, *, timeout_sec: float = DEFAULT_TIMEOUT_SEC) -> Retriever:
    name = (name or "").lower()
    if name == "httpx":
        return HttpxRetriever(timeout_sec=timeout_sec)
    if name == "wget":
        return WgetRetriever(timeout_sec=timeout_sec)
    raise ValueError(f"Unknown retriever: {name!r} (expected 'httpx' or 'wget')")


def find_latest_download(staging_dir: Path, extension: str) -> Path:
    """Most recently modified file in ``staging_dir`` with the given extension.

    Raises:
        DownloadingError: If no file has the extension.
    """
    suffix = "." + extension.lstrip(".").lower()
    candidates = []
    if staging_dir.is_dir():
        candidates = [
            p for p in staging_dir.iterdir() if p.is_file() and p.suffix.lower() == suffix
        ]
    if not candidates:
        raise DownloadingError(f"No *{suffix} file was downloaded into {staging_dir}")
    return max(candidates, key=lambda p: p.stat().st_mtime)


class StagedFile:
    """A downloaded spreadsheet and the scratch directory it was downloaded into.

    Used as a context manager; on exit the target file and the staging
    directory are both deleted, whether the body succeeded or raised.
    """

    def __init__(self, staging_dir: Path, target_path: Path) -> None:
        self.staging_dir = staging_dir
        self.target_path = target_path

    @property
    def path(self) -> Path:
        return self.target_path

    def reset_staging_dir(self) -> None:
        """Start from an empty staging directory so stale files are never picked up."""
        if self.staging_dir.exists():
            shutil.rmtree(self.staging_dir)
        self.staging_dir.mkdir(parents=True)

    def adopt(self, downloaded: Path) -> Path:
        """Move a downloaded file to the target path."""
        try:
            self.target_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(downloaded), str(self.target_path))
        except OSError as e:
            raise DownloadingError(
                f"Failed to move {downloaded} to {self.target_path}: {e}"
            ) from e
        logger.info("Staged %s → %s", downloaded.name, self.target_path)
        return self.target_path

    def cleanup(self) -> None:
        """Remove the target file and the staging directory.

        The staging directory is removed even when unlinking the target fails;
        that failure is re-raised afterwards.
        """
        try:
            if self.target_path.exists():
                self.target_path.unlink()
        finally:
            if self.staging_dir.exists():
                shutil.rmtree(self.staging_dir)
        logger.debug("Removed %s and %s", self.target_path, self.staging_dir)

    def __enter__(self) -> "StagedFile":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()


def stage_spreadsheet(
    url: str,
    year: str,
    settings: StagingSettings,
    retriever: Optional[Retriever] = None,
) -> StagedFile:
    """Download the spreadsheet at ``url`` and move it to its deterministic path.

    The returned StagedFile must be used as a context manager so the files are
    removed afterwards. If staging fails, everything is removed before the
    error propagates.

    Raises:
        DownloadingError: If retrieval, discovery or the final move fails.
    """
    retriever = retriever or get_retriever(settings.retriever)
    staged = StagedFile(settings.staging_dir, settings.target_path(year))
    try:
        staged.reset_staging_dir()
        logger.info("Downloading year-to-date report %s → %s", url, staged.staging_dir)
        retriever.retrieve(url, staged.staging_dir)
        downloaded = find_latest_download(staged.staging_dir, settings.extension)
        staged.adopt(downloaded)
    except BaseException:
        staged.cleanup()
        raise
    return staged


__all__ = [
    "DownloadingError",
    "HttpxRetriever",
    "Retriever",
    "StagedFile",
    "WgetRetriever",
    "content_disposition_filename",
    "find_latest_download",
    "get_retriever",
    "stage_spreadsheet",
]
