"""Tests for downloading and staging the year-to-date spreadsheet."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

import httpx
import pytest

from warn_notices.core.errors import DownloadingError
from warn_notices.sources.downloader import (
    HttpxRetriever,
    StagedFile,
    WgetRetriever,
    content_disposition_filename,
    find_latest_download,
    get_retriever,
    stage_spreadsheet,
)


class FakeRetriever:
    """Writes fixed files into the staging directory instead of downloading."""

    def __init__(self, files: dict[str, bytes]) -> None:
        self.files = files
        self.calls: list[tuple[str, Path]] = []

    def retrieve(self, url: str, staging_dir: Path) -> None:
        self.calls.append((url, staging_dir))
        for name, content in self.files.items():
            (staging_dir / name).write_bytes(content)


class FailingRetriever:
    def retrieve(self, url: str, staging_dir: Path) -> None:
        (staging_dir / "partial.xlsx.part").write_bytes(b"half")
        raise DownloadingError("connection reset")


def _touch(path: Path, mtime: float) -> Path:
    path.write_bytes(b"x")
    os.utime(path, (mtime, mtime))
    return path


class TestContentDisposition:
    def test_quoted_filename(self):
        header = 'attachment; filename="WARN Report 2024.xlsx"'
        assert content_disposition_filename(header) == "WARN Report 2024.xlsx"

    def test_directory_components_stripped(self):
        header = 'attachment; filename="../../etc/report.xlsx"'
        assert content_disposition_filename(header) == "report.xlsx"

    def test_missing(self):
        assert content_disposition_filename(None) is None
        assert content_disposition_filename("inline") is None


class TestFindLatestDownload:
    def test_picks_newest_matching_extension(self, tmp_path: Path):
        _touch(tmp_path / "old.xlsx", 1_000_000)
        newest = _touch(tmp_path / "new.XLSX", 2_000_000)
        _touch(tmp_path / "newer.zip", 3_000_000)
        assert find_latest_download(tmp_path, "xlsx") == newest

    def test_leading_dot_in_extension(self, tmp_path: Path):
        only = _touch(tmp_path / "r.xlsx", 1_000_000)
        assert find_latest_download(tmp_path, ".xlsx") == only

    def test_none_found(self, tmp_path: Path):
        _touch(tmp_path / "report.zip", 1_000_000)
        with pytest.raises(DownloadingError, match="No \\*.xlsx file"):
            find_latest_download(tmp_path, "xlsx")

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(DownloadingError):
            find_latest_download(tmp_path / "nope", "xlsx")


class TestStagedFile:
    def test_reset_removes_stale_files(self, tmp_path: Path):
        staging = tmp_path / "staging"
        staging.mkdir()
        (staging / "stale.xlsx").write_bytes(b"old")
        staged = StagedFile(staging, tmp_path / "target.xlsx")
        staged.reset_staging_dir()
        assert staging.is_dir()
        assert list(staging.iterdir()) == []

    def test_adopt_moves_file(self, tmp_path: Path):
        staging = tmp_path / "staging"
        staging.mkdir()
        downloaded = staging / "WARN Report.xlsx"
        downloaded.write_bytes(b"data")
        staged = StagedFile(staging, tmp_path / "out" / "warn_24.xlsx")
        assert staged.adopt(downloaded) == tmp_path / "out" / "warn_24.xlsx"
        assert staged.path.read_bytes() == b"data"
        assert not downloaded.exists()

    def test_adopt_failure_names_both_paths(self, tmp_path: Path):
        staged = StagedFile(tmp_path / "staging", tmp_path / "warn_24.xlsx")
        missing = tmp_path / "staging" / "missing.xlsx"
        with pytest.raises(DownloadingError) as excinfo:
            staged.adopt(missing)
        assert str(missing) in str(excinfo.value)
        assert str(tmp_path / "warn_24.xlsx") in str(excinfo.value)

    def test_cleanup_on_exception(self, tmp_path: Path):
        staging = tmp_path / "staging"
        target = tmp_path / "warn_24.xlsx"
        with pytest.raises(RuntimeError):
            with StagedFile(staging, target) as staged:
                staged.reset_staging_dir()
                target.write_bytes(b"data")
                raise RuntimeError("parse failed")
        assert not staging.exists()
        assert not target.exists()

    def test_staging_dir_removed_when_target_unlink_fails(self, tmp_path: Path, monkeypatch):
        staging = tmp_path / "staging"
        staging.mkdir()
        (staging / "leftover.xlsx").write_bytes(b"x")
        target = tmp_path / "warn_24.xlsx"
        target.write_bytes(b"data")

        def locked(self, missing_ok=False):
            raise PermissionError(f"locked: {self}")

        monkeypatch.setattr(Path, "unlink", locked)
        with pytest.raises(PermissionError):
            StagedFile(staging, target).cleanup()
        assert not staging.exists()

    def test_cleanup_when_nothing_exists(self, tmp_path: Path):
        StagedFile(tmp_path / "staging", tmp_path / "t.xlsx").cleanup()


class TestStageSpreadsheet:
    def test_success_then_cleanup(self, staging_settings):
        retriever = FakeRetriever({"WARN Report.xlsx": b"sheet", "readme.txt": b"x"})
        with stage_spreadsheet("https://e.x/doc/download", "24", staging_settings, retriever) as staged:
            assert staged.path == staging_settings.target_dir / "warn_report_24.xlsx"
            assert staged.path.read_bytes() == b"sheet"
        assert retriever.calls == [("https://e.x/doc/download", staging_settings.staging_dir)]
        assert not staged.path.exists()
        assert not staging_settings.staging_dir.exists()

    def test_stale_staging_files_removed_first(self, staging_settings):
        staging_settings.staging_dir.mkdir(parents=True)
        stale = staging_settings.staging_dir / "zzz-stale.xlsx"
        stale.write_bytes(b"stale")
        os.utime(stale, (4_000_000_000, 4_000_000_000))
        retriever = FakeRetriever({"fresh.xlsx": b"fresh"})
        with stage_spreadsheet("https://e.x/r", "24", staging_settings, retriever) as staged:
            assert staged.path.read_bytes() == b"fresh"

    def test_wrong_extension_cleans_up(self, staging_settings):
        retriever = FakeRetriever({"download.zip": b"archive"})
        with pytest.raises(DownloadingError):
            stage_spreadsheet("https://e.x/r", "24", staging_settings, retriever)
        assert not staging_settings.staging_dir.exists()
        assert not staging_settings.target_path("24").exists()

    def test_retriever_failure_cleans_up(self, staging_settings):
        with pytest.raises(DownloadingError, match="connection reset"):
            stage_spreadsheet("https://e.x/r", "24", staging_settings, FailingRetriever())
        assert not staging_settings.staging_dir.exists()


class TestHttpxRetriever:
    def _client(self, handler) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(handler))

    def test_uses_server_file_name(self, tmp_path: Path):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                content=b"PK\x03\x04sheet",
                headers={"content-disposition": 'attachment; filename="WARN Report 2024.xlsx"'},
            )

        with self._client(handler) as client:
            HttpxRetriever(client=client).retrieve("https://e.x/doc/report/download", tmp_path)
        assert [p.name for p in tmp_path.iterdir()] == ["WARN Report 2024.xlsx"]
        assert (tmp_path / "WARN Report 2024.xlsx").read_bytes() == b"PK\x03\x04sheet"

    def test_falls_back_to_url_name(self, tmp_path: Path):
        with self._client(lambda request: httpx.Response(200, content=b"x")) as client:
            HttpxRetriever(client=client).retrieve("https://e.x/files/ytd%20report.xlsx?v=2", tmp_path)
        assert [p.name for p in tmp_path.iterdir()] == ["ytd report.xlsx"]

    def test_without_any_name_the_spreadsheet_is_not_found(self, tmp_path: Path):
        with self._client(lambda request: httpx.Response(200, content=b"x")) as client:
            HttpxRetriever(client=client).retrieve("https://e.x/doc/report/download", tmp_path)
        with pytest.raises(DownloadingError):
            find_latest_download(tmp_path, "xlsx")

    def test_http_error(self, tmp_path: Path):
        with self._client(lambda request: httpx.Response(404)) as client:
            with pytest.raises(DownloadingError, match="Failed to download"):
                HttpxRetriever(client=client).retrieve("https://e.x/r.xlsx", tmp_path)


class TestWgetRetriever:
    def test_missing_binary(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr("warn_notices.sources.downloader.shutil.which", lambda name: None)
        with pytest.raises(DownloadingError, match="wget not found"):
            WgetRetriever().retrieve("https://e.x/r", tmp_path)

    def test_process_failure(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(
            "warn_notices.sources.downloader.shutil.which", lambda name: "/usr/bin/wget"
        )

        def fake_run(cmd, **kwargs):
            raise subprocess.CalledProcessError(8, cmd)

        monkeypatch.setattr("warn_notices.sources.downloader.subprocess.run", fake_run)
        with pytest.raises(DownloadingError, match="wget failed"):
            WgetRetriever().retrieve("https://e.x/r", tmp_path)

    def test_command_honors_server_names(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(
            "warn_notices.sources.downloader.shutil.which", lambda name: "/usr/bin/wget"
        )
        seen = {}

        def fake_run(cmd, **kwargs):
            seen["cmd"] = cmd
            return subprocess.CompletedProcess(cmd, 0)

        monkeypatch.setattr("warn_notices.sources.downloader.subprocess.run", fake_run)
        WgetRetriever(timeout_sec=30).retrieve("https://e.x/r", tmp_path)
        assert "--content-disposition" in seen["cmd"]
        assert seen["cmd"][-3:] == ["-P", str(tmp_path), "https://e.x/r"]


def test_get_retriever():
    assert isinstance(get_retriever("httpx"), HttpxRetriever)
    assert isinstance(get_retriever("WGET"), WgetRetriever)
    with pytest.raises(ValueError):
        get_retriever("curl")
