"""Tests for metadata and downloader fallback chains."""

import pytest

from tubevault.application.chains import DownloaderChain, MetadataChain
from tubevault.domain.exceptions import DownloadError, MetadataError


class TestMetadataChain:

    def test_first_success_wins(self, fakes):
        first = fakes.MetadataProvider(name="first")
        second = fakes.MetadataProvider(name="second")
        chain = MetadataChain([first, second])

        info = chain.fetch("dQw4w9WgXcQ")

        assert info.title == "Title dQw4w9WgXcQ"
        assert first.calls == ["dQw4w9WgXcQ"]
        assert second.calls == []

    def test_falls_back_in_order(self, fakes):
        failing = fakes.MetadataProvider(name="api", error=MetadataError("quota exceeded"))
        working = fakes.MetadataProvider(name="scraper")
        chain = MetadataChain([failing, working])

        info = chain.fetch("dQw4w9WgXcQ")

        assert info.id == "dQw4w9WgXcQ"
        assert failing.calls == ["dQw4w9WgXcQ"]
        assert working.calls == ["dQw4w9WgXcQ"]

    def test_exhaustion_lists_every_failure(self, fakes):
        chain = MetadataChain([
            fakes.MetadataProvider(name="api", error=MetadataError("quota exceeded")),
            fakes.MetadataProvider(name="scraper", error=RuntimeError("blocked")),
        ])

        with pytest.raises(MetadataError) as exc_info:
            chain.fetch("dQw4w9WgXcQ")

        assert "api: quota exceeded" in str(exc_info.value)
        assert "scraper: blocked" in str(exc_info.value)

    def test_empty_chain_raises(self):
        with pytest.raises(MetadataError, match="no providers"):
            MetadataChain([]).fetch("dQw4w9WgXcQ")


class TestDownloaderChain:

    def test_first_success_wins(self, fakes, tmp_path):
        first = fakes.Downloader(name="lib")
        second = fakes.Downloader(name="cli")
        destination = tmp_path / "youtube_dQw4w9WgXcQ.mp4"

        result = DownloaderChain([first, second]).download("https://youtu.be/dQw4w9WgXcQ", destination, 1000)

        assert result == destination
        assert destination.read_bytes() == b"video-bytes"
        assert second.calls == []

    def test_falls_back_and_removes_partial(self, fakes, tmp_path):
        failing = fakes.Downloader(name="lib", error=DownloadError("403"))
        working = fakes.Downloader(name="cli", content=b"good")
        destination = tmp_path / "youtube_dQw4w9WgXcQ.mp4"

        DownloaderChain([failing, working]).download("https://youtu.be/dQw4w9WgXcQ", destination, 1000)

        assert failing.calls and working.calls
        assert destination.read_bytes() == b"good"

    def test_empty_file_counts_as_failure(self, fakes, tmp_path):
        empty = fakes.Downloader(name="lib", content=b"")
        destination = tmp_path / "youtube_dQw4w9WgXcQ.mp4"

        with pytest.raises(DownloadError, match="lib: Downloaded file is empty"):
            DownloaderChain([empty]).download("https://youtu.be/dQw4w9WgXcQ", destination, 1000)

        assert not destination.exists()

    def test_exhaustion_removes_partial_file(self, fakes, tmp_path):
        chain = DownloaderChain([
            fakes.Downloader(name="lib", error=DownloadError("403")),
            fakes.Downloader(name="cli", error=DownloadError("timed out")),
        ])
        destination = tmp_path / "youtube_dQw4w9WgXcQ.mp4"

        with pytest.raises(DownloadError) as exc_info:
            chain.download("https://youtu.be/dQw4w9WgXcQ", destination, 1000)

        assert "lib: 403" in str(exc_info.value)
        assert "cli: timed out" in str(exc_info.value)
        assert not destination.exists()

    def test_passes_timeout_to_backends(self, tmp_path):
        seen = []

        class Recording:
            name = "rec"

            def download(self, reference, destination, timeout_ms):
                seen.append(timeout_ms)
                destination.write_bytes(b"x")
                return destination

        DownloaderChain([Recording()]).download("ref", tmp_path / "out.mp4", 180_000)

        assert seen == [180_000]
