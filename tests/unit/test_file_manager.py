"""Unit tests for RecordingFiles."""

import pytest
import logging
from pathlib import Path

from vnrecord.storage.file_manager import RecordingFiles, default_output_dir, session_prefix


@pytest.mark.unit
class TestRecordingFiles:
    """Test cases for RecordingFiles."""

    def test_paths_from_timestamp(self, output_dir):
        paths = RecordingFiles(output_dir).paths_for(1700000000.75)

        assert paths.prefix == "1700000000"
        assert paths.audio_path == output_dir / "1700000000_audio.mp3"
        assert paths.screenshot_path == output_dir / "1700000000_screenshot.png"

    def test_audio_extension(self, output_dir):
        paths = RecordingFiles(output_dir).paths_for(1700000000, audio_extension="ogg")
        assert paths.audio_path.name == "1700000000_audio.ogg"

    def test_different_seconds_are_distinct(self, output_dir):
        files = RecordingFiles(output_dir)
        a = files.paths_for(1700000000.9)
        b = files.paths_for(1700000001.0)

        assert a.audio_path != b.audio_path
        assert a.screenshot_path != b.screenshot_path

    def test_same_second_collides(self, output_dir):
        files = RecordingFiles(output_dir)
        assert files.paths_for(1700000000.1) == files.paths_for(1700000000.9)

    def test_reserve_creates_directory(self, temp_data_dir):
        target = temp_data_dir / "nested" / "out"
        paths = RecordingFiles(target).reserve(1700000000)

        assert target.is_dir()
        assert not paths.audio_path.exists()

    def test_reserve_warns_on_collision(self, output_dir, caplog):
        files = RecordingFiles(output_dir)
        files.paths_for(1700000000).audio_path.write_bytes(b"old")

        with caplog.at_level(logging.WARNING):
            files.reserve(1700000000.5)

        assert "already exists" in caplog.text

    def test_list_recordings_sorted(self, output_dir):
        files = RecordingFiles(output_dir)
        for ts in (1700000100, 1700000002, 1700000050):
            files.paths_for(ts).audio_path.write_bytes(b"x")
        (output_dir / "notes_audio.mp3").write_bytes(b"x")
        (output_dir / "1700000200_screenshot.png").write_bytes(b"x")

        prefixes = [p.prefix for p in files.list_recordings()]

        assert prefixes == ["1700000002", "1700000050", "1700000100"]
        assert files.latest().prefix == "1700000100"

    def test_list_recordings_missing_directory(self, temp_data_dir):
        files = RecordingFiles(temp_data_dir / "missing")
        assert files.list_recordings() == []
        assert files.latest() is None

    def test_storage_stats(self, output_dir):
        files = RecordingFiles(output_dir)
        paths = files.paths_for(1700000000)
        paths.audio_path.write_bytes(b"a" * 100)
        paths.screenshot_path.write_bytes(b"s" * 50)

        stats = files.get_storage_stats()

        assert stats["total_size_bytes"] == 150
        assert stats["recording_count"] == 1
        assert stats["output_directory"] == str(output_dir)


@pytest.mark.unit
def test_session_prefix_truncates():
    assert session_prefix(1700000000.999) == "1700000000"


@pytest.mark.unit
def test_default_output_dir_honours_xdg(monkeypatch, temp_data_dir):
    monkeypatch.setenv("XDG_DATA_HOME", str(temp_data_dir))
    assert default_output_dir() == temp_data_dir / "vn_record"


@pytest.mark.unit
def test_default_output_dir_fallback(monkeypatch):
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
    assert default_output_dir() == Path.home() / ".local" / "share" / "vn_record"
