"""Pytest configuration and fixtures for VNRecord tests."""

import pytest
import subprocess
import sys
import tempfile
import time
import logging
from pathlib import Path
from unittest.mock import patch
import numpy as np
from PIL import Image

from vnrecord.audio.pipeline import AudioCapturePipeline
from vnrecord.capture.window import CaptureTarget
from vnrecord.errors import WindowCaptureError


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without child processes")
    config.addinivalue_line("markers", "integration: tests that spawn real child processes")


# Stand-in for pw-record: writes the payload file to stdout, signals readiness,
# then streams nothing until terminated (or exits with a given code).
FAKE_CAPTURE_SRC = """
import signal, sys, time
device, payload, ready, exit_code, ignore_term = sys.argv[1:6]
if ignore_term == "1":
    signal.signal(signal.SIGTERM, signal.SIG_IGN)
with open(payload, "rb") as f:
    sys.stdout.buffer.write(f.read())
sys.stdout.buffer.flush()
open(ready, "w").close()
if exit_code:
    sys.exit(int(exit_code))
while True:
    time.sleep(0.05)
"""

# Stand-in for lame: copies stdin to the output file.
FAKE_ENCODE_SRC = """
import shutil, sys
with open(sys.argv[1], "wb") as out:
    shutil.copyfileobj(sys.stdin.buffer, out)
"""


class FakeTarget(CaptureTarget):
    """Capture target returning a solid image."""

    def __init__(self, size=(64, 48), color=(200, 30, 30)):
        self.size = size
        self.color = color
        self.captures = 0

    @property
    def name(self) -> str:
        return "fake window"

    def capture_image(self) -> Image.Image:
        self.captures += 1
        return Image.new("RGB", self.size, self.color)


class GoneTarget(CaptureTarget):
    """Capture target whose window has been closed."""

    @property
    def name(self) -> str:
        return "closed window"

    def capture_image(self) -> Image.Image:
        raise WindowCaptureError("window no longer exists")


class FakePipelineFactory:
    """Builds AudioCapturePipelines whose stages are Python child processes."""

    def __init__(self, work_dir: Path):
        self.work_dir = work_dir
        self.count = 0

    def commands(self, payload: bytes = b"", exit_code: str = "", ignore_term: bool = False):
        """Capture and encode argv templates for a fresh fake capture stage."""
        self.count += 1
        payload_path = self.work_dir / f"payload_{self.count}.bin"
        payload_path.write_bytes(payload)
        self.ready_path = self.work_dir / f"ready_{self.count}"

        capture_command = [
            sys.executable, "-c", FAKE_CAPTURE_SRC, "{device}",
            str(payload_path), str(self.ready_path), exit_code, "1" if ignore_term else "0",
        ]
        encode_command = [sys.executable, "-c", FAKE_ENCODE_SRC, "{output}"]
        return capture_command, encode_command

    def __call__(self, payload: bytes = b"", exit_code: str = "", ignore_term: bool = False,
                 stop_timeout_seconds: float = 10.0):
        capture_command, encode_command = self.commands(payload, exit_code, ignore_term)
        return AudioCapturePipeline(
            capture_command=capture_command,
            encode_command=encode_command,
            stop_timeout_seconds=stop_timeout_seconds,
        )

    def wait_until_ready(self, timeout: float = 10.0) -> None:
        """Block until the latest fake capture stage has written its payload."""
        deadline = time.monotonic() + timeout
        while not self.ready_path.exists():
            if time.monotonic() > deadline:
                raise TimeoutError("fake capture stage never became ready")
            time.sleep(0.01)


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def output_dir(temp_data_dir):
    path = temp_data_dir / "recordings"
    path.mkdir()
    return path


@pytest.fixture
def fake_pipeline(temp_data_dir):
    """Factory for pipelines made of fake capture/encode processes."""
    work_dir = temp_data_dir / "fake_stages"
    work_dir.mkdir()
    return FakePipelineFactory(work_dir)


@pytest.fixture
def fake_target():
    return FakeTarget()


@pytest.fixture
def gone_target():
    return GoneTarget()


@pytest.fixture
def audio_test_data():
    """Generate raw 16-bit PCM test data."""
    def generate_audio(pattern="sine", duration_seconds=0.1, sample_rate=48000, pad_silence_seconds=0.0):
        """Generate audio data for testing.

        Args:
            pattern: Type of audio pattern ('sine', 'silence')
            duration_seconds: Duration of the non-padded audio
            sample_rate: Sample rate in Hz
            pad_silence_seconds: Silence added before and after

        Returns:
            bytes: Audio data as bytes
        """
        samples = int(duration_seconds * sample_rate)

        if pattern == "sine":
            t = np.linspace(0, duration_seconds, samples, False)
            wave_data = np.sin(2 * np.pi * 440 * t)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        pad = np.zeros(int(pad_silence_seconds * sample_rate))
        wave_data = np.concatenate([pad, wave_data, pad])
        return (wave_data * 32767).astype(np.int16).tobytes()

    return generate_audio


def _strip_silence(data: bytes) -> bytes:
    """Byte-level model of sox's silence/reverse chain: drop leading and trailing zero samples."""
    samples = np.frombuffer(data, dtype=np.int16)
    loud = np.flatnonzero(np.abs(samples) > int(0.01 * 32767))
    if loud.size == 0:
        return b""
    return samples[loud[0]:loud[-1] + 1].tobytes()


@pytest.fixture
def fake_sox_tools():
    """Replace sox/soxi invocations with in-process fakes.

    sox strips leading/trailing silence from raw PCM, soxi reports the
    duration configured in ``state["duration"]`` (None derives it from the
    file as 48kHz mono s16).
    """
    state = {"duration": None, "calls": []}
    real_run = subprocess.run

    def fake_run(cmd, *args, **kwargs):
        tool = Path(cmd[0]).name
        if tool == "sox":
            state["calls"].append(("sox", list(cmd)))
            data = Path(cmd[1]).read_bytes()
            Path(cmd[2]).write_bytes(_strip_silence(data))
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        if tool == "soxi":
            state["calls"].append(("soxi", list(cmd)))
            duration = state["duration"]
            if duration is None:
                duration = Path(cmd[2]).stat().st_size / 2 / 48000
            return subprocess.CompletedProcess(cmd, 0, stdout=f"{duration}\n", stderr="")
        return real_run(cmd, *args, **kwargs)

    with patch("subprocess.run", side_effect=fake_run):
        yield state
