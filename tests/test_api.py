"""Tests for the high-level API."""

import threading
import time
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from quadart.api import QuadArtSession, decompose, load_image
from quadart.config import QuadArtConfig
from quadart.engine import EngineState, FrameSnapshot


@pytest.fixture
def test_image() -> np.ndarray:
    """32x32 white image with a black top-left quadrant."""
    img = np.full((32, 32, 3), 255, dtype=np.uint8)
    img[:16, :16] = 0
    return img


@pytest.fixture
def fast_config() -> QuadArtConfig:
    """Config that refines to 2x2 leaves quickly."""
    return QuadArtConfig(
        min_leaf_size=4, error_threshold=0.0, step_interval=0.0, render_interval=0.005
    )


class TestLoadImage:
    """Test load_image()."""

    def test_png(self, tmp_path: Path, test_image: np.ndarray) -> None:
        """Test a PNG is decoded to RGB."""
        path = tmp_path / "in.png"
        Image.fromarray(test_image).save(path)

        loaded = load_image(path)
        assert loaded.shape == (32, 32, 3)
        assert loaded.dtype == np.uint8
        assert np.array_equal(loaded, test_image)

    def test_rgba_and_grayscale(self, tmp_path: Path) -> None:
        """Test other modes are converted to RGB."""
        Image.new("RGBA", (5, 3), (10, 20, 30, 40)).save(tmp_path / "a.png")
        Image.new("L", (5, 3), 99).save(tmp_path / "l.png")

        assert load_image(tmp_path / "a.png")[0, 0].tolist() == [10, 20, 30]
        assert load_image(str(tmp_path / "l.png"))[0, 0].tolist() == [99, 99, 99]

    def test_missing(self, tmp_path: Path) -> None:
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Image not found"):
            load_image(tmp_path / "absent.png")

    def test_not_an_image(self, tmp_path: Path) -> None:
        """Test a non-image file raises ValueError."""
        path = tmp_path / "notes.png"
        path.write_text("not an image")
        with pytest.raises(ValueError, match="Not an image file"):
            load_image(path)


class TestDecompose:
    """Test decompose()."""

    def test_runs_to_stall(self, test_image: np.ndarray, fast_config: QuadArtConfig) -> None:
        """Test decompose() refines until nothing is left to split."""
        frame = decompose(test_image, fast_config)
        assert isinstance(frame, FrameSnapshot)
        assert frame.state is EngineState.STALLED
        assert frame.shapes == 256
        assert frame.iterations == 85

    def test_max_steps(self, test_image: np.ndarray, fast_config: QuadArtConfig) -> None:
        """Test a step budget stops the run early."""
        frame = decompose(test_image, fast_config, max_steps=3)
        assert frame.iterations == 3
        assert frame.shapes == 10
        assert frame.state is EngineState.IDLE

    def test_zero_steps(self, test_image: np.ndarray) -> None:
        """Test max_steps=0 returns the root only."""
        frame = decompose(test_image, max_steps=0)
        assert frame.shapes == 1
        assert frame.nodes[0].color == (191, 191, 191)

    def test_negative_steps(self, test_image: np.ndarray) -> None:
        """Test negative budgets are rejected."""
        with pytest.raises(ValueError, match="max_steps"):
            decompose(test_image, max_steps=-1)

    def test_default_config(self, test_image: np.ndarray) -> None:
        """Test default settings: one split leaves four uniform quadrants."""
        frame = decompose(test_image)
        assert frame.iterations == 1
        assert all(node.error == 0.0 for node in frame.nodes)
        assert frame.state is EngineState.STALLED


class TestQuadArtSession:
    """Test QuadArtSession."""

    def test_runs_to_completion(self, test_image: np.ndarray, fast_config: QuadArtConfig) -> None:
        """Test a session renders the final stalled frame."""
        frames: list[FrameSnapshot] = []
        session = QuadArtSession(test_image, frames.append, fast_config)
        assert not session.running

        session.start()
        assert session.wait(timeout=10)
        assert not session.running
        assert frames[-1].state is EngineState.STALLED
        assert frames[-1].shapes == 256
        assert session.snapshot().shapes == 256

    def test_stop(self, test_image: np.ndarray) -> None:
        """Test stop() pauses both schedulers and keeps the frontier."""
        config = QuadArtConfig(
            min_leaf_size=1, error_threshold=0.0, step_interval=0.05, render_interval=0.05
        )
        session = QuadArtSession(test_image, lambda frame: None, config)
        session.start()
        session.stop(timeout=5)

        assert not session.running
        assert not session.stepper.is_alive()
        assert not session.painter.is_alive()
        assert session.engine.state is EngineState.IDLE
        kept = session.snapshot().shapes

        session.start()
        session.stop(timeout=5)
        assert session.snapshot().shapes >= kept

    def test_start_after_timed_out_stop(
        self, test_image: np.ndarray, fast_config: QuadArtConfig
    ) -> None:
        """Test start() resumes rendering while a stopped renderer is still busy."""
        frames: list[FrameSnapshot] = []
        gate = threading.Event()

        def slow(frame: FrameSnapshot) -> None:
            frames.append(frame)
            gate.wait(5)

        session = QuadArtSession(test_image, slow, fast_config)
        session.start()
        deadline = time.monotonic() + 5
        while not frames and time.monotonic() < deadline:
            time.sleep(0.001)
        assert frames

        session.stop(timeout=0.05)
        busy = session.painter
        assert busy.is_alive()

        session.start()
        assert session.painter is not busy
        gate.set()

        assert session.wait(timeout=10)
        assert busy.join(timeout=5)
        assert session.painter.ticks >= 1
        assert frames[-1].state is EngineState.STALLED
        assert frames[-1].shapes == 256

    def test_restart_with_config(self, test_image: np.ndarray, fast_config: QuadArtConfig) -> None:
        """Test restart() starts over under the new settings."""
        frames: list[FrameSnapshot] = []
        session = QuadArtSession(test_image, frames.append, fast_config)
        session.start()
        assert session.wait(timeout=10)

        session.restart(fast_config.replace(min_leaf_size=32))
        assert session.wait(timeout=10)
        assert session.engine.config.min_leaf_size == 32
        assert frames[-1].iterations == 1
        assert frames[-1].shapes == 4

    def test_renderer_error_propagates(self, test_image: np.ndarray, fast_config: QuadArtConfig) -> None:
        """Test wait() re-raises a renderer failure."""

        def broken(frame: FrameSnapshot) -> None:
            raise OSError("window closed")

        session = QuadArtSession(test_image, broken, fast_config)
        session.start()
        with pytest.raises(OSError, match="window closed"):
            session.wait(timeout=10)
