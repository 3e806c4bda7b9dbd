"""Shared fixtures: synthetic canvases and deterministic text measurement."""

import numpy as np
import pytest

from screentext import BBox, RecognizedWord, RecognitionResult, TextMetrics


class FakeMeasurer:
    """Width grows linearly with size so calibration is predictable."""

    def __init__(self, char_width: float = 0.6, with_vertical_metrics: bool = True):
        self.char_width = char_width
        self.with_vertical_metrics = with_vertical_metrics
        self.calls = []

    def measure(self, text, font_size, font_family):
        self.calls.append((text, font_size, font_family))
        width = len(text) * font_size * self.char_width
        if not self.with_vertical_metrics:
            return TextMetrics(width=width)
        return TextMetrics(width=width, ascent=font_size * 0.7, descent=font_size * 0.2)


class FakeRenderer(FakeMeasurer):
    """Records draw calls instead of rasterizing glyphs."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.draws = []

    def draw_text(self, canvas, text, position, font_size, font_family, color):
        self.draws.append({
            "text": text,
            "position": position,
            "font_size": font_size,
            "font_family": font_family,
            "color": color,
        })


class FakeEngine:
    def __init__(self, words=None, error=None):
        self.words = words or []
        self.error = error
        self.calls = 0

    def recognize(self, image, language=None, progress_callback=None):
        self.calls += 1
        if progress_callback:
            progress_callback("recognizing text", 0.5)
        if self.error:
            raise self.error
        return RecognitionResult(words=list(self.words))


def make_canvas(width, height, color=(255, 255, 255, 255)):
    canvas = np.empty((height, width, 4), dtype=np.uint8)
    canvas[:] = np.array(color, dtype=np.uint8)
    return canvas


def make_word(text, x0, y0, x1, y1, confidence=95.0):
    return RecognizedWord(text=text, confidence=confidence, bbox=BBox(x0, y0, x1, y1))


@pytest.fixture
def white_canvas():
    return make_canvas(100, 50)


@pytest.fixture
def hello_canvas():
    """White 100x50 image with dark 'ink' inside the box (10,10)-(60,30)."""
    canvas = make_canvas(100, 50)
    canvas[15:25, 15:55] = (0, 0, 0, 255)
    return canvas


@pytest.fixture
def noise_canvas():
    rng = np.random.default_rng(0)
    canvas = rng.integers(0, 256, size=(100, 120, 4), dtype=np.uint8)
    canvas[..., 3] = 255
    return canvas


@pytest.fixture
def fake_measurer():
    return FakeMeasurer()


@pytest.fixture
def fake_renderer():
    return FakeRenderer()
