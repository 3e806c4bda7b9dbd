"""Tests for the OCR wrapper"""

import pytest

from screentext import (
    OCREngine,
    RecognitionFailureError,
    RecognitionUnavailableError,
)
from screentext import recognition
from screentext.recognition import words_from_tesseract_data

from conftest import make_canvas


def tesseract_data():
    return {
        'text': ["", "Hello", "  ", "World", "noise"],
        'conf': ["-1", "96.5", "-1", "88", "-1"],
        'left': [0, 10, 0, 70, 5],
        'top': [0, 10, 0, 10, 5],
        'width': [100, 50, 0, 50, 3],
        'height': [50, 20, 0, 20, 3],
        'block_num': [0, 1, 1, 1, 2],
        'line_num': [0, 1, 1, 1, 1],
    }


def test_words_from_tesseract_data_skips_empty_and_negative_confidence():
    words = words_from_tesseract_data(tesseract_data())

    assert [w.text for w in words] == ["Hello", "World"]
    hello = words[0]
    assert hello.confidence == 96.5
    assert (hello.bbox.x0, hello.bbox.y0, hello.bbox.x1, hello.bbox.y1) == (10, 10, 60, 30)
    assert hello.block_num == 1


def test_words_from_tesseract_data_minimum_confidence():
    words = words_from_tesseract_data(tesseract_data(), min_confidence=90)
    assert [w.text for w in words] == ["Hello"]


def test_recognize_unavailable_without_pytesseract(monkeypatch):
    monkeypatch.setattr(recognition, "HAS_TESSERACT", False)

    assert OCREngine.is_available() is False
    with pytest.raises(RecognitionUnavailableError):
        OCREngine().recognize(make_canvas(10, 10))


def test_recognize_reports_progress(monkeypatch):
    pytesseract = pytest.importorskip("pytesseract")
    calls = {}

    def fake_image_to_data(image, lang, output_type):
        calls['lang'] = lang
        calls['mode'] = image.mode
        return tesseract_data()

    monkeypatch.setattr(pytesseract, "image_to_data", fake_image_to_data)
    progress = []

    result = OCREngine().recognize(
        make_canvas(100, 50), language="kor",
        progress_callback=lambda status, fraction: progress.append((status, fraction))
    )

    assert [w.text for w in result.words] == ["Hello", "World"]
    assert result.language == "kor"
    assert calls == {'lang': "kor", 'mode': "RGB"}
    assert progress[0] == ("initializing", 0.0)
    assert progress[-1] == ("done", 1.0)
    assert [f for _, f in progress] == sorted(f for _, f in progress)


def test_recognize_missing_binary_is_unavailable(monkeypatch):
    pytesseract = pytest.importorskip("pytesseract")

    def missing(*args, **kwargs):
        raise pytesseract.TesseractNotFoundError()

    monkeypatch.setattr(pytesseract, "image_to_data", missing)
    with pytest.raises(RecognitionUnavailableError):
        OCREngine().recognize(make_canvas(10, 10))


def test_recognize_engine_error_is_failure(monkeypatch):
    pytesseract = pytest.importorskip("pytesseract")

    def broken(*args, **kwargs):
        raise RuntimeError("bad traineddata")

    monkeypatch.setattr(pytesseract, "image_to_data", broken)
    with pytest.raises(RecognitionFailureError):
        OCREngine().recognize(make_canvas(10, 10))
