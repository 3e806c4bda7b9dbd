"""Tests for the editing session: replacement pipeline, redraw, recognition lifecycle"""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from screentext import (
    ColorPick,
    Compositor,
    EditorOptions,
    InvalidInputError,
    RecognitionFailureError,
    RecognitionResult,
    SessionState,
    WordNotFoundError,
)

from conftest import FakeEngine, FakeRenderer, make_canvas, make_word


class FailingRenderer(FakeRenderer):
    """Raises from draw_text once fail_after draws have succeeded."""

    def __init__(self, fail_after=0, **kwargs):
        super().__init__(**kwargs)
        self.fail_after = fail_after

    def draw_text(self, canvas, text, position, font_size, font_family, color):
        if len(self.draws) >= self.fail_after:
            raise RuntimeError("font rasterizer crashed")
        super().draw_text(canvas, text, position, font_size, font_family, color)


def loaded_session(canvas, renderer=None, options=None, words=None):
    session = Compositor(options=options, renderer=renderer or FakeRenderer())
    generation = session.load_image(canvas)
    session.begin_recognition()
    session.complete_recognition(
        generation,
        RecognitionResult(words=words or [make_word("Hello", 10, 10, 60, 30)])
    )
    return session


@pytest.fixture
def session(hello_canvas):
    return loaded_session(hello_canvas)


# ============================================================================
# Replacement
# ============================================================================

def test_replace_hello_with_hi(session):
    entry = session.replace("word_000", "Hi")

    # box erased to the solid white surroundings
    assert (session.canvas[10:30, 10:60] == 255).all()

    draw = session.renderer.draws[-1]
    assert draw["text"] == "Hi"
    assert draw["color"] == "#000000"
    assert abs(2 * draw["font_size"] * 0.6 - 50) <= 2
    # baseline sits at y1 - descent
    assert draw["position"] == (10, 30 - draw["font_size"] * 0.2)

    word = session.registry.get("word_000")
    assert word.text == "Hi"
    assert word.original_text == "Hello"
    assert word.is_edited and not word.is_selected
    assert word.style.font_size == draw["font_size"]

    assert (entry.old_text, entry.new_text) == ("Hello", "Hi")
    assert session.history.entries[0] == entry


def test_replace_unknown_word_changes_nothing(session, hello_canvas):
    with pytest.raises(WordNotFoundError):
        session.replace("missing", "x")

    assert np.array_equal(session.canvas, hello_canvas)
    assert len(session.history) == 0
    assert session.renderer.draws == []


def test_replace_rejects_blank_text(session, hello_canvas):
    with pytest.raises(InvalidInputError):
        session.replace("word_000", "   ")

    assert np.array_equal(session.canvas, hello_canvas)
    assert session.registry.get("word_000").is_edited is False


def test_explicit_color_wins_over_sampled(session):
    session.set_text_color("#FF0000")
    session.replace("word_000", "Hi")

    assert session.renderer.draws[-1]["color"] == "#FF0000"
    assert session.registry.get("word_000").custom_color == "#FF0000"


def test_replace_clears_selection(session):
    session.select("word_000")
    session.replace("word_000", "Hi")
    assert session.registry.selected is None


def test_invalid_text_color_rejected_up_front(session):
    with pytest.raises(InvalidInputError):
        session.set_text_color("red")

    assert session.text_color is None
    session.replace("word_000", "Hi")
    assert session.renderer.draws[-1]["color"] == "#000000"


def test_text_color_is_normalized(session):
    session.set_text_color("#ff0000")
    assert session.text_color == "#FF0000"


def test_invalid_background_box_color_rejected(session):
    with pytest.raises(InvalidInputError):
        EditorOptions(use_background_box=True, background_box_color="blue")
    with pytest.raises(InvalidInputError):
        session.set_options(use_background_box=True, background_box_color="blue")

    assert session.options.use_background_box is False


def test_failed_replace_leaves_canvas_untouched(hello_canvas):
    session = loaded_session(hello_canvas, renderer=FailingRenderer())

    with pytest.raises(RuntimeError):
        session.replace("word_000", "Hi")

    assert np.array_equal(session.canvas, hello_canvas)
    assert session.registry.get("word_000").is_edited is False
    assert len(session.history) == 0


def test_failed_redraw_keeps_previous_canvas_and_options(hello_canvas):
    renderer = FailingRenderer(fail_after=1)
    session = loaded_session(hello_canvas, renderer=renderer)
    session.replace("word_000", "Hi")
    before = session.canvas.copy()

    with pytest.raises(RuntimeError):
        session.set_options(erase_mode="white")

    assert np.array_equal(session.canvas, before)
    assert session.options.erase_mode == "perfect"


def test_background_box_drawn_behind_text(hello_canvas):
    options = EditorOptions(erase_mode="white", use_background_box=True, background_box_color="#FF0000")
    session = loaded_session(hello_canvas, options=options)

    session.replace("word_000", "Hi")

    assert (session.canvas[8:32, 8:62, :3] == (255, 0, 0)).all()
    assert (session.canvas[7, 8:62] == 255).all()


# ============================================================================
# Redraw and reset
# ============================================================================

def test_redraw_replays_stored_style(session):
    session.set_text_color("#FF0000")
    session.replace("word_000", "Hi")
    session.clear_text_color()

    session.set_options(erase_mode="white", font_family="Courier")

    draw = session.renderer.draws[-1]
    assert len(session.renderer.draws) == 2
    assert draw["color"] == "#FF0000"
    assert draw["font_family"] == "Arial"
    assert session.registry.get("word_000").style.erase_mode == "perfect"


def test_redraw_keeps_each_words_own_style():
    canvas = make_canvas(140, 50)
    session = loaded_session(canvas, words=[
        make_word("Hello", 10, 10, 60, 30),
        make_word("World", 70, 10, 120, 30),
    ])

    session.set_text_color("#FF0000")
    session.replace("word_000", "Hi")
    session.set_text_color("#0000FF")
    session.replace("word_001", "Earth", style_options=EditorOptions(
        erase_mode="white", use_background_box=True, background_box_color="#00FF00"
    ))
    session.clear_text_color()

    session.set_options(erase_mode="legacy", font_family="Courier")

    replayed = session.renderer.draws[-2:]
    assert len(session.renderer.draws) == 4
    assert [d["text"] for d in replayed] == ["Hi", "Earth"]
    assert [d["color"] for d in replayed] == ["#FF0000", "#0000FF"]
    assert [d["font_family"] for d in replayed] == ["Arial", "Arial"]

    first, second = session.registry.get("word_000"), session.registry.get("word_001")
    assert (first.style.erase_mode, first.style.background_box) == ("perfect", None)
    assert second.style.erase_mode == "white"
    assert second.style.background_box.color == "#00FF00"
    # the second word's padded box survives the redraw, the first has none
    assert (session.canvas[8:32, 68:122, :3] == (0, 255, 0)).all()
    assert (session.canvas[8:32, 8:62] == 255).all()


def test_set_options_without_change_skips_redraw(session):
    session.replace("word_000", "Hi")
    session.set_options(erase_mode="perfect")
    assert len(session.renderer.draws) == 1


def test_reset_restores_original(session, hello_canvas):
    session.replace("word_000", "Hi")
    session.reset()

    assert np.array_equal(session.canvas, hello_canvas)
    assert session.registry.get("word_000").text == "Hello"
    assert len(session.history) == 0


def test_remove_history_entry(session):
    entry = session.replace("word_000", "Hi")
    assert session.remove_history_entry(entry.id) is True
    assert session.history.entries == []


# ============================================================================
# Recognition lifecycle
# ============================================================================

def test_load_image_rejects_non_rgba():
    with pytest.raises(InvalidInputError):
        Compositor(renderer=FakeRenderer()).load_image(np.zeros((10, 10, 3), dtype=np.uint8))


def test_stale_recognition_result_is_dropped(hello_canvas, white_canvas):
    session = Compositor(renderer=FakeRenderer())
    first = session.load_image(hello_canvas)
    session.begin_recognition()
    session.load_image(white_canvas)

    result = RecognitionResult(words=[make_word("Hello", 10, 10, 60, 30)])
    assert session.complete_recognition(first, result) is False
    assert len(session.registry) == 0
    assert session.state is SessionState.LOADED


def test_failed_recognition_blocks_editing(hello_canvas):
    session = Compositor(renderer=FakeRenderer())
    session.load_image(hello_canvas)

    with pytest.raises(RecognitionFailureError):
        session.recognize(FakeEngine(error=RuntimeError("engine crashed")))

    assert session.state is SessionState.RECOGNITION_FAILED
    assert isinstance(session.recognition_error, RecognitionFailureError)
    with pytest.raises(RecognitionFailureError):
        session.replace("word_000", "Hi")


def test_new_image_after_failure_allows_editing(hello_canvas):
    session = Compositor(renderer=FakeRenderer())
    session.load_image(hello_canvas)
    with pytest.raises(RecognitionFailureError):
        session.recognize(FakeEngine(error=RecognitionFailureError("boom")))

    session.load_image(hello_canvas)
    session.recognize(FakeEngine(words=[make_word("Hello", 10, 10, 60, 30)]))

    assert session.state is SessionState.RECOGNITION_COMPLETE
    session.replace("word_000", "Hi")


def test_run_recognition_in_background(hello_canvas):
    session = Compositor(renderer=FakeRenderer())
    session.load_image(hello_canvas)
    progress = []
    engine = FakeEngine(words=[make_word("Hello", 10, 10, 60, 30)])

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = session.run_recognition(
            engine, progress_callback=lambda status, fraction: progress.append(fraction),
            executor=executor
        )
        result = future.result(timeout=5)

    assert [w.text for w in result.words] == ["Hello"]
    assert session.state is SessionState.RECOGNITION_COMPLETE
    assert progress == [0.5]
    assert "word_000" in session.registry


# ============================================================================
# Pointer and eyedropper
# ============================================================================

def test_pointer_click_selects_word(session):
    word = session.pointer_click(20, 20)
    assert word.id == "word_000"
    assert word.is_selected

    assert session.pointer_click(90, 45) is None
    assert session.registry.selected is None
    assert session.pointer_click(500, 500) is None


def test_eyedropper_picks_color(session):
    assert session.pointer_move(20, 20) is None

    assert session.toggle_eyedropper() is True
    assert session.pointer_move(20, 20) == "#000000"
    assert session.pointer_move(-1, 20) is None

    pick = session.pointer_click(5, 5)
    assert pick == ColorPick(5, 5, "#FFFFFF")
    assert session.text_color == "#FFFFFF"
    assert session.eyedropper_active is False
    assert session.registry.selected is None


# ============================================================================
# Output
# ============================================================================

def test_preview_overlay_leaves_canvas_clean(hello_canvas):
    session = loaded_session(hello_canvas, options=EditorOptions(show_bounding_boxes=True))

    preview = session.preview()

    assert tuple(preview[10, 30]) == (239, 68, 68, 255)
    assert tuple(session.canvas[10, 30]) == (255, 255, 255, 255)


def test_preview_without_overlay_is_copy(session):
    preview = session.preview()
    assert np.array_equal(preview, session.canvas)
    assert preview is not session.canvas


def test_export_png(session):
    data = session.export_png()
    assert data.startswith(b"\x89PNG")
