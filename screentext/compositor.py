"""
Compositor Module
단어 교체 파이프라인과 편집 세션 상태 관리

샘플링 -> 배경 복원 -> 글꼴 보정 -> 배치 -> 그리기 -> 기록 순서로 진행하며,
전체 다시 그리기 시 편집된 모든 단어를 저장된 스타일로 재생한다.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, Executor
from dataclasses import dataclass, replace as replace_fields
from enum import Enum
from typing import List, Optional

import numpy as np

from .color_sampler import ColorSampler, DEFAULT_TEXT_COLOR, validate_color
from .config import CONFIG, EditorOptions
from .errors import (
    ScreenTextError,
    InvalidInputError,
    RecognitionFailureError,
)
from .exporter import PNGExporter
from .fitting import FontCalibrator, TextPlacer
from .models import (
    BBox,
    Word,
    EditStyle,
    BackgroundBoxStyle,
    ReplacementHistory,
    ReplacementHistoryEntry,
)
from .reconstructor import create_eraser, fill_rect
from .recognition import RecognitionResult, ProgressCallback
from .registry import WordRegistry
from .text_renderer import TextRenderer, OverlayRenderer

logger = logging.getLogger(__name__)


class SessionState(Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    RECOGNITION_PENDING = "recognition_pending"
    RECOGNITION_COMPLETE = "recognition_complete"
    RECOGNITION_FAILED = "recognition_failed"


@dataclass(frozen=True)
class ColorPick:
    x: int
    y: int
    color: str


class Compositor:
    """
    편집 세션 (이미지 하나당 하나)

    캔버스와 단어 집합은 이 객체만 수정한다. 모든 변경은 세션 잠금 안에서
    끝까지 실행되므로 두 교체 작업이 섞이지 않는다.

    Args:
        options: 현재 편집 옵션
        renderer: draw_text(...)를 제공하는 텍스트 렌더러
        measurer: measure(...)를 제공하는 측정기 (기본: renderer)
    """

    def __init__(
        self,
        options: Optional[EditorOptions] = None,
        renderer=None,
        measurer=None,
        history_limit: int = CONFIG["history_limit"]
    ):
        self.options = options or EditorOptions()
        self.renderer = renderer or TextRenderer()
        measurer = measurer or self.renderer
        self.calibrator = FontCalibrator(measurer)
        self.placer = TextPlacer(measurer)
        self.overlay = OverlayRenderer()
        self.exporter = PNGExporter()

        self.registry = WordRegistry()
        self.history = ReplacementHistory(history_limit)

        self.state = SessionState.EMPTY
        self.base_image: Optional[np.ndarray] = None
        self.canvas: Optional[np.ndarray] = None
        self.generation = 0
        self.recognition_error: Optional[Exception] = None

        self.text_color: Optional[str] = None
        self.eyedropper_active = False

        self._erasers = {}
        self._executor: Optional[Executor] = None
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # 이미지 / 인식 수명주기
    # ------------------------------------------------------------------
    def load_image(self, raster: np.ndarray) -> int:
        """
        새 이미지 설치. 이전 단어/기록/진행 중인 인식 결과는 모두 무효가 된다

        Returns:
            이번 이미지의 세대 번호
        """
        if raster.ndim != 3 or raster.shape[2] != 4 or raster.dtype != np.uint8:
            raise InvalidInputError(f"Expected an RGBA uint8 raster, got {raster.dtype} {raster.shape}")

        with self._lock:
            self.base_image = raster.copy()
            self.canvas = raster.copy()
            self.registry.clear()
            self.history.clear()
            self.text_color = None
            self.eyedropper_active = False
            self.recognition_error = None
            self.generation += 1
            self.state = SessionState.LOADED
            logger.info("Image loaded (%dx%d), generation %d", raster.shape[1], raster.shape[0], self.generation)
            return self.generation

    def begin_recognition(self) -> int:
        with self._lock:
            if self.base_image is None:
                raise ScreenTextError("No image loaded")
            self.state = SessionState.RECOGNITION_PENDING
            return self.generation

    def complete_recognition(self, generation: int, result: RecognitionResult) -> bool:
        """인식 결과 설치. 이후 다른 이미지가 로드되었으면 버리고 False"""
        with self._lock:
            if generation != self.generation:
                logger.warning(
                    "Dropping stale recognition result (generation %d, current %d)",
                    generation, self.generation
                )
                return False

            self.registry.load(result.words)
            self.state = SessionState.RECOGNITION_COMPLETE
            logger.info("Recognition complete: %d words", len(self.registry))
            return True

    def fail_recognition(self, generation: int, error: Exception) -> bool:
        with self._lock:
            if generation != self.generation:
                return False
            self.registry.clear()
            self.recognition_error = error
            self.state = SessionState.RECOGNITION_FAILED
            logger.error("Recognition failed: %s", error)
            return True

    def recognize(
        self,
        engine,
        language: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> RecognitionResult:
        """현재 스레드에서 인식 실행 후 결과 설치"""
        generation = self.begin_recognition()
        return self._recognition_task(generation, self.base_image, engine, language, progress_callback)

    def run_recognition(
        self,
        engine,
        language: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
        executor: Optional[Executor] = None
    ) -> Future:
        """인식을 백그라운드에서 실행. 완료 시 세대가 같을 때만 결과 설치"""
        generation = self.begin_recognition()
        image = self.base_image

        if executor is None:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="recognition")
            executor = self._executor

        return executor.submit(
            self._recognition_task, generation, image, engine, language, progress_callback
        )

    def _recognition_task(self, generation, image, engine, language, progress_callback) -> RecognitionResult:
        try:
            result = engine.recognize(image, language, progress_callback)
        except ScreenTextError as e:
            self.fail_recognition(generation, e)
            raise
        except Exception as e:
            error = RecognitionFailureError(str(e))
            self.fail_recognition(generation, error)
            raise error from e

        self.complete_recognition(generation, result)
        return result

    # ------------------------------------------------------------------
    # 선택
    # ------------------------------------------------------------------
    @property
    def words(self) -> List[Word]:
        return list(self.registry)

    def select(self, word_id: str) -> Optional[Word]:
        with self._lock:
            return self.registry.select(word_id)

    def clear_selection(self) -> None:
        with self._lock:
            self.registry.clear_selection()

    # ------------------------------------------------------------------
    # 교체
    # ------------------------------------------------------------------
    def replace(
        self,
        word_id: str,
        new_text: str,
        style_options: Optional[EditorOptions] = None
    ) -> ReplacementHistoryEntry:
        """
        단어 교체

        Raises:
            WordNotFoundError: 없는 단어 (캔버스/단어 변경 없음)
            InvalidInputError: 빈 텍스트 또는 잘못된 색상
            RecognitionFailureError: 인식 실패 후 편집 시도
        """
        with self._lock:
            if self.state is SessionState.RECOGNITION_FAILED:
                raise RecognitionFailureError("Recognition failed; load a new image to continue editing")

            word = self.registry.get(word_id)
            if not new_text or not new_text.strip():
                raise InvalidInputError("Replacement text is empty")

            options = style_options or self.options

            # 배경을 덮어쓰기 전에 원래 글자색을 읽는다
            sampled_color = ColorSampler(self.canvas).sample_text_color(word.bbox)
            color = self.text_color or sampled_color

            style = EditStyle(
                color=color,
                font_family=options.font_family,
                erase_mode=options.erase_mode,
                background_box=self._background_box(options),
            )
            # 복사본에 그린 뒤 모든 단계가 끝나면 한 번에 반영
            canvas = self.canvas.copy()
            font_size = self._paint_word(canvas, word.bbox, new_text, style)

            self.canvas = canvas
            self.registry.clear_selection()
            self.registry.apply_edit(word_id, new_text, replace_fields(style, font_size=font_size))
            entry = self.history.push(word.original_text, new_text)

            logger.info("Replaced %r with %r (%s, %dpx, %s)", entry.old_text, new_text, word_id, font_size, color)
            return entry

    @staticmethod
    def _background_box(options: EditorOptions) -> Optional[BackgroundBoxStyle]:
        if not options.use_background_box:
            return None
        return BackgroundBoxStyle(
            padding_top=options.background_box_padding_top,
            padding_bottom=options.background_box_padding_bottom,
            padding_left=options.background_box_padding_left,
            padding_right=options.background_box_padding_right,
            color=options.background_box_color,
        )

    def _eraser(self, mode: str):
        if mode not in self._erasers:
            self._erasers[mode] = create_eraser(mode)
        return self._erasers[mode]

    def _paint_word(self, canvas: np.ndarray, bbox: BBox, text: str, style: EditStyle) -> int:
        """지우기 -> 배경 박스 -> 크기 보정 -> 배치 -> 그리기. 사용한 글꼴 크기 반환"""
        self._eraser(style.erase_mode).erase(canvas, bbox)

        if style.background_box is not None:
            fill_rect(canvas, style.background_box.apply(bbox), style.background_box.color)

        font_size = self.calibrator.calculate_font_size(text, bbox.width, bbox.height, style.font_family)
        position = self.placer.place(text, font_size, style.font_family, bbox.x0, bbox.y0, bbox.y1)
        self.renderer.draw_text(canvas, text, position, font_size, style.font_family, style.color)
        return font_size

    # ------------------------------------------------------------------
    # 다시 그리기 / 초기화
    # ------------------------------------------------------------------
    def redraw(self) -> None:
        """원본 이미지 위에 편집된 단어를 등록 순서대로 저장된 스타일로 재생"""
        with self._lock:
            if self.base_image is None:
                return

            canvas = self.base_image.copy()
            edited = self.registry.edited_words()
            for word in edited:
                style = word.style or EditStyle(
                    color=word.custom_color or DEFAULT_TEXT_COLOR,
                    font_family=self.options.font_family,
                    erase_mode=self.options.erase_mode,
                    background_box=word.background_box,
                )
                self._paint_word(canvas, word.bbox, word.text, style)

            self.canvas = canvas
            logger.debug("Redraw complete: replayed %d edits", len(edited))

    def set_options(self, **changes) -> EditorOptions:
        """옵션 변경. 값이 바뀌면 전체 다시 그리기"""
        with self._lock:
            options = self.options.with_changes(**changes)
            if options != self.options:
                previous, self.options = self.options, options
                try:
                    self.redraw()
                except Exception:
                    self.options = previous
                    raise
            return self.options

    def reset(self) -> None:
        """모든 단어를 원래 텍스트로, 기록 비우기, 원본 이미지 다시 그리기"""
        with self._lock:
            self.registry.reset()
            self.history.clear()
            self.redraw()
            logger.info("Reset to original image")

    # ------------------------------------------------------------------
    # 포인터 / 스포이트
    # ------------------------------------------------------------------
    def _in_bounds(self, x: int, y: int) -> bool:
        if self.canvas is None:
            return False
        h, w = self.canvas.shape[:2]
        return 0 <= x < w and 0 <= y < h

    def toggle_eyedropper(self) -> bool:
        self.eyedropper_active = not self.eyedropper_active
        return self.eyedropper_active

    def set_text_color(self, color: Optional[str]) -> None:
        """사용자 지정 글자색 (None이면 자동 감지 사용). 잘못된 값은 InvalidInputError"""
        self.text_color = None if color is None else validate_color(color)

    def clear_text_color(self) -> None:
        self.text_color = None

    def pointer_click(self, x: int, y: int):
        """
        스포이트 모드: 색상을 집어 글자색으로 설정하고 ColorPick 반환
        일반 모드: 좌표의 단어 선택 (없으면 선택 해제) 후 Word 또는 None 반환
        """
        with self._lock:
            if not self._in_bounds(x, y):
                return None

            if self.eyedropper_active:
                color = ColorSampler(self.canvas).pick(x, y)
                self.text_color = color
                self.eyedropper_active = False
                logger.info("Color picked at (%d, %d): %s", x, y, color)
                return ColorPick(x, y, color)

            word = self.registry.find_at(x, y)
            if word is None:
                self.registry.clear_selection()
                return None
            return self.registry.select(word.id)

    def pointer_move(self, x: int, y: int) -> Optional[str]:
        """스포이트 모드에서 커서 위치 색상 미리보기"""
        if not self.eyedropper_active or not self._in_bounds(x, y):
            return None
        return ColorSampler(self.canvas).pick(x, y)

    # ------------------------------------------------------------------
    # 출력
    # ------------------------------------------------------------------
    def preview(self) -> Optional[np.ndarray]:
        """화면 표시용 캔버스 복사본 (옵션에 따라 단어 영역 표시)"""
        with self._lock:
            if self.canvas is None:
                return None
            if not self.options.show_bounding_boxes:
                return self.canvas.copy()
            return self.overlay.preview_with_highlights(self.canvas, self.registry.visible_words())

    def export_png(self) -> bytes:
        with self._lock:
            if self.canvas is None:
                raise ScreenTextError("No image to export")
            return self.exporter.export_to_bytes(self.canvas)

    def remove_history_entry(self, entry_id: str) -> bool:
        return self.history.remove(entry_id)
