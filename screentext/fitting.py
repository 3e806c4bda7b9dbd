"""
Text Fitting Module
빈 박스에 맞는 글꼴 크기 보정 및 텍스트 기준선 위치 계산
"""
import logging
import math
from dataclasses import dataclass
from typing import Tuple

from .config import CONFIG

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FontFit:
    font_size: int
    measured_width: float
    iterations: int
    converged: bool


class FontCalibrator:
    """
    측정된 텍스트 너비가 목표 너비에 맞는 글꼴 크기 탐색

    높이 기반 추정값(높이 x 0.9)에서 시작하여 1px씩 조정한다.
    측정 횟수는 max_iterations로 제한되며 수렴하지 않아도 마지막 크기를 반환한다.

    Args:
        measurer: measure(text, font_size, font_family) -> TextMetrics 를 제공하는 객체
    """

    def __init__(
        self,
        measurer,
        min_size: int = CONFIG["font_size_min"],
        max_size: int = CONFIG["font_size_max"],
        tolerance: float = CONFIG["font_calibration_tolerance"],
        max_iterations: int = CONFIG["font_calibration_max_iterations"]
    ):
        self.measurer = measurer
        self.min_size = min_size
        self.max_size = max_size
        self.tolerance = tolerance
        self.max_iterations = max_iterations

    def _clamp(self, size: int) -> int:
        return max(self.min_size, min(self.max_size, size))

    def fit(
        self,
        text: str,
        target_width: float,
        target_height: float,
        font_family: str
    ) -> FontFit:
        font_size = self._clamp(int(math.floor(target_height * 0.9)))
        width = 0.0
        iterations = 0
        converged = False

        while iterations < self.max_iterations:
            width = self.measurer.measure(text, font_size, font_family).width
            iterations += 1

            if abs(width - target_width) <= self.tolerance:
                converged = True
                break

            if width > target_width:
                font_size = self._clamp(font_size - 1)
            else:
                font_size = self._clamp(font_size + 1)

        logger.debug(
            "Font size calculated: %dpx for text %r (target: %sx%s, %d iterations, converged=%s)",
            font_size, text, target_width, target_height, iterations, converged
        )
        return FontFit(font_size, width, iterations, converged)

    def calculate_font_size(
        self,
        text: str,
        target_width: float,
        target_height: float,
        font_family: str
    ) -> int:
        return self.fit(text, target_width, target_height, font_family).font_size


class TextPlacer:
    """글리프의 시각적 바닥이 박스 하단에 닿도록 그리기 기준점 계산"""

    DESCENT_RATIO = 0.2

    def __init__(self, measurer):
        self.measurer = measurer

    def place(
        self,
        text: str,
        font_size: int,
        font_family: str,
        bbox_x0: float,
        bbox_y0: float,
        bbox_y1: float
    ) -> Tuple[float, float]:
        """
        Returns:
            (x, y) - y는 알파벳 기준선
        """
        metrics = self.measurer.measure(text, font_size, font_family)
        x = bbox_x0

        if metrics.has_vertical_metrics:
            y = bbox_y1 - metrics.descent
            logger.debug("Perfect positioning: ascent=%s, descent=%s, y=%s", metrics.ascent, metrics.descent, y)
        else:
            # 측정값이 없으면 하강부를 크기의 20%로 근사
            y = bbox_y1 - font_size * self.DESCENT_RATIO
            logger.debug("Fallback positioning: y=%s", y)

        return x, y
