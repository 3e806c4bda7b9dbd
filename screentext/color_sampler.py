"""
Color Sampler Module
픽셀/영역 색상 추출 및 색상 형식 변환
"""
import logging
import math
import re
from typing import Optional, Tuple, Union

import numpy as np

from .errors import InvalidInputError, SamplingFailureError
from .models import BBox

logger = logging.getLogger(__name__)

DEFAULT_TEXT_COLOR = "#000000"

_RGB_PATTERN = re.compile(r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")


def round_half_up(value: float) -> int:
    """0.5는 올림 (파이썬 round의 짝수 반올림과 다름)"""
    return int(math.floor(value + 0.5))


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """RGB -> HEX 변환 (#RRGGBB, 대문자)"""
    return '#{:02X}{:02X}{:02X}'.format(int(r), int(g), int(b))


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """HEX -> RGB 변환"""
    hex_color = hex_color.strip().lstrip('#')
    if len(hex_color) != 6:
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))


def parse_color(color: Union[str, Tuple[int, ...]]) -> Tuple[int, int, int]:
    """HEX 문자열, 'rgb(r, g, b)' 문자열, 튜플 모두 RGB 튜플로"""
    if isinstance(color, str):
        match = _RGB_PATTERN.match(color.strip())
        rgb = tuple(int(v) for v in match.groups()) if match else hex_to_rgb(color)
    else:
        rgb = tuple(int(v) for v in color[:3])

    if len(rgb) != 3 or any(not 0 <= v <= 255 for v in rgb):
        raise ValueError(f"Invalid color: {color!r}")
    return rgb


def validate_color(color: Union[str, Tuple[int, ...]]) -> str:
    """사용자 입력 색상 검증 후 #RRGGBB로 정규화. 잘못된 값은 InvalidInputError"""
    try:
        return rgb_to_hex(*parse_color(color))
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Invalid color: {color!r}") from e


class ColorSampler:
    """RGBA 캔버스(numpy 배열)에서 색상을 읽는다"""

    def __init__(self, canvas: np.ndarray):
        self.canvas = canvas

    @property
    def height(self) -> int:
        return self.canvas.shape[0]

    @property
    def width(self) -> int:
        return self.canvas.shape[1]

    def sample_at(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """단일 픽셀 읽기. 범위 밖이면 SamplingFailureError"""
        x, y = int(x), int(y)
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise SamplingFailureError(x, y)
        return tuple(int(v) for v in self.canvas[y, x])

    def sample_text_color(self, bbox: BBox) -> str:
        """
        박스 중심 픽셀을 글자색으로 사용

        배경 복원 전에 호출해야 한다. 실패 시 검정.
        """
        cx, cy = bbox.center
        try:
            r, g, b, _ = self.sample_at(cx, cy)
        except SamplingFailureError as e:
            logger.warning("Text color sampling failed, using black: %s", e)
            return DEFAULT_TEXT_COLOR

        color = rgb_to_hex(r, g, b)
        logger.debug("Sampled text color at (%d, %d): %s", cx, cy, color)
        return color

    def sample_average(
        self,
        bbox: BBox,
        stride: int = 1,
        exclude: Optional[BBox] = None
    ) -> Tuple[int, int, int]:
        """
        영역 픽셀의 R, G, B 산술 평균

        Args:
            stride: 격자 간격 (영역 좌상단 기준)
            exclude: 제외할 박스 (경계 포함)
        """
        xs = np.arange(bbox.x0, bbox.x1, stride)
        ys = np.arange(bbox.y0, bbox.y1, stride)
        gx, gy = np.meshgrid(xs, ys, indexing='ij')
        gx, gy = gx.ravel(), gy.ravel()

        keep = (gx >= 0) & (gy >= 0) & (gx < self.width) & (gy < self.height)
        if exclude is not None:
            keep &= ~(
                (gx >= exclude.x0) & (gx <= exclude.x1) &
                (gy >= exclude.y0) & (gy <= exclude.y1)
            )
        if not keep.any():
            raise SamplingFailureError(bbox.x0, bbox.y0, f"Empty sampling region {bbox}")

        pixels = self.canvas[gy[keep], gx[keep], :3].astype(np.float64)
        return tuple(round_half_up(v) for v in pixels.mean(axis=0))

    def pick(self, x: int, y: int) -> str:
        """스포이트: 좌표의 색상을 HEX로. 실패 시 검정"""
        try:
            r, g, b, _ = self.sample_at(x, y)
        except SamplingFailureError as e:
            logger.debug("Color pick failed: %s", e)
            return DEFAULT_TEXT_COLOR
        return rgb_to_hex(r, g, b)
