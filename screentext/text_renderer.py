"""
Text Renderer Module
굵은 글꼴 로드, 텍스트 측정, 캔버스에 텍스트/선택 표시 그리기
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Dict, Tuple, Optional

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .color_sampler import parse_color
from .config import CONFIG
from .models import Word

logger = logging.getLogger(__name__)

# 패밀리 이름 -> 시스템 굵은 글꼴 후보
SYSTEM_BOLD_FONTS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/usr/share/fonts/truetype/msttcorefonts/Arial_Bold.ttf",
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Bold.ttc",
    "/Library/Fonts/Arial Bold.ttf",
    "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
    "C:/Windows/Fonts/arialbd.ttf",
]


@dataclass(frozen=True)
class TextMetrics:
    """
    측정 결과

    ascent/descent는 기준선 기준 실제 글리프 범위. 비트맵 글꼴처럼
    측정할 수 없으면 None.
    """
    width: float
    ascent: Optional[float] = None
    descent: Optional[float] = None

    @property
    def has_vertical_metrics(self) -> bool:
        return self.ascent is not None and self.descent is not None


class TextRenderer:
    """굵은 글꼴 텍스트 측정/렌더러"""

    def __init__(self, fonts_dir: Optional[str] = None):
        """
        Args:
            fonts_dir: 폰트 파일 디렉토리 경로
        """
        self.fonts_dir = Path(fonts_dir) if fonts_dir else Path(CONFIG["fonts_dir"])
        self.font_cache = {}

    def get_font(self, font_family: str, font_size: int) -> ImageFont.ImageFont:
        """
        굵은 글꼴 객체 가져오기 (캐싱)

        1. fonts/ 폴더에서 패밀리 이름과 'bold'가 들어간 파일
        2. fonts/ 폴더에서 패밀리 이름이 들어간 파일
        3. 시스템 굵은 글꼴
        4. Pillow 기본 글꼴
        """
        cache_key = f"{font_family}_{font_size}"
        if cache_key in self.font_cache:
            return self.font_cache[cache_key]

        font = None
        for path in self._candidate_paths(font_family):
            try:
                font = ImageFont.truetype(str(path), font_size)
                break
            except OSError as e:
                logger.warning("폰트 로드 실패 (%s): %s", path, e)

        if font is None:
            font = ImageFont.load_default(size=font_size)

        self.font_cache[cache_key] = font
        return font

    def _candidate_paths(self, font_family: str) -> List[Path]:
        candidates = []
        family = (font_family or "").lower().replace(" ", "")

        if self.fonts_dir.exists():
            files = sorted(
                f for f in self.fonts_dir.iterdir()
                if f.suffix.lower() in (".ttf", ".otf", ".ttc")
            )
            named = [f for f in files if family and family in f.stem.lower().replace(" ", "")]
            candidates.extend(f for f in named if "bold" in f.stem.lower())
            candidates.extend(f for f in named if "bold" not in f.stem.lower())

        candidates.extend(Path(p) for p in SYSTEM_BOLD_FONTS if Path(p).exists())
        return candidates

    def measure(self, text: str, font_size: int, font_family: str) -> TextMetrics:
        """굵은 글꼴로 그렸을 때의 너비와 기준선 위/아래 범위"""
        font = self.get_font(font_family, font_size)
        width = float(font.getlength(text))

        if not isinstance(font, ImageFont.FreeTypeFont):
            return TextMetrics(width=width)

        _, top, _, bottom = font.getbbox(text, anchor="ls")
        return TextMetrics(width=width, ascent=float(-top), descent=float(bottom))

    def draw_text(
        self,
        canvas: np.ndarray,
        text: str,
        position: Tuple[float, float],
        font_size: int,
        font_family: str,
        color: str
    ) -> None:
        """
        캔버스(RGBA numpy 배열)에 텍스트를 직접 그린다

        position의 y는 알파벳 기준선.
        """
        if not text:
            return

        font = self.get_font(font_family, font_size)
        fill = parse_color(color) + (255,)
        x, y = position

        image = Image.fromarray(canvas)
        draw = ImageDraw.Draw(image)
        if isinstance(font, ImageFont.FreeTypeFont):
            draw.text((x, y), text, font=font, fill=fill, anchor="ls")
        else:
            draw.text((x, y - font_size), text, font=font, fill=fill)

        canvas[...] = np.asarray(image)


class OverlayRenderer:
    """인식된 단어 영역을 상태별 색상으로 표시한 미리보기 생성"""

    DEFAULT_COLORS = {
        'selected': (0, 255, 0),
        'edited': (0, 102, 255),
        'detected': (239, 68, 68),
    }

    def __init__(self, highlight_colors: Optional[Dict[str, Tuple[int, int, int]]] = None):
        self.colors = dict(self.DEFAULT_COLORS)
        if highlight_colors:
            self.colors.update(highlight_colors)

    def preview_with_highlights(self, canvas: np.ndarray, words: List[Word]) -> np.ndarray:
        """선택: 녹색 + 반투명 채우기, 편집됨: 파랑, 인식됨: 빨강"""
        base = Image.fromarray(canvas)
        layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)

        for word in words:
            b = word.bbox
            box = [b.x0, b.y0, max(b.x0, b.x1 - 1), max(b.y0, b.y1 - 1)]

            if word.is_selected:
                color = self.colors['selected']
                draw.rectangle(box, fill=color + (51,), outline=color + (255,), width=3)
            elif word.is_edited:
                draw.rectangle(box, outline=self.colors['edited'] + (255,), width=2)
            else:
                draw.rectangle(box, outline=self.colors['detected'] + (255,), width=2)

        return np.asarray(Image.alpha_composite(base, layer)).copy()
