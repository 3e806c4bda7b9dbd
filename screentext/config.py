"""
Configuration Module
기본 설정값, 편집 옵션, 로깅 설정
"""
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

from .errors import InvalidInputError

# ============================================================================
# CONFIGURATION
# ============================================================================

# 프로젝트 루트 (fonts/ 폴더가 있는 위치)
BASE_DIR = Path(__file__).parent.parent

CONFIG = {
    # 업로드 검증
    "max_upload_bytes": 10 * 1024 * 1024,

    # OCR
    "ocr_language": "eng",
    "ocr_min_confidence": 0,

    # 폰트
    "fonts_dir": str(BASE_DIR / "fonts"),
    "default_font_family": "Arial",

    # 폰트 크기 보정
    "font_size_min": 8,
    "font_size_max": 72,
    "font_calibration_max_iterations": 50,
    "font_calibration_tolerance": 2,

    # 교체 기록
    "history_limit": 5,
}

ERASE_MODES = ("perfect", "legacy", "white")


@dataclass(frozen=True)
class EditorOptions:
    """사용자가 변경할 수 있는 편집 옵션 (변경 시 전체 다시 그리기)"""
    erase_mode: str = "perfect"
    font_family: str = CONFIG["default_font_family"]
    show_bounding_boxes: bool = False
    use_background_box: bool = False
    background_box_padding_top: int = 2
    background_box_padding_bottom: int = 2
    background_box_padding_left: int = 2
    background_box_padding_right: int = 2
    background_box_color: str = "#FFFFFF"

    def __post_init__(self):
        from .color_sampler import validate_color  # color_sampler -> models -> config 순환 참조

        if self.erase_mode not in ERASE_MODES:
            raise InvalidInputError(f"Unknown erase mode: {self.erase_mode}")
        # 잘못된 색상은 지우기 전에 거부
        object.__setattr__(self, "background_box_color", validate_color(self.background_box_color))

    def with_changes(self, **changes) -> 'EditorOptions':
        """변경된 복사본 반환"""
        return replace(self, **changes)


# ============================================================================
# LOGGING SETUP
# ============================================================================

def setup_logging(level: int = None) -> logging.Logger:
    """Setup and return the package logger."""
    if level is None:
        level_name = os.environ.get("SCREENTEXT_LOG_LEVEL", "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True
    )
    return logging.getLogger("screentext")
