"""
Recognition Module
Tesseract OCR로 단어 단위 텍스트와 좌표 인식
"""
import logging
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Optional, Callable

import numpy as np
from PIL import Image

from .config import CONFIG
from .errors import RecognitionUnavailableError, RecognitionFailureError
from .models import BBox

# Tesseract 임포트 (설치되어 있지 않으면 인식 기능 비활성화)
try:
    import pytesseract
    HAS_TESSERACT = True
except ImportError:
    HAS_TESSERACT = False

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], None]


@dataclass
class RecognizedWord:
    """OCR 엔진이 반환한 단어"""
    text: str
    confidence: float
    bbox: BBox
    block_num: int = 0
    line_num: int = 0

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class RecognitionResult:
    words: List[RecognizedWord] = field(default_factory=list)
    language: str = CONFIG["ocr_language"]


def words_from_tesseract_data(ocr_data: Dict, min_confidence: float = 0) -> List[RecognizedWord]:
    """pytesseract.image_to_data(DICT) 결과를 단어 목록으로 변환"""
    words = []
    n = len(ocr_data['text'])
    block_nums = ocr_data.get('block_num') or [0] * n
    line_nums = ocr_data.get('line_num') or [0] * n

    for i, raw_text in enumerate(ocr_data['text']):
        text = (raw_text or "").strip()
        conf = float(ocr_data['conf'][i])

        if not text or conf < 0 or conf < min_confidence:
            continue

        left, top = int(ocr_data['left'][i]), int(ocr_data['top'][i])
        width, height = int(ocr_data['width'][i]), int(ocr_data['height'][i])
        words.append(RecognizedWord(
            text=text,
            confidence=conf,
            bbox=BBox(left, top, left + width, top + height),
            block_num=int(block_nums[i]),
            line_num=int(line_nums[i]),
        ))
    return words


class OCREngine:
    """OCR 엔진 클래스"""

    def __init__(
        self,
        lang: str = CONFIG["ocr_language"],
        min_confidence: float = CONFIG["ocr_min_confidence"]
    ):
        self.lang = lang
        self.min_confidence = min_confidence

    @staticmethod
    def is_available() -> bool:
        return HAS_TESSERACT

    def recognize(
        self,
        image: np.ndarray,
        language: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> RecognitionResult:
        """
        이미지에서 단어와 좌표 인식

        Args:
            image: RGBA 또는 RGB 이미지 배열
            language: Tesseract 언어 코드 (기본: 엔진 설정)
            progress_callback: (status, 0~1 진행률) 콜백

        Raises:
            RecognitionUnavailableError: pytesseract 또는 tesseract 바이너리 없음
            RecognitionFailureError: 인식 중 오류
        """
        if not HAS_TESSERACT:
            raise RecognitionUnavailableError("pytesseract is not installed")

        lang = language or self.lang
        report = progress_callback or (lambda status, fraction: None)

        report("initializing", 0.0)
        pil_image = Image.fromarray(image).convert('RGB')

        report("recognizing text", 0.1)
        try:
            ocr_data = pytesseract.image_to_data(
                pil_image,
                lang=lang,
                output_type=pytesseract.Output.DICT
            )
        except pytesseract.TesseractNotFoundError as e:
            raise RecognitionUnavailableError(str(e)) from e
        except Exception as e:
            logger.error("OCR 오류: %s", e)
            raise RecognitionFailureError(str(e)) from e

        report("recognizing text", 0.9)
        words = words_from_tesseract_data(ocr_data, self.min_confidence)
        report("done", 1.0)

        logger.info("OCR complete: %d words (lang=%s)", len(words), lang)
        return RecognitionResult(words=words, language=lang)
