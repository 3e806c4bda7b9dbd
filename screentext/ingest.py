"""
Ingest Module
업로드 파일 검증 및 RGBA 래스터 디코딩
"""
import logging
from typing import Optional

import cv2
import numpy as np

from .config import CONFIG
from .errors import InvalidInputError

logger = logging.getLogger(__name__)


def validate_upload(mime_type: Optional[str], size: int, max_bytes: int = None) -> None:
    """이미지 MIME 타입과 크기(기본 10MB 이하) 확인"""
    max_bytes = CONFIG["max_upload_bytes"] if max_bytes is None else max_bytes

    if not mime_type or not mime_type.startswith("image/"):
        raise InvalidInputError(f"Invalid file type: {mime_type!r} (image/* required)")
    if size > max_bytes:
        raise InvalidInputError(
            f"File too large: {size} bytes (limit {max_bytes // (1024 * 1024)}MB)"
        )


def decode_image(data: bytes) -> np.ndarray:
    """
    이미지 바이트를 원본 해상도의 RGBA 배열로 디코딩

    Returns:
        (height, width, 4) uint8 RGBA 배열
    """
    buffer = np.frombuffer(data, np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED) if buffer.size else None
    if image is None:
        raise InvalidInputError("Could not decode image data")

    if image.dtype != np.uint8:
        # 16비트 PNG 등은 8비트로 축소
        image = (image / 257).astype(np.uint8)

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    if image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)


def load_upload(data: bytes, mime_type: Optional[str], size: Optional[int] = None) -> np.ndarray:
    """검증 후 디코딩. 검증 실패 시 디코딩하지 않는다"""
    validate_upload(mime_type, len(data) if size is None else size)
    image = decode_image(data)
    logger.info("Loaded image %dx%d (%s)", image.shape[1], image.shape[0], mime_type)
    return image
