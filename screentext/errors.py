"""
Errors Module
편집 파이프라인 예외 정의
"""


class ScreenTextError(Exception):
    """모든 편집기 예외의 기본 클래스"""


class InvalidInputError(ScreenTextError, ValueError):
    """잘못된 파일 형식/크기, 색상 값 또는 빈 입력 (처리 전에 거부, 상태 변경 없음)"""


class RecognitionUnavailableError(ScreenTextError):
    """OCR 엔진(pytesseract / tesseract 바이너리)을 사용할 수 없음"""


class RecognitionFailureError(ScreenTextError):
    """OCR 엔진 실패 - 새 이미지를 불러올 때까지 편집 불가"""


class SamplingFailureError(ScreenTextError):
    """픽셀 읽기 실패 (범위 밖 등). 사용하는 쪽에서 기본값으로 대체"""

    def __init__(self, x: int, y: int, message: str = None):
        self.x = x
        self.y = y
        super().__init__(message or f"Pixel ({x}, {y}) is outside the image")


class ReconstructionFailureError(ScreenTextError):
    """배경 복원 실패. 흰색 채우기로 대체"""


class WordNotFoundError(ScreenTextError, KeyError):
    """존재하지 않는 단어 ID"""

    def __init__(self, word_id: str):
        self.word_id = word_id
        super().__init__(word_id)

    def __str__(self) -> str:
        return f"Word not found: {self.word_id}"
