"""
Exporter Module
편집된 캔버스 출력 (PNG)
"""
import logging
from io import BytesIO
from pathlib import Path

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)


class PNGExporter:
    """PNG 이미지 출력 (무손실, 원본 해상도)"""

    def __init__(self, dpi: int = 150):
        self.dpi = dpi

    def export_to_bytes(self, canvas: np.ndarray) -> bytes:
        """메모리에서 PNG 바이트로 변환"""
        buffer = BytesIO()
        Image.fromarray(canvas).save(buffer, format='PNG', dpi=(self.dpi, self.dpi))
        return buffer.getvalue()

    def export(self, canvas: np.ndarray, output_path: str) -> str:
        """PNG 파일로 내보내기"""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.export_to_bytes(canvas))
        logger.info("Exported PNG: %s", output_path)
        return str(output_path)
