"""
Background Reconstructor Module
단어 영역 제거 및 배경 복원 (단색 / 그라데이션 / 텍스처 합성)
"""
import logging
from dataclasses import dataclass
from typing import List, Tuple, Optional, Union

import numpy as np

from .color_sampler import ColorSampler, parse_color, round_half_up
from .errors import ReconstructionFailureError, SamplingFailureError
from .models import (
    BBox,
    BorderSample,
    SolidBackground,
    GradientBackground,
    TexturedBackground,
)

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255, 255)

SAMPLE_STRIDE = 2
EDGE_BUFFER = 2          # 글자 잉크를 피하기 위해 박스 경계에서 띄우는 거리
SOLID_VARIANCE = 100
GRADIENT_VARIANCE = 1000

PATCH_SIZE = 9
PATCH_STRIDE = 2
BLOCK_SIZE = 16
BLOCK_OVERLAP = 4

BackgroundClassification = Union[SolidBackground, GradientBackground, TexturedBackground]


@dataclass(frozen=True)
class ReconstructionResult:
    """
    복원 결과

    method: 실제로 사용된 채우기 방식
        ('solid', 'gradient', 'textured', 'legacy', 'white', 'empty')
    """
    method: str
    classification: Optional[BackgroundClassification] = None
    fill_color: Optional[Tuple[int, int, int, int]] = None


def clip_box(canvas: np.ndarray, bbox: BBox) -> Tuple[int, int, int, int]:
    """박스를 이미지 범위로 자르기"""
    h, w = canvas.shape[:2]
    return (
        min(max(bbox.x0, 0), w),
        min(max(bbox.y0, 0), h),
        min(max(bbox.x1, 0), w),
        min(max(bbox.y1, 0), h),
    )


def fill_rect(canvas: np.ndarray, bbox: BBox, color) -> None:
    """사각형 단색 채우기 (이미지 범위로 자름)"""
    x0, y0, x1, y1 = clip_box(canvas, bbox)
    if x1 <= x0 or y1 <= y0:
        return
    if isinstance(color, str):
        color = parse_color(color) + (255,)
    rgba = tuple(color) + (255,) * (4 - len(color))
    canvas[y0:y1, x0:x1] = np.array(rgba, dtype=np.uint8)


def _to_uint8(values: np.ndarray) -> np.ndarray:
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)


class BackgroundReconstructor:
    """
    주변 배경을 분석하여 단어 영역을 자연스럽게 채우는 인페인터

    1. 박스 주변 네 개의 띠에서 테두리 샘플 수집
    2. 샘플 분산으로 배경 유형 분류 (단색 / 그라데이션 / 텍스처)
    3. 유형별 복원 (단색 채우기 / 역거리 가중 보간 / 패치 합성)

    어느 단계에서든 실패하면 흰색으로 채운다. 채우기 결과는 별도 버퍼에서
    계산한 뒤 한 번에 기록하므로 일부만 그려진 상태가 남지 않는다.
    """

    def __init__(
        self,
        patch_size: int = PATCH_SIZE,
        block_size: int = BLOCK_SIZE,
        block_overlap: int = BLOCK_OVERLAP
    ):
        if block_overlap >= block_size:
            raise ValueError("block_overlap must be smaller than block_size")
        self.patch_size = patch_size
        self.block_size = block_size
        self.block_overlap = block_overlap

    # ------------------------------------------------------------------
    # 테두리 분석
    # ------------------------------------------------------------------
    @staticmethod
    def border_margin(bbox: BBox) -> int:
        return int(max(5, min(bbox.width, bbox.height) * 0.3))

    def analyze_border(self, canvas: np.ndarray, bbox: BBox) -> List[BorderSample]:
        """박스 바깥 띠(위/아래/왼쪽/오른쪽)의 픽셀을 2px 간격으로 샘플링"""
        h, w = canvas.shape[:2]
        m = self.border_margin(bbox)
        x0, y0, x1, y1 = bbox.x0, bbox.y0, bbox.x1, bbox.y1
        stride = SAMPLE_STRIDE
        gap = EDGE_BUFFER

        strips = [
            # 위: 박스 상단 2px 전까지
            (np.arange(x0 - m, x1 + m + 1, stride), np.arange(y0 - m, y0 - gap, stride)),
            # 아래: 박스 하단 2px 후부터
            (np.arange(x0 - m, x1 + m + 1, stride), np.arange(y1 + gap, y1 + m + 1, stride)),
            # 왼쪽
            (np.arange(x0 - m, x0 - gap, stride), np.arange(y0 - gap, y1 + gap + 1, stride)),
            # 오른쪽
            (np.arange(x1 + gap, x1 + m + 1, stride), np.arange(y0 - gap, y1 + gap + 1, stride)),
        ]

        samples = []
        for xs, ys in strips:
            if xs.size == 0 or ys.size == 0:
                continue
            gx, gy = np.meshgrid(xs, ys, indexing='ij')
            gx, gy = gx.ravel(), gy.ravel()
            inside = (gx >= 0) & (gy >= 0) & (gx < w) & (gy < h)
            gx, gy = gx[inside], gy[inside]
            pixels = canvas[gy, gx]
            samples.extend(
                BorderSample(int(x), int(y), int(p[0]), int(p[1]), int(p[2]), int(p[3]))
                for x, y, p in zip(gx, gy, pixels)
            )

        logger.debug(
            "Background analysis: sampled %d border pixels for area (%d,%d) to (%d,%d)",
            len(samples), x0, y0, x1, y1
        )
        return samples

    @staticmethod
    def classify(samples: List[BorderSample]) -> BackgroundClassification:
        """테두리 샘플의 평균 채널 분산으로 배경 유형 결정"""
        if not samples:
            return SolidBackground(WHITE)

        rgb = np.array([(s.r, s.g, s.b) for s in samples], dtype=np.float64)
        mean = rgb.mean(axis=0)
        variance = float(((rgb - mean) ** 2).sum() / (len(samples) * 3))

        if variance < SOLID_VARIANCE:
            r, g, b = (round_half_up(v) for v in mean)
            return SolidBackground((r, g, b, 255))
        elif variance < GRADIENT_VARIANCE:
            return GradientBackground(samples)
        return TexturedBackground(samples)

    # ------------------------------------------------------------------
    # 복원
    # ------------------------------------------------------------------
    def reconstruct(self, canvas: np.ndarray, bbox: BBox) -> ReconstructionResult:
        """단어 영역을 주변 배경으로 덮어쓰기 (캔버스를 직접 수정)"""
        x0, y0, x1, y1 = clip_box(canvas, bbox)
        if x1 <= x0 or y1 <= y0:
            return ReconstructionResult(method="empty")

        try:
            samples = self.analyze_border(canvas, bbox)
            classification = self.classify(samples)
            method, fill = self._render(canvas, (x0, y0, x1, y1), classification)
        except Exception as e:
            logger.warning("Background matching failed, using white fallback: %s", e, exc_info=True)
            fill_rect(canvas, bbox, WHITE)
            return ReconstructionResult(method="white", fill_color=WHITE)

        canvas[y0:y1, x0:x1] = fill
        logger.debug("Reconstructed %s as %s (%s)", bbox, classification.kind, method)
        return ReconstructionResult(
            method=method,
            classification=classification,
            fill_color=classification.color if method == "solid" else None
        )

    # 인페인터 공통 인터페이스
    erase = reconstruct

    def _render(self, canvas, region, classification) -> Tuple[str, np.ndarray]:
        x0, y0, x1, y1 = region

        if classification.kind == "solid":
            fill = np.empty((y1 - y0, x1 - x0, 4), dtype=np.uint8)
            fill[:] = np.array(classification.color, dtype=np.uint8)
            return "solid", fill

        if classification.kind == "gradient":
            return "gradient", self.gradient_fill(region, classification.samples)

        fill = self.texture_fill(canvas, region)
        if fill is None:
            logger.debug("No valid source patches around %s, falling back to gradient", region)
            return "gradient", self.gradient_fill(region, classification.samples)
        return "textured", fill

    @staticmethod
    def gradient_fill(
        region: Tuple[int, int, int, int],
        samples: List[BorderSample]
    ) -> np.ndarray:
        """역거리 가중(1 / (d + 1)) 보간으로 영역 채우기"""
        if not samples:
            raise ReconstructionFailureError("Gradient reconstruction needs border samples")

        x0, y0, x1, y1 = region
        sx = np.array([s.x for s in samples], dtype=np.float64)
        sy = np.array([s.y for s in samples], dtype=np.float64)
        colors = np.array([(s.r, s.g, s.b) for s in samples], dtype=np.float64)

        xs = np.arange(x0, x1, dtype=np.float64)
        fill = np.empty((y1 - y0, x1 - x0, 4), dtype=np.uint8)
        fill[..., 3] = 255

        # 행 단위로 계산하여 (너비 x 샘플 수) 크기의 거리 행렬만 유지
        for row, gy in enumerate(range(y0, y1)):
            distance = np.sqrt((xs[:, None] - sx[None, :]) ** 2 + (gy - sy[None, :]) ** 2)
            weight = 1.0 / (distance + 1.0)
            values = (weight @ colors) / weight.sum(axis=1)[:, None]
            fill[row, :, :3] = _to_uint8(values)

        return fill

    def collect_source_patches(
        self,
        canvas: np.ndarray,
        bbox: BBox
    ) -> Tuple[List[Tuple[int, int]], np.ndarray]:
        """
        박스 주변의 9x9 소스 패치 수집

        Returns:
            (패치 좌상단 좌표 목록, (N, P, P, 4) 패치 배열)
        """
        h, w = canvas.shape[:2]
        p = self.patch_size
        margin = int(max(20, min(bbox.width, bbox.height) * 0.5))

        coords = []
        for sy in range(bbox.y0 - margin, bbox.y1 + margin - p + 1, PATCH_STRIDE):
            for sx in range(bbox.x0 - margin, bbox.x1 + margin - p + 1, PATCH_STRIDE):
                if sx < 0 or sy < 0 or sx + p >= w or sy + p >= h:
                    continue
                if bbox.overlaps(sx, sy, sx + p, sy + p):
                    continue
                coords.append((sx, sy))

        if not coords:
            return [], np.empty((0, p, p, 4), dtype=np.float64)

        patches = np.stack([canvas[sy:sy + p, sx:sx + p] for sx, sy in coords])
        return coords, patches.astype(np.float64)

    def texture_fill(
        self,
        canvas: np.ndarray,
        region: Tuple[int, int, int, int]
    ) -> Optional[np.ndarray]:
        """
        패치 기반 텍스처 합성. 유효한 소스 패치가 없으면 None

        블록(16px, 4px 겹침)을 왼쪽→오른쪽, 위→아래 순서로 처리한다.
        블록마다 바로 위 한 줄의 픽셀과 패치의 앞쪽 픽셀을 비교하여
        가장 가까운 패치를 골라 블록에 타일링한다.
        """
        x0, y0, x1, y1 = region
        bbox = BBox(x0, y0, x1, y1)
        _, patches = self.collect_source_patches(canvas, bbox)
        if len(patches) == 0:
            return None

        width, height = x1 - x0, y1 - y0
        flat = patches.reshape(len(patches), -1, 4)
        step = self.block_size - self.block_overlap

        # 박스 + 위쪽 한 줄 + 좌우 half 폭의 작업 창. 합성된 블록이 다음 블록의 경계가 된다
        half = self.patch_size // 2
        wx0, wy0 = max(0, x0 - half), max(0, y0 - 1)
        wx1 = min(canvas.shape[1], x1 + half)
        work = canvas[wy0:y1, wx0:wx1].astype(np.float64)
        target = work[y0 - wy0:, x0 - wx0:x1 - wx0]

        for by in range(0, height, step):
            for bx in range(0, width, step):
                bw = min(self.block_size, width - bx)
                bh = min(self.block_size, height - by)

                scores = self._patch_scores(
                    work, x0 + bx - wx0, y0 + by - wy0, bw, y0 + by, flat
                )
                best = patches[int(np.argmin(scores))]
                self._blend_block(target, best, bx, by, bw, bh)

        return _to_uint8(target)

    def _patch_scores(
        self,
        work: np.ndarray,
        tx: int, ty: int, tw: int,
        image_y: int,
        flat_patches: np.ndarray
    ) -> np.ndarray:
        """블록 상단 경계 줄과 각 패치 사이의 평균 RGB 유클리드 거리 (tx, ty는 작업 창 좌표)"""
        n = len(flat_patches)
        if image_y <= 0:
            return np.full(n, np.inf)

        half = self.patch_size // 2
        lo = max(0, tx - half)
        hi = min(work.shape[1], tx + tw + half)
        boundary = work[ty - 1, lo:hi, :3]

        k = min(len(boundary), flat_patches.shape[1])
        if k == 0:
            return np.full(n, np.inf)

        diff = flat_patches[:, :k, :3] - boundary[None, :k]
        return np.sqrt((diff ** 2).sum(axis=2)).mean(axis=1)

    def _blend_block(
        self,
        target: np.ndarray,
        patch: np.ndarray,
        bx: int, by: int, bw: int, bh: int
    ) -> None:
        """패치를 블록 크기로 타일링하여 알파 합성 (결과 알파 255)"""
        p = self.patch_size
        reps = (-(-bh // p), -(-bw // p), 1)
        tile = np.tile(patch, reps)[:bh, :bw]

        block = target[by:by + bh, bx:bx + bw]
        alpha = tile[..., 3:4] / 255.0
        block[..., :3] = tile[..., :3] * alpha + block[..., :3] * (1.0 - alpha)
        block[..., 3] = 255


class LegacyEraser:
    """단순 평균색 지우기 (박스 주변 10px, 3px 간격 샘플)"""

    def __init__(self, margin: int = 10, stride: int = 3):
        self.margin = margin
        self.stride = stride

    def erase(self, canvas: np.ndarray, bbox: BBox) -> ReconstructionResult:
        m = self.margin
        # 박스 주변 margin px 격자 (오른쪽/아래 끝 포함), 박스 자체는 제외
        region = bbox.expand(top=m, bottom=m + 1, left=m, right=m + 1)
        try:
            r, g, b = ColorSampler(canvas).sample_average(region, stride=self.stride, exclude=bbox)
        except SamplingFailureError as e:
            logger.warning("Smart erase failed, using white: %s", e)
            fill_rect(canvas, bbox, WHITE)
            return ReconstructionResult(method="white", fill_color=WHITE)

        color = (r, g, b, 255)
        fill_rect(canvas, bbox, color)
        logger.debug("Legacy erase fill color: %s", color)
        return ReconstructionResult(method="legacy", fill_color=color)


class WhiteFillEraser:
    """흰색으로 채우기"""

    def erase(self, canvas: np.ndarray, bbox: BBox) -> ReconstructionResult:
        fill_rect(canvas, bbox, WHITE)
        return ReconstructionResult(method="white", fill_color=WHITE)


def create_eraser(mode: str = "perfect", **kwargs):
    """지우기 방식 팩토리 함수"""
    if mode == "perfect":
        return BackgroundReconstructor(
            patch_size=kwargs.get('patch_size', PATCH_SIZE),
            block_size=kwargs.get('block_size', BLOCK_SIZE),
            block_overlap=kwargs.get('block_overlap', BLOCK_OVERLAP)
        )
    elif mode == "legacy":
        return LegacyEraser(
            margin=kwargs.get('margin', 10),
            stride=kwargs.get('stride', 3)
        )
    elif mode == "white":
        return WhiteFillEraser()
    else:
        raise ValueError(f"Unknown erase mode: {mode}")
