"""
Models Module
단어, 배경 분류, 편집 스타일, 교체 기록 데이터 클래스
"""
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Dict, Tuple, Optional, Iterator

from .config import CONFIG


@dataclass(frozen=True)
class BBox:
    """축 정렬 사각형 (x0, y0) - (x1, y1)"""
    x0: int
    y0: int
    x1: int
    y1: int

    def __post_init__(self):
        if self.x0 > self.x1 or self.y0 > self.y1:
            raise ValueError(
                f"Invalid bbox ({self.x0}, {self.y0}, {self.x1}, {self.y1}): "
                "expected x0 <= x1 and y0 <= y1"
            )

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    @property
    def center(self) -> Tuple[int, int]:
        return (self.x0 + self.x1) // 2, (self.y0 + self.y1) // 2

    def contains(self, x: int, y: int) -> bool:
        """경계 포함 판정"""
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    def overlaps(self, x0: int, y0: int, x1: int, y1: int) -> bool:
        return x1 > self.x0 and x0 < self.x1 and y1 > self.y0 and y0 < self.y1

    def expand(self, top: int = 0, bottom: int = 0, left: int = 0, right: int = 0) -> 'BBox':
        return BBox(self.x0 - left, self.y0 - top, self.x1 + right, self.y1 + bottom)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'BBox':
        return cls(int(data['x0']), int(data['y0']), int(data['x1']), int(data['y1']))


@dataclass(frozen=True)
class BackgroundBoxStyle:
    """텍스트 뒤에 그리는 배경 박스 (방향별 여백 + 색상)"""
    padding_top: int = 2
    padding_bottom: int = 2
    padding_left: int = 2
    padding_right: int = 2
    color: str = "#FFFFFF"

    def apply(self, bbox: BBox) -> BBox:
        return bbox.expand(
            top=self.padding_top,
            bottom=self.padding_bottom,
            left=self.padding_left,
            right=self.padding_right
        )


@dataclass(frozen=True)
class EditStyle:
    """단어별로 저장되는 편집 스타일. 다시 그리기 시 이 값으로 재생"""
    color: str
    font_family: str
    erase_mode: str = "perfect"
    background_box: Optional[BackgroundBoxStyle] = None
    font_size: Optional[int] = None


@dataclass
class Word:
    """OCR로 인식된 단어"""
    id: str
    text: str
    confidence: float
    bbox: BBox
    original_text: Optional[str] = None
    is_selected: bool = False
    is_edited: bool = False
    custom_color: Optional[str] = None
    background_box: Optional[BackgroundBoxStyle] = None
    style: Optional[EditStyle] = None

    def __post_init__(self):
        if self.original_text is None:
            self.original_text = self.text

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class BorderSample:
    """박스 주변 띠에서 읽은 픽셀"""
    x: int
    y: int
    r: int
    g: int
    b: int
    a: int = 255


@dataclass(frozen=True)
class SolidBackground:
    color: Tuple[int, int, int, int]
    kind: str = field(default="solid", init=False)


@dataclass(frozen=True)
class GradientBackground:
    samples: List[BorderSample]
    kind: str = field(default="gradient", init=False)


@dataclass(frozen=True)
class TexturedBackground:
    samples: List[BorderSample]
    kind: str = field(default="textured", init=False)


@dataclass(frozen=True)
class ReplacementHistoryEntry:
    id: str
    old_text: str
    new_text: str
    timestamp: datetime = field(default_factory=datetime.now)


class ReplacementHistory:
    """최신 항목이 앞에 오는 교체 기록 (최대 limit개)"""

    def __init__(self, limit: int = CONFIG["history_limit"]):
        self.limit = limit
        self._entries: List[ReplacementHistoryEntry] = []

    def push(self, old_text: str, new_text: str) -> ReplacementHistoryEntry:
        entry = ReplacementHistoryEntry(
            id=uuid.uuid4().hex,
            old_text=old_text,
            new_text=new_text
        )
        self._entries = [entry] + self._entries[:self.limit - 1]
        return entry

    def remove(self, entry_id: str) -> bool:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.id != entry_id]
        return len(self._entries) != before

    def clear(self) -> None:
        self._entries = []

    @property
    def entries(self) -> List[ReplacementHistoryEntry]:
        return list(self._entries)

    def __iter__(self) -> Iterator[ReplacementHistoryEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
