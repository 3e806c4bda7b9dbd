"""
Word Registry Module
인식된 단어 집합과 선택/편집 상태 관리
"""
import logging
from typing import List, Dict, Optional, Iterable, Iterator

from .errors import WordNotFoundError
from .models import BBox, Word, EditStyle

logger = logging.getLogger(__name__)


class WordRegistry:
    """
    단어 집합의 소유자.

    선택은 배타적이다: 어느 시점에도 is_selected=True인 단어는 최대 하나.
    단어는 개별 삭제되지 않으며, 새 이미지를 불러오면 집합 전체가 교체된다.
    """

    def __init__(self):
        self._words: List[Word] = []
        self._index: Dict[str, Word] = {}

    def load(self, words: Iterable) -> List[Word]:
        """
        단어 집합 전체 교체

        Args:
            words: Word 객체 또는 text/confidence/bbox 속성을 가진 인식 결과
        """
        loaded = []
        index = {}
        for i, item in enumerate(words):
            word_id = getattr(item, 'id', None) or f"word_{i:03d}"
            if word_id in index:
                raise ValueError(f"Duplicate word id: {word_id}")

            bbox = item.bbox if isinstance(item.bbox, BBox) else BBox.from_dict(item.bbox)
            word = Word(
                id=word_id,
                text=item.text,
                confidence=float(item.confidence),
                bbox=bbox,
                original_text=item.text
            )
            loaded.append(word)
            index[word_id] = word

        self._words = loaded
        self._index = index
        logger.debug("Registry loaded with %d words", len(loaded))
        return list(loaded)

    def get(self, word_id: str) -> Word:
        try:
            return self._index[word_id]
        except KeyError:
            raise WordNotFoundError(word_id) from None

    def select(self, word_id: str) -> Optional[Word]:
        """단어 선택. 없는 ID면 선택만 해제하고 None 반환"""
        selected = None
        for word in self._words:
            word.is_selected = word.id == word_id
            if word.is_selected:
                selected = word
        if selected is None:
            logger.debug("select(%s): no such word, selection cleared", word_id)
        return selected

    def clear_selection(self) -> None:
        for word in self._words:
            word.is_selected = False

    @property
    def selected(self) -> Optional[Word]:
        return next((w for w in self._words if w.is_selected), None)

    def find_at(self, x: int, y: int) -> Optional[Word]:
        """좌표를 포함하는 첫 번째 단어"""
        return next((w for w in self._words if w.bbox.contains(x, y)), None)

    def apply_edit(self, word_id: str, new_text: str, style: EditStyle) -> Word:
        """교체 결과 기록. 없는 ID면 WordNotFoundError (상태 변경 없음)"""
        word = self.get(word_id)

        word.text = new_text
        word.is_edited = True
        word.is_selected = False
        word.custom_color = style.color
        word.background_box = style.background_box
        word.style = style
        return word

    def reset(self) -> None:
        """모든 단어를 원래 텍스트로 되돌림"""
        for word in self._words:
            word.text = word.original_text
            word.is_edited = False
            word.is_selected = False
            word.custom_color = None
            word.background_box = None
            word.style = None

    def clear(self) -> None:
        self._words = []
        self._index = {}

    def edited_words(self) -> List[Word]:
        return [w for w in self._words if w.is_edited]

    def visible_words(self) -> List[Word]:
        """한 글자 이하 인식 잡음을 제외한 단어"""
        return [w for w in self._words if len(w.text.strip()) > 1]

    def __iter__(self) -> Iterator[Word]:
        return iter(list(self._words))

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word_id: str) -> bool:
        return word_id in self._index
