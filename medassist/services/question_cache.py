# medassist/services/question_cache.py

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional

from rapidfuzz.distance import Levenshtein

from medassist.core.config import settings


def normalize_question(text: str) -> str:
    return (text or "").strip().lower()


def question_similarity(a: str, b: str) -> float:
    """1.0 for identical questions, 0.0 for nothing in common."""
    return Levenshtein.normalized_similarity(normalize_question(a), normalize_question(b))


@dataclass
class CachedAnswer:
    question: str
    answer: str
    suggested_actions: List[str] = field(default_factory=list)
    type: Optional[str] = None
    similarity: float = 1.0


class QuestionCache:
    """Rolling window of answered questions, searched by edit-distance similarity."""

    def __init__(self, threshold: Optional[float] = None, max_size: Optional[int] = None):
        self.threshold = settings.SIMILARITY_THRESHOLD if threshold is None else threshold
        self.max_size = max_size or settings.QUESTION_CACHE_SIZE
        self._entries: Deque[CachedAnswer] = deque(maxlen=self.max_size)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, question: str, answer: str, suggested_actions=None, type: Optional[str] = None):
        if not normalize_question(question) or not answer:
            return
        self._entries.append(CachedAnswer(
            question=question,
            answer=answer,
            suggested_actions=list(suggested_actions or []),
            type=type,
        ))

    def find_similar(self, query: str) -> Optional[CachedAnswer]:
        if not normalize_question(query):
            return None

        best: Optional[CachedAnswer] = None
        best_score = -1.0
        # Newest first so the latest answer wins a tie
        for entry in reversed(self._entries):
            score = question_similarity(query, entry.question)
            if score >= self.threshold and score > best_score:
                best, best_score = entry, score

        if best is None:
            return None
        return CachedAnswer(
            question=best.question,
            answer=best.answer,
            suggested_actions=list(best.suggested_actions),
            type=best.type,
            similarity=best_score,
        )
