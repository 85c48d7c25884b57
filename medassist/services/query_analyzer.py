# medassist/services/query_analyzer.py
"""
Query Analyzer

Classifies a free-text question into doctor_info, specialization_info,
symptom_triage or general (first match wins), flags emergencies and
extracts symptom keywords and candidate specializations. Pure function of
the query and the vocabulary tables.
"""

import re
from typing import List, Optional

from medassist.core.config import settings
from medassist.models.assistant import QueryAnalysis, QueryType, Urgency
from medassist.services.vocabulary import (
    Vocabulary,
    contains_term,
    contains_word,
    load_vocabulary,
    rank_specializations,
)

# "dr. ahmed taha", "dr ahmed taha", "doctor ahmed taha"
_DOCTOR_NAME_RE = re.compile(
    r"\b(?P<title>dr(?:\.\s*|\s+)|doctor\s+)(?P<first>[a-z][a-z'-]*)(?:\s+(?P<last>[a-z][a-z'-]*))?"
)


def normalize_query(query: str) -> str:
    return re.sub(r"\s+", " ", (query or "").strip().lower())


def _strip_possessive(word: Optional[str]) -> Optional[str]:
    return re.sub(r"'s$", "", word) if word else word


class QueryAnalyzer:
    def __init__(self, vocabulary: Optional[Vocabulary] = None, tie_break: Optional[str] = None):
        self._vocabulary = vocabulary
        self.tie_break = tie_break or settings.SPECIALIZATION_TIE_BREAK

    @property
    def vocabulary(self) -> Vocabulary:
        if self._vocabulary is None:
            self._vocabulary = load_vocabulary()
        return self._vocabulary

    def analyze(self, query: str) -> QueryAnalysis:
        text = normalize_query(query)
        if not text:
            return QueryAnalysis(query=text, type=QueryType.GENERAL, urgency=Urgency.NONE)

        symptoms = self.extract_symptoms(text)
        mentioned = self.extract_specializations(text)
        ranked = rank_specializations(self.vocabulary, symptoms, self.tie_break)
        specializations = tuple(mentioned + [s for s in ranked if s not in mentioned])

        doctor_name = self.extract_doctor_name(text)
        if doctor_name:
            query_type = QueryType.DOCTOR_INFO
        elif mentioned:
            query_type = QueryType.SPECIALIZATION_INFO
        elif symptoms:
            query_type = QueryType.SYMPTOM_TRIAGE
        else:
            query_type = QueryType.GENERAL

        return QueryAnalysis(
            query=text,
            type=query_type,
            urgency=self.check_urgency(text),
            symptoms=tuple(symptoms),
            specializations=specializations,
            doctor_name=doctor_name,
        )

    # ── Doctor names ─────────────────────────────────────────────────────────

    def _roster_by_word(self, word: str) -> Optional[str]:
        """First roster doctor whose first name (then last name) equals ``word``."""
        for position in (0, -1):
            for name in self.vocabulary.doctors:
                parts = name.lower().split()
                if parts and parts[position] == word:
                    return name
        return None

    def extract_doctor_name(self, text: str) -> Optional[str]:
        vocab = self.vocabulary

        # 1. Full roster name anywhere in the query
        for name in vocab.doctors:
            if re.search(r"\b" + re.escape(name.lower()) + r"\b", text):
                return name

        # 2. "dr. <first> <last>" / "doctor <first> <last>"
        for match in _DOCTOR_NAME_RE.finditer(text):
            first = _strip_possessive(match.group("first"))
            last = _strip_possessive(match.group("last"))
            if first != match.group("first"):
                # "dr. islam's clinic": the name ends at the possessive
                last = None
            if first in vocab.name_stopwords or first in vocab.symptoms:
                continue
            if last and (last in vocab.name_stopwords or last in vocab.symptoms):
                last = None

            if last:
                full = f"{first} {last}"
                for name in vocab.doctors:
                    if name.lower() == full:
                        return name
                candidate = full.title()
            else:
                roster_name = self._roster_by_word(first)
                if roster_name:
                    return roster_name
                candidate = first.title()

            # Unknown names need a title ("dr. smith") or a lookup phrase;
            # "see a doctor because ..." is not a name
            if match.group("title").startswith("dr") or self.asks_about_doctor(text):
                return candidate

        # 3. A roster first name on its own
        words = re.findall(r"[a-z]+", text)
        for name in vocab.doctors:
            first_name = name.lower().split()[0]
            if first_name in words:
                return name
        return None

    # ── Specializations and symptoms ─────────────────────────────────────────

    def extract_specializations(self, text: str) -> List[str]:
        found = []
        for spec in self.vocabulary.specializations:
            if any(contains_term(text, pattern) for pattern in spec.patterns):
                found.append(spec.name)
        return found

    def extract_symptoms(self, text: str) -> List[str]:
        matched = [kw for kw in self.vocabulary.symptoms if contains_term(text, kw)]
        # "head" is already covered by "headache", "chest" by "chest pain"
        return [kw for kw in matched if not any(kw != other and kw in other for other in matched)]

    def asks_about_doctor(self, text: str) -> bool:
        return any(phrase in text for phrase in self.vocabulary.doctor_lookup_phrases)

    def check_urgency(self, text: str) -> Urgency:
        for keyword in self.vocabulary.emergency_keywords:
            if contains_word(text, keyword):
                return Urgency.EMERGENCY
        return Urgency.ROUTINE


query_analyzer = QueryAnalyzer()
