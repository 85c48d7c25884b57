# medassist/services/vocabulary.py
"""
Fixed vocabularies for the medical assistant.

Doctor roster, specialization names, the symptom -> specialization table,
emergency keywords and example questions are kept in a YAML file so the
tables can grow without touching the matching code.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import yaml

from medassist.core.config import settings
from medassist.core.logger import logger
from medassist.utils.errors import VocabularyError


@dataclass(frozen=True)
class SpecializationTerm:
    name: str
    prefixes: Tuple[str, ...] = ()

    @property
    def patterns(self) -> Tuple[str, ...]:
        return (self.name.lower(),) + self.prefixes


@dataclass(frozen=True)
class Vocabulary:
    doctors: Tuple[str, ...]
    specializations: Tuple[SpecializationTerm, ...]
    symptoms: Dict[str, Tuple[str, ...]]
    emergency_keywords: Tuple[str, ...]
    name_stopwords: frozenset = frozenset()
    doctor_lookup_phrases: Tuple[str, ...] = ()
    self_care_tips: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    examples: Tuple[Dict[str, str], ...] = ()

    def specialization_names(self) -> List[str]:
        return [s.name for s in self.specializations]


def contains_term(text: str, term: str) -> bool:
    """True when ``term`` occurs in ``text`` starting at a word boundary."""
    return re.search(r"\b" + re.escape(term), text) is not None


def contains_word(text: str, term: str) -> bool:
    """True when ``term`` occurs in ``text`` as whole words."""
    return re.search(r"\b" + re.escape(term) + r"\b", text) is not None


def rank_specializations(
    vocabulary: Vocabulary,
    symptoms: Iterable[str],
    tie_break: str = "declaration",
) -> List[str]:
    """Rank specializations by how many of the symptoms point at them.

    Ties keep the order in which the specialization first appears in the
    symptom table, or alphabetical order when ``tie_break`` says so.
    """
    counts: Counter = Counter()
    for symptom in symptoms:
        for spec in vocabulary.symptoms.get(symptom, ()):
            counts[spec] += 1

    declared: List[str] = []
    for specs in vocabulary.symptoms.values():
        for spec in specs:
            if spec not in declared:
                declared.append(spec)

    if tie_break == "alphabetical":
        secondary = {name: name.lower() for name in counts}
    else:
        secondary = {name: declared.index(name) for name in counts}
    return sorted(counts, key=lambda name: (-counts[name], secondary[name]))


def _as_tuple(value) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def parse_vocabulary(config: dict) -> Vocabulary:
    if not isinstance(config, dict):
        raise VocabularyError("Vocabulary file must contain a mapping")

    try:
        specializations = tuple(
            SpecializationTerm(
                name=item["name"],
                prefixes=tuple(p.lower() for p in _as_tuple(item.get("prefixes"))),
            )
            for item in config.get("specializations", [])
        )
        symptoms = {
            str(keyword).lower(): _as_tuple(specs)
            for keyword, specs in (config.get("symptoms") or {}).items()
        }
    except (KeyError, TypeError, AttributeError) as e:
        raise VocabularyError(f"Malformed vocabulary entry: {e}") from e

    known = {s.name for s in specializations}
    unknown = sorted({spec for specs in symptoms.values() for spec in specs} - known)
    if unknown:
        raise VocabularyError(f"Symptom table references unknown specializations: {unknown}")

    return Vocabulary(
        doctors=_as_tuple(config.get("doctors")),
        specializations=specializations,
        symptoms=symptoms,
        emergency_keywords=tuple(k.lower() for k in _as_tuple(config.get("emergency_keywords"))),
        name_stopwords=frozenset(w.lower() for w in _as_tuple(config.get("name_stopwords"))),
        doctor_lookup_phrases=tuple(p.lower() for p in _as_tuple(config.get("doctor_lookup_phrases"))),
        self_care_tips={
            str(k).lower(): _as_tuple(v) for k, v in (config.get("self_care_tips") or {}).items()
        },
        examples=tuple(dict(e) for e in config.get("examples", [])),
    )


@lru_cache(maxsize=8)
def load_vocabulary(path: Optional[str] = None) -> Vocabulary:
    yaml_path = Path(path or settings.VOCABULARY_PATH)
    try:
        with open(yaml_path, encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise VocabularyError(f"Vocabulary file not found: {yaml_path}") from e
    except yaml.YAMLError as e:
        raise VocabularyError(f"Error parsing vocabulary YAML: {e}") from e

    vocabulary = parse_vocabulary(config)
    logger.info(
        "Loaded vocabulary from %s: %d doctors, %d specializations, %d symptoms",
        yaml_path, len(vocabulary.doctors), len(vocabulary.specializations), len(vocabulary.symptoms),
    )
    return vocabulary
