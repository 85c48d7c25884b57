# medassist/services/knowledge_store.py
"""
Knowledge Store

Reads doctor and specialization records from the markdown knowledge corpus.
Entries are `### Dr. <Full Name>` or `### <Specialization>` sections whose
bullet lines look like `- **Field**: value`. The file is re-read on every
call; there is no index kept between requests.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from medassist.core.config import settings
from medassist.core.logger import logger
from medassist.models.assistant import KnowledgeEntry
from medassist.utils.errors import KnowledgeBaseError

ENTRY_LEVEL = 3

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
_FIELD_RE = re.compile(r"^\s*[-*]\s+\*\*(.+?)\*\*\s*:?\s*(?:\*\*)?\s*:?\s*(.*)$")
_DOCTOR_PREFIX_RE = re.compile(r"^(?:dr\.?|doctor)\s+", re.IGNORECASE)


def strip_doctor_prefix(name: str) -> str:
    return re.sub(r"\s+", " ", _DOCTOR_PREFIX_RE.sub("", name.strip()))


def normalize_field_name(key: str) -> str:
    return re.sub(r"\s+", "_", key.strip().rstrip(":").strip().lower())


def parse_fields(lines: List[str]) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for line in lines:
        match = _FIELD_RE.match(line)
        if not match:
            continue
        key, value = match.groups()
        fields[normalize_field_name(key)] = value.strip()
    return fields


def split_sections(content: str, level: int = ENTRY_LEVEL) -> List[Tuple[str, List[str]]]:
    """Return (title, body lines) for every heading of the given level.

    A section ends at the next heading of equal or higher level; deeper
    headings stay inside the section body.
    """
    sections: List[Tuple[str, List[str]]] = []
    current: Optional[Tuple[str, List[str]]] = None

    for line in content.splitlines():
        heading = _HEADING_RE.match(line)
        if heading:
            depth = len(heading.group(1))
            if depth <= level:
                if current is not None:
                    sections.append(current)
                current = (heading.group(2).strip(), []) if depth == level else None
                continue
        if current is not None:
            current[1].append(line)

    if current is not None:
        sections.append(current)
    return sections


class KnowledgeStore:
    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.KNOWLEDGE_BASE_PATH)

    def _read(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning("Knowledge base file not found: %s", self.path)
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise KnowledgeBaseError(f"Unable to read knowledge base {self.path}: {e}") from e

    def _entries(self) -> List[KnowledgeEntry]:
        content = self._read()
        if content is None:
            return []

        entries = []
        for title, body in split_sections(content):
            is_doctor = _DOCTOR_PREFIX_RE.match(title) is not None
            entries.append(KnowledgeEntry(
                name=strip_doctor_prefix(title) if is_doctor else title,
                kind="doctor" if is_doctor else "specialization",
                fields=parse_fields(body),
            ))
        return entries

    def list_doctors(self) -> List[KnowledgeEntry]:
        return [e for e in self._entries() if e.kind == "doctor"]

    def list_specializations(self) -> List[KnowledgeEntry]:
        return [e for e in self._entries() if e.kind == "specialization"]

    def get_doctor_info(self, name: str) -> Optional[KnowledgeEntry]:
        wanted = strip_doctor_prefix(name or "").lower()
        if not wanted:
            return None
        for entry in self.list_doctors():
            if entry.name.lower() == wanted:
                return entry
        logger.warning("Doctor not found in knowledge base: %s", name)
        return None

    def get_specialization_info(self, name: str) -> Optional[KnowledgeEntry]:
        wanted = (name or "").strip().lower()
        if not wanted:
            return None
        for entry in self.list_specializations():
            if entry.name.lower() == wanted:
                return entry
        logger.warning("Specialization not found in knowledge base: %s", name)
        return None

    def search_doctors(self, partial_name: str) -> List[KnowledgeEntry]:
        wanted = strip_doctor_prefix(partial_name or "").lower()
        if not wanted:
            return []
        return [e for e in self.list_doctors() if wanted in e.name.lower()]

    def doctors_in_specialization(self, specialization: str) -> List[KnowledgeEntry]:
        wanted = specialization.strip().lower()
        return [
            e for e in self.list_doctors()
            if (e.get("specialization") or "").strip().lower() == wanted
        ]


knowledge_store = KnowledgeStore()
