# medassist/models/assistant.py

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field


class QueryType(str, Enum):
    DOCTOR_INFO = "doctor_info"
    SPECIALIZATION_INFO = "specialization_info"
    SYMPTOM_TRIAGE = "symptom_triage"
    GENERAL = "general"


class Urgency(str, Enum):
    NONE = "none"
    ROUTINE = "routine"
    EMERGENCY = "emergency"


class KnowledgeEntry(BaseModel):
    """A labeled block of the knowledge corpus (doctor or specialization)."""
    model_config = ConfigDict(frozen=True)

    name: str
    kind: Literal["doctor", "specialization"]
    fields: Dict[str, str] = Field(default_factory=dict)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.fields.get(key, default)


class QueryAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str
    type: QueryType
    urgency: Urgency
    symptoms: Tuple[str, ...] = ()
    specializations: Tuple[str, ...] = ()
    doctor_name: Optional[str] = None

    @property
    def is_emergency(self) -> bool:
        return self.urgency == Urgency.EMERGENCY


class RecommendationResult(BaseModel):
    success: bool
    answer: str
    type: str
    suggested_actions: List[str] = Field(default_factory=list)
    analysis: Optional[QueryAnalysis] = None
    disclaimer: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    # Internal fault detail; only surfaced when DEBUG is on
    debug: Optional[str] = None
