# medassist/services/recommendation_engine.py

from typing import List, Optional

from medassist.core.config import settings
from medassist.core.logger import logger
from medassist.models.assistant import (
    KnowledgeEntry,
    QueryAnalysis,
    QueryType,
    RecommendationResult,
)
from medassist.services.knowledge_store import KnowledgeStore, knowledge_store
from medassist.services.query_analyzer import QueryAnalyzer, query_analyzer
from medassist.services.vocabulary import rank_specializations

DISCLAIMER = (
    "This information is for educational purposes only and not medical advice. "
    "Always consult with a healthcare professional for proper diagnosis and treatment."
)
EMERGENCY_ADVISORY = (
    "**EMERGENCY ALERT**\n\n"
    "Based on your description, this may be a medical emergency. Please go to the nearest "
    "emergency room or call emergency services immediately before booking any appointment.\n\n"
)
EMERGENCY_ACTION = "Call emergency services (911/999)"
GENERIC_ERROR_ANSWER = (
    "I apologize, but I encountered an error processing your request. Please try again later."
)
ERROR_ACTIONS = ["Please try rephrasing your question or contact support."]
FALLBACK_EXAMPLES = [
    "Ask about a specific medical specialization",
    "Tell me your symptoms for a doctor recommendation",
    "Learn about our available doctors",
]


def display_doctor_name(name: str) -> str:
    return name if name.lower().startswith("dr.") else f"Dr. {name}"


class RecommendationEngine:
    def __init__(
        self,
        analyzer: Optional[QueryAnalyzer] = None,
        knowledge: Optional[KnowledgeStore] = None,
        max_specializations: Optional[int] = None,
    ):
        self.analyzer = analyzer or query_analyzer
        self.knowledge = knowledge or knowledge_store
        self.max_specializations = max_specializations or settings.MAX_RECOMMENDED_SPECIALIZATIONS

    def get_recommendations(self, query: str) -> RecommendationResult:
        try:
            analysis = self.analyzer.analyze(query)
            logger.info("AI query analysis: type=%s urgency=%s", analysis.type.value, analysis.urgency.value)

            if analysis.type == QueryType.DOCTOR_INFO:
                result = self.handle_doctor_info(analysis)
            elif analysis.type == QueryType.SPECIALIZATION_INFO:
                result = self.handle_specialization_info(analysis)
            elif analysis.type == QueryType.SYMPTOM_TRIAGE:
                result = self.handle_symptom_triage(analysis)
            else:
                result = self.handle_general(analysis)

            return self.add_safety_info(result, analysis)

        except Exception as e:
            logger.exception("AI recommendation error")
            return RecommendationResult(
                success=False,
                answer=GENERIC_ERROR_ANSWER,
                type="error",
                suggested_actions=list(ERROR_ACTIONS),
                debug=f"{e.__class__.__name__}: {e}",
            )

    # ── Branches ─────────────────────────────────────────────────────────────

    def handle_doctor_info(self, analysis: QueryAnalysis) -> RecommendationResult:
        doctor = self.knowledge.get_doctor_info(analysis.doctor_name or "")
        if doctor:
            return RecommendationResult(
                success=True,
                answer=self.format_doctor_profile(doctor),
                type=QueryType.DOCTOR_INFO.value,
                suggested_actions=["View full profile", "Book appointment"],
                analysis=analysis,
                data={"doctor": {"name": doctor.name, **doctor.fields}},
            )

        # Unknown doctor: say so, then answer from whatever else the query holds
        name = analysis.doctor_name or ""
        last_word = name.split()[-1] if name.split() else name
        matches = self.knowledge.search_doctors(last_word) if last_word else []
        note = f"I couldn't find information about {display_doctor_name(name)} in our doctor directory."
        if matches:
            note += " Did you mean " + ", ".join(display_doctor_name(m.name) for m in matches) + "?"

        if analysis.symptoms:
            fallback = self.handle_symptom_triage(analysis)
        elif analysis.specializations:
            fallback = self.handle_specialization_info(analysis)
        else:
            fallback = self.handle_general(analysis)

        actions = [f"Tell me about {display_doctor_name(m.name)}" for m in matches]
        return fallback.model_copy(update={
            "answer": f"{note}\n\n{fallback.answer}",
            "suggested_actions": actions + [a for a in fallback.suggested_actions if a not in actions],
            "data": {**(fallback.data or {}), "doctor_matches": [m.name for m in matches]},
        })

    def handle_specialization_info(self, analysis: QueryAnalysis) -> RecommendationResult:
        name = analysis.specializations[0] if analysis.specializations else None
        entry = self.knowledge.get_specialization_info(name) if name else None
        if not entry:
            return RecommendationResult(
                success=True,
                answer=(
                    f"I couldn't find information about '{name or 'that specialization'}'. "
                    "We might not have that specialty in our system."
                ),
                type=QueryType.SPECIALIZATION_INFO.value,
                suggested_actions=self.example_actions(),
                analysis=analysis,
            )

        doctors = self.knowledge.doctors_in_specialization(entry.name)
        count = len(doctors) if doctors else _as_int(entry.get("available_doctors"))

        lines = [f"**{entry.name}**", ""]
        lines.append(f"**Description**: {entry.get('description', 'No description available.')}")
        for key, label in (
            ("common_conditions", "Common Conditions"),
            ("procedures", "Common Procedures"),
            ("when_to_see", "When to See This Specialist"),
            ("emergency_signs", "Emergency Signs"),
        ):
            if entry.get(key):
                lines.append(f"**{label}**: {entry.get(key)}")
        lines.extend(["", f"**Available Doctors**: {count} specialists"])
        for doctor in doctors:
            lines.append("• " + self.format_doctor_summary(doctor))

        return RecommendationResult(
            success=True,
            answer="\n".join(lines),
            type=QueryType.SPECIALIZATION_INFO.value,
            suggested_actions=["View doctors in this specialization"],
            analysis=analysis,
            data={
                "name": entry.name,
                "fields": dict(entry.fields),
                "doctors_count": count,
                "doctors": [d.name for d in doctors],
            },
        )

    def handle_symptom_triage(self, analysis: QueryAnalysis) -> RecommendationResult:
        vocabulary = self.analyzer.vocabulary
        ranked = rank_specializations(vocabulary, analysis.symptoms, self.analyzer.tie_break)
        ranked = ranked[: self.max_specializations] or ["General Practice"]
        top = ranked[0]

        lines = [f"I understand you're experiencing {', '.join(analysis.symptoms)}.", ""]
        lines.append(f"Based on your symptoms, I recommend consulting a **{top}** specialist.")
        if len(ranked) > 1:
            others = ", ".join(f"**{spec}**" for spec in ranked[1:])
            lines.append(f"Other specializations that may help: {others}.")

        doctors = self.knowledge.doctors_in_specialization(top)
        if doctors:
            lines.extend(["", f"**Recommended {top} Doctors:**"])
            lines.extend("• " + self.format_doctor_summary(d) for d in doctors)

        tips: List[str] = []
        for symptom in analysis.symptoms:
            for tip in vocabulary.self_care_tips.get(symptom, ()):
                if tip not in tips:
                    tips.append(tip)
        if tips:
            lines.extend(["", "**While waiting for your appointment:**"])
            lines.extend(f"• {tip}" for tip in tips)

        actions = [f"Book appointment with a {top} specialist", f"View doctors in {top}"]
        return RecommendationResult(
            success=True,
            answer="\n".join(lines),
            type=QueryType.SYMPTOM_TRIAGE.value,
            suggested_actions=actions,
            analysis=analysis,
            data={"specializations": ranked, "recommended_doctors": [d.name for d in doctors]},
        )

    def handle_general(self, analysis: QueryAnalysis) -> RecommendationResult:
        return RecommendationResult(
            success=True,
            answer=(
                "I'm here to help with medical questions and doctor recommendations, but I couldn't "
                "match your question to a doctor, a specialization or a symptom. Could you rephrase it? "
                "You can ask about a specialization, describe your symptoms, or ask about one of our doctors."
            ),
            type=QueryType.GENERAL.value,
            suggested_actions=self.example_actions(),
            analysis=analysis,
        )

    # ── Formatting ───────────────────────────────────────────────────────────

    def example_actions(self) -> List[str]:
        examples = [e.get("question") for e in self.analyzer.vocabulary.examples if e.get("question")]
        return examples or list(FALLBACK_EXAMPLES)

    @staticmethod
    def format_doctor_profile(doctor: KnowledgeEntry) -> str:
        lines = [f"**{display_doctor_name(doctor.name)}**", ""]
        for key, label in (("email", "Email"), ("phone", "Phone"), ("address", "Address")):
            if doctor.get(key):
                lines.append(f"**{label}**: {doctor.get(key)}")

        lines.extend(["", "**Professional Information**"])
        lines.append(f"**Specialization**: {doctor.get('specialization', 'General Practice')}")
        for key, label in (
            ("license_number", "License Number"),
            ("experience", "Experience"),
            ("consultation_fee", "Consultation Fee"),
            ("rating", "Rating"),
            ("status", "Status"),
        ):
            if doctor.get(key):
                lines.append(f"**{label}**: {doctor.get(key)}")

        if doctor.get("biography"):
            lines.extend(["", "**Biography**", doctor.get("biography")])
        return "\n".join(lines)

    @staticmethod
    def format_doctor_summary(doctor: KnowledgeEntry) -> str:
        parts = [display_doctor_name(doctor.name)]
        details = []
        if doctor.get("experience"):
            details.append(f"{doctor.get('experience')} experience")
        if doctor.get("rating"):
            details.append(f"Rating: {doctor.get('rating')}")
        if doctor.get("consultation_fee"):
            details.append(f"Fee: {doctor.get('consultation_fee')}")
        if details:
            parts.append(", ".join(details))
        return " - ".join(parts)

    @staticmethod
    def add_safety_info(result: RecommendationResult, analysis: QueryAnalysis) -> RecommendationResult:
        update = {"disclaimer": DISCLAIMER}
        if analysis.is_emergency:
            update["answer"] = EMERGENCY_ADVISORY + result.answer
            update["suggested_actions"] = [EMERGENCY_ACTION] + [
                a for a in result.suggested_actions if a != EMERGENCY_ACTION
            ]
        return result.model_copy(update=update)


def _as_int(value: Optional[str]) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


recommendation_engine = RecommendationEngine()
