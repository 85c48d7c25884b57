# tests/test_knowledge_store.py

import pytest

from medassist.services.knowledge_store import KnowledgeStore, parse_fields, split_sections
from medassist.utils.errors import KnowledgeBaseError

store = KnowledgeStore()


def test_get_doctor_info_by_full_name():
    doctor = store.get_doctor_info("Ahmed Taha")
    assert doctor is not None
    assert doctor.name == "Ahmed Taha"
    assert doctor.get("specialization") == "Cardiology"
    assert doctor.get("email") == "doctor1@booking.com"
    assert doctor.get("consultation_fee") == "$300.00"


@pytest.mark.parametrize("name", ["Dr. Ahmed Taha", "dr ahmed taha", "Doctor AHMED TAHA", "  Ahmed   Taha "])
def test_get_doctor_info_ignores_prefix_and_case(name):
    doctor = store.get_doctor_info(name)
    assert doctor is not None
    assert doctor.name == "Ahmed Taha"


def test_unknown_doctor_returns_none():
    assert store.get_doctor_info("Dr. John Smith") is None
    assert store.get_doctor_info("") is None


def test_deeper_headings_stay_inside_entry():
    doctor = store.get_doctor_info("Ahmed Taha")
    # The "#### Clinic Hours" block does not end the entry or start a new one
    assert doctor.get("biography", "").startswith("Dr. Ahmed is a renowned cardiologist")
    assert store.get_specialization_info("Clinic Hours") is None


def test_get_specialization_info():
    spec = store.get_specialization_info("gynecology")
    assert spec is not None
    assert spec.name == "Gynecology"
    assert spec.get("description") == "Female reproductive system specialist"
    assert spec.get("available_doctors") == "1"


def test_search_doctors_partial_name():
    names = [d.name for d in store.search_doctors("ah")]
    assert "Ahmed Taha" in names
    assert store.search_doctors("zzz") == []


def test_doctors_in_specialization():
    assert [d.name for d in store.doctors_in_specialization("Neurology")] == ["Islam Ghanem"]
    assert store.doctors_in_specialization("Dentistry") == []


def test_missing_corpus_returns_nothing(tmp_path):
    missing = KnowledgeStore(str(tmp_path / "nope.md"))
    assert missing.get_doctor_info("Ahmed Taha") is None
    assert missing.search_doctors("Ahmed") == []


def test_corpus_is_reread_on_every_call(tmp_path):
    path = tmp_path / "kb.md"
    path.write_text("### Dr. Jane Doe\n- **Specialization**: Neurology\n", encoding="utf-8")
    kb = KnowledgeStore(str(path))
    assert kb.get_doctor_info("Jane Doe").get("specialization") == "Neurology"

    path.write_text("### Dr. Jane Doe\n- **Specialization**: Cardiology\n", encoding="utf-8")
    assert kb.get_doctor_info("Jane Doe").get("specialization") == "Cardiology"


def test_unreadable_corpus_raises(tmp_path):
    path = tmp_path / "kb.md"
    path.write_bytes(b"\xff\xfe\x00 not utf-8 \xff")
    with pytest.raises(KnowledgeBaseError):
        KnowledgeStore(str(path)).list_doctors()


def test_split_sections_and_fields():
    content = "\n".join([
        "# Title",
        "## Doctors",
        "### Dr. A",
        "- **Phone Number**: 123",
        "#### Notes",
        "- **Room**: 4",
        "## Specializations",
        "Stray text",
        "### Cardiology",
        "- **Description**: Heart",
    ])
    sections = split_sections(content)
    assert [title for title, _ in sections] == ["Dr. A", "Cardiology"]
    assert parse_fields(sections[0][1]) == {"phone_number": "123", "room": "4"}
    assert "Stray text" not in sections[0][1]
