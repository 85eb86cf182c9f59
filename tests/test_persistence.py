"""Tests for validating and applying reconciled resume payloads."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import resume_builder.data.db as db_module
from resume_builder.data.models import Base, Resume, Skill, User
from resume_builder.errors import ValidationFailedError
from resume_builder.services.persistence import apply_resume_changes, validate_record
from resume_builder.services.resumes import load_resume


@pytest.fixture(scope="function")
def tmp_db(monkeypatch, tmp_path):
    """Create a temporary test database."""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(db_module, "_engine", engine)
    monkeypatch.setattr(db_module, "_SessionLocal", sessionmaker(bind=engine))
    yield
    engine.dispose()


@pytest.fixture
def resume_id(tmp_db):
    """A resume with two skills."""
    with db_module.get_session() as s:
        user = User(email="amy@example.com", password_hash="hash")
        resume = Resume(user=user, title="Backend")
        resume.skills = [
            Skill(description="Python", index=0),
            Skill(description="SQL", index=1),
        ]
        s.add(resume)
        s.flush()
        return resume.id


def _skill_ids(session, resume_id):
    return [s.id for s in load_resume(session, resume_id).skills]


class TestValidateRecord:
    def test_valid_record(self):
        record = {"position": "Dev", "company_name": "Acme", "index": 2, "achievements": ["x"]}

        assert validate_record("experiences", record, creating=True) == {}

    def test_required_fields_on_create(self):
        errors = validate_record("education", {"school": "MIT"}, creating=True)

        assert errors == {"education.course": ["can't be blank"]}

    def test_required_fields_only_when_present_on_update(self):
        assert validate_record("education", {"course": "BSc"}, creating=False) == {}
        assert validate_record("education", {"school": "  "}, creating=False) == {
            "education.school": ["can't be blank"]
        }

    def test_types_and_lengths(self):
        record = {
            "description": "x" * 10,
            "level": 5,
            "index": True,
        }

        errors = validate_record("spoken_languages", record, creating=True, path="langs.0")

        assert errors == {
            "langs.0.level": ["must be a string"],
            "langs.0.index": ["must be an integer"],
        }

    def test_too_long(self):
        errors = validate_record("personal_info", {"first_name": "a" * 129}, creating=True)

        assert errors == {"personal_info.first_name": ["should be at most 128 character(s)"]}

    def test_achievements_must_be_strings(self):
        errors = validate_record("skills", {"achievements": ["ok", 3]}, creating=False)

        assert errors == {"skills.achievements": ["must be a list of strings"]}


def test_existing_record_missing_from_changes_is_rejected(resume_id):
    """A list that silently leaves out a stored record is an error, not a delete."""
    with db_module.get_session() as s:
        python_id, sql_id = _skill_ids(s, resume_id)
        resume = load_resume(s, resume_id)

        with pytest.raises(ValidationFailedError) as exc_info:
            apply_resume_changes(s, resume, {"skills": [{"id": python_id}]})

    assert exc_info.value.errors == {"skills": [f"{sql_id} is missing from changes"]}


def test_apply_update_delete_create(resume_id):
    with db_module.get_session() as s:
        python_id, sql_id = _skill_ids(s, resume_id)
        resume = load_resume(s, resume_id)

        apply_resume_changes(
            s,
            resume,
            {
                "skills": [
                    {"id": python_id, "description": "Python 3", "index": 1},
                    {"id": sql_id, "delete": True},
                    {"description": "Go", "index": 0},
                ]
            },
        )

    with db_module.get_session() as s:
        skills = load_resume(s, resume_id).skills
        assert [(sk.description, sk.index) for sk in skills] == [("Go", 0), ("Python 3", 1)]
        assert s.get(Skill, sql_id) is None


def test_stored_personal_info_cannot_be_dropped_silently(resume_id):
    with db_module.get_session() as s:
        resume = load_resume(s, resume_id)
        apply_resume_changes(s, resume, {"personal_info": {"first_name": "Amy"}})

    with db_module.get_session() as s:
        resume = load_resume(s, resume_id)
        with pytest.raises(ValidationFailedError) as exc_info:
            apply_resume_changes(s, resume, {"personal_info": None})

    assert exc_info.value.errors == {"personal_info": ["is missing from changes"]}


def test_embedded_hobbies_get_ids_and_positions(resume_id):
    with db_module.get_session() as s:
        resume = load_resume(s, resume_id)
        apply_resume_changes(
            s, resume, {"hobbies": [{"description": "Chess"}, {"id": "h2", "description": "Go"}]}
        )

    with db_module.get_session() as s:
        hobbies = s.get(Resume, resume_id).hobbies
        assert hobbies[0]["description"] == "Chess"
        assert hobbies[0]["id"]
        assert hobbies[0]["index"] == 0
        assert hobbies[1] == {"id": "h2", "description": "Go", "index": 1}


def test_embedded_hobby_without_index_takes_its_position(resume_id):
    with db_module.get_session() as s:
        resume = load_resume(s, resume_id)
        apply_resume_changes(
            s,
            resume,
            {"hobbies": [{"id": "h1", "description": "Chess", "index": None}, {"id": "h2"}]},
        )

    with db_module.get_session() as s:
        hobbies = s.get(Resume, resume_id).hobbies
        assert [h["index"] for h in hobbies] == [0, 1]
