"""Test suite for per-record resume section CRUD."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import resume_builder.data.db as db_module
from resume_builder.data.models import Base, Resume, User
from resume_builder.errors import ValidationFailedError
from resume_builder.services.sections import (
    SECTIONS,
    create_record,
    delete_record,
    get_record,
    list_records,
    update_record,
)

MISSING_ID = "01HZZZZZZZZZZZZZZZZZZZZZZZ"


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
    """Create an empty resume and return its id."""
    with db_module.get_session() as s:
        resume = Resume(user=User(email="amy@example.com", password_hash="hash"), title="CV")
        s.add(resume)
        s.flush()
        return resume.id


def test_sections():
    assert set(SECTIONS) == {
        "personal_info",
        "experiences",
        "education",
        "skills",
        "spoken_languages",
        "supplementary_skills",
    }


def test_nonexistent_resume_and_record_handling(resume_id):
    """Test handling of nonexistent resumes and records."""
    # Nonexistent resume
    assert list_records("skills", MISSING_ID) is None
    assert create_record("skills", MISSING_ID, {"description": "Python"}) is None
    assert update_record("skills", MISSING_ID, MISSING_ID, {"description": "Go"}) is None
    assert delete_record("skills", MISSING_ID, MISSING_ID) is False

    # Existing resume, no records
    assert list_records("skills", resume_id) == []
    assert get_record("skills", resume_id, MISSING_ID) is None
    assert delete_record("skills", resume_id, MISSING_ID) is False


def test_unknown_section(resume_id):
    with pytest.raises(ValueError):
        list_records("hobbies", resume_id)


def test_create_get_and_ordering(resume_id):
    """Test create, get by ID, and ordering by index."""
    later = create_record(
        "experiences",
        resume_id,
        {"position": "Lead", "company_name": "Beta", "index": 1, "achievements": ["Shipped"]},
    )
    earlier = create_record(
        "experiences", resume_id, {"position": "Dev", "company_name": "Acme", "index": 0}
    )
    assert later is not None and earlier is not None
    assert later["achievements"] == ["Shipped"]
    assert "inserted_at" in later

    fetched = get_record("experiences", resume_id, later["id"])
    assert fetched["company_name"] == "Beta"

    ordered = list_records("experiences", resume_id)
    assert [r["company_name"] for r in ordered] == ["Acme", "Beta"]


def test_create_validation(resume_id):
    with pytest.raises(ValidationFailedError) as exc_info:
        create_record("education", resume_id, {"school": "MIT", "index": -2})

    assert exc_info.value.errors == {
        "education.course": ["can't be blank"],
        "education.index": ["must be greater than or equal to 0"],
    }
    assert list_records("education", resume_id) == []


def test_personal_info_is_single(resume_id):
    created = create_record("personal_info", resume_id, {"first_name": "Amy"})

    assert created is not None
    assert create_record("personal_info", resume_id, {"first_name": "Ann"}) is None
    assert [r["first_name"] for r in list_records("personal_info", resume_id)] == ["Amy"]


def test_update_and_delete(resume_id):
    created = create_record(
        "spoken_languages", resume_id, {"description": "French", "level": "B2"}
    )

    updated = update_record("spoken_languages", resume_id, created["id"], {"level": "C1"})
    assert updated["description"] == "French"
    assert updated["level"] == "C1"

    with pytest.raises(ValidationFailedError):
        update_record("spoken_languages", resume_id, created["id"], {"description": ""})

    assert delete_record("spoken_languages", resume_id, created["id"]) is True
    assert get_record("spoken_languages", resume_id, created["id"]) is None


def test_records_are_scoped_to_their_resume(resume_id):
    with db_module.get_session() as s:
        other = Resume(user=User(email="bob@example.com", password_hash="hash"), title="CV")
        s.add(other)
        s.flush()
        other_id = other.id

    skill = create_record("skills", resume_id, {"description": "Python"})

    assert get_record("skills", other_id, skill["id"]) is None
    assert update_record("skills", other_id, skill["id"], {"description": "Go"}) is None
    assert delete_record("skills", other_id, skill["id"]) is False
