"""Per-record CRUD for resume sections.

These operate on one record of one section (a single experience, the
personal info block, ...) of a given resume. Whole-resume edits should go
through ``resumes.update_resume`` instead.

Not-found conditions return ``None`` / ``False``; rejected values raise
``ValidationFailedError``.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from resume_builder.data.db import get_session
from resume_builder.data.models import Base, Resume
from resume_builder.errors import ValidationFailedError
from resume_builder.services.persistence import (
    ASSOC_MODELS,
    RECORD_FIELDS,
    assign_fields,
    record_to_dict,
    validate_record,
)

logger = logging.getLogger(__name__)

__all__ = [
    "SECTIONS",
    "create_record",
    "delete_record",
    "get_record",
    "list_records",
    "update_record",
]

SECTIONS = tuple(ASSOC_MODELS)


def _model(section: str) -> type[Base]:
    try:
        return ASSOC_MODELS[section]
    except KeyError:
        raise ValueError(f"Unknown resume section: {section}") from None


def _get_record_by_id(
    session: Session, section: str, resume_id: str, record_id: str
) -> Base | None:
    """Get a section record by ID, ensuring it belongs to the resume."""
    model = _model(section)
    return (
        session.query(model)
        .filter(model.id == record_id, model.resume_id == resume_id)
        .first()
    )


def _touch(session: Session, resume_id: str) -> None:
    resume = session.get(Resume, resume_id)
    if resume is not None:
        resume.updated_at = datetime.now(UTC)


def _check(section: str, data: dict[str, Any], *, creating: bool) -> None:
    errors = validate_record(section, data, creating=creating)
    if errors:
        logger.warning("Validation failed for %s: %s", section, errors)
        raise ValidationFailedError(errors)


def list_records(section: str, resume_id: str) -> list[dict[str, Any]] | None:
    """Get all records of a section, ordered for display.

    Args:
        section: Section name (e.g. ``"experiences"``).
        resume_id: Owning resume.

    Returns:
        List of record dictionaries, or None if the resume does not exist.
    """
    model = _model(section)
    with get_session() as session:
        if session.get(Resume, resume_id) is None:
            return None
        query = session.query(model).filter(model.resume_id == resume_id)
        if "index" in RECORD_FIELDS[section]:
            query = query.order_by(model.index, model.id)
        return [record_to_dict(section, r) for r in query.all()]


def get_record(section: str, resume_id: str, record_id: str) -> dict[str, Any] | None:
    """Get one section record, or None if it is not on this resume."""
    with get_session() as session:
        record = _get_record_by_id(session, section, resume_id, record_id)
        if record is None:
            return None
        return record_to_dict(section, record)


def create_record(section: str, resume_id: str, data: dict[str, Any]) -> dict[str, Any] | None:
    """Add a record to a section.

    Returns:
        The created record, or None if the resume does not exist (or, for
        ``personal_info``, already has one).

    Raises:
        ValidationFailedError: If a value is rejected.
    """
    model = _model(section)
    _check(section, data, creating=True)

    with get_session() as session:
        if session.get(Resume, resume_id) is None:
            return None
        if section == "personal_info":
            existing = session.query(model).filter(model.resume_id == resume_id).first()
            if existing is not None:
                return None

        record = model(resume_id=resume_id)
        assign_fields(section, record, data)
        session.add(record)
        _touch(session, resume_id)
        session.flush()
        return record_to_dict(section, record)


def update_record(
    section: str, resume_id: str, record_id: str, data: dict[str, Any]
) -> dict[str, Any] | None:
    """Update the given fields of a section record.

    Returns:
        The updated record, or None if it is not on this resume.

    Raises:
        ValidationFailedError: If a value is rejected.
    """
    _check(section, data, creating=False)

    with get_session() as session:
        record = _get_record_by_id(session, section, resume_id, record_id)
        if record is None:
            return None

        assign_fields(section, record, data)
        _touch(session, resume_id)
        session.flush()
        return record_to_dict(section, record)


def delete_record(section: str, resume_id: str, record_id: str) -> bool:
    """Delete a section record.

    Returns:
        True if deleted, False if it is not on this resume.
    """
    with get_session() as session:
        record = _get_record_by_id(session, section, resume_id, record_id)
        if record is None:
            return False
        session.delete(record)
        _touch(session, resume_id)
        logger.info("Deleted %s %s from resume %s", section, record_id, resume_id)
        return True
