"""Validated write of a reconciled resume payload.

``apply_resume_changes`` takes the complete payload produced by
``reconcile.reconcile`` and turns it into ORM changes on a loaded resume:

- records flagged ``delete`` are removed;
- records whose id is already on the resume are updated (only the keys present);
- records without a known id are created.

Every existing record must be accounted for. A list section that leaves out
an existing record, or a ``None`` personal info while one is stored, is
rejected rather than silently deleting data. All problems are collected into a
single ``ValidationFailedError`` before anything is written.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from resume_builder.data.ids import new_id
from resume_builder.data.models import (
    Base,
    Education,
    Experience,
    PersonalInfo,
    Resume,
    Skill,
    SpokenLanguage,
    SupplementarySkill,
)
from resume_builder.errors import ValidationFailedError
from resume_builder.services.reconcile import DELETE_FLAG, RESUME_FIELDS, FieldKind

logger = logging.getLogger(__name__)

__all__ = [
    "ASSOC_MODELS",
    "RECORD_FIELDS",
    "apply_resume_changes",
    "assign_fields",
    "record_to_dict",
    "validate_record",
]

ASSOC_MODELS: dict[str, type[Base]] = {
    "personal_info": PersonalInfo,
    "experiences": Experience,
    "education": Education,
    "skills": Skill,
    "spoken_languages": SpokenLanguage,
    "supplementary_skills": SupplementarySkill,
}

# Writable columns per resume section
RECORD_FIELDS: dict[str, tuple[str, ...]] = {
    "personal_info": (
        "first_name",
        "last_name",
        "profession",
        "email",
        "phone",
        "address",
        "photo",
        "date_of_birth",
    ),
    "experiences": ("position", "company_name", "from_date", "to_date", "index", "achievements"),
    "education": ("school", "course", "from_date", "to_date", "index", "achievements"),
    "skills": ("description", "index", "achievements"),
    "spoken_languages": ("description", "level", "index"),
    "supplementary_skills": ("description", "level", "index"),
}

# Fields a newly created record must have
_REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "personal_info": (),
    "experiences": ("position", "company_name"),
    "education": ("school", "course"),
    "skills": ("description",),
    "spoken_languages": ("description",),
    "supplementary_skills": ("description",),
}

_RESUME_WRITABLE = ("title", "description")
_TITLE_MAX_LENGTH = 255

_BLANK = "can't be blank"
_MISSING_FROM_CHANGES = "is missing from changes"


def record_to_dict(section: str, record: Base) -> dict[str, Any]:
    """Convert a resume section record to a plain dictionary."""
    data: dict[str, Any] = {"id": record.id}
    for field in RECORD_FIELDS[section]:
        value = getattr(record, field)
        data[field] = list(value) if isinstance(value, list) else value
    data["inserted_at"] = record.inserted_at
    data["updated_at"] = record.updated_at
    return data


def validate_record(
    section: str, record: Mapping[str, Any], *, creating: bool, path: str | None = None
) -> dict[str, list[str]]:
    """Validate one section record.

    Args:
        section: Resume section name (e.g. ``"experiences"``).
        record: Field values to write.
        creating: Whether the record will be inserted (required fields enforced).
        path: Prefix for error keys; defaults to ``section``.

    Returns:
        Mapping of field path to reasons; empty when the record is valid.
    """
    prefix = path or section
    errors: dict[str, list[str]] = {}
    model = ASSOC_MODELS[section]

    for field in _REQUIRED_FIELDS[section]:
        if field in record or creating:
            value = record.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.setdefault(f"{prefix}.{field}", []).append(_BLANK)

    for field in RECORD_FIELDS[section]:
        if field not in record or record[field] is None:
            continue
        value = record[field]
        key = f"{prefix}.{field}"
        if field == "index":
            if isinstance(value, bool) or not isinstance(value, int):
                errors.setdefault(key, []).append("must be an integer")
            elif value < 0:
                errors.setdefault(key, []).append("must be greater than or equal to 0")
        elif field == "achievements":
            if not isinstance(value, list) or not all(isinstance(a, str) for a in value):
                errors.setdefault(key, []).append("must be a list of strings")
        elif not isinstance(value, str):
            errors.setdefault(key, []).append("must be a string")
        else:
            max_length = model.__table__.c[field].type.length
            if max_length is not None and len(value) > max_length:
                errors.setdefault(key, []).append(
                    f"should be at most {max_length} character(s)"
                )

    return errors


def apply_resume_changes(session: Session, resume: Resume, changes: Mapping[str, Any]) -> Resume:
    """Validate ``changes`` and apply them to ``resume``.

    Args:
        session: Session the resume is attached to.
        resume: Resume with every section loaded.
        changes: Complete payload, as produced by ``reconcile``.

    Returns:
        The same resume, modified in place and flushed.

    Raises:
        ValidationFailedError: If any value is rejected. Nothing is written.
    """
    errors = _validate_changes(session, resume, changes)
    if errors:
        logger.warning("Rejected update for resume %s: %s", resume.id, errors)
        raise ValidationFailedError(errors)

    for name, kind in RESUME_FIELDS:
        if name not in changes:
            continue
        value = changes[name]
        if kind is FieldKind.SCALAR and name in _RESUME_WRITABLE:
            setattr(resume, name, value)
        elif kind is FieldKind.EMBEDDED:
            setattr(resume, name, _embedded_entries(value))
        elif kind is FieldKind.SINGLE_ASSOC:
            _apply_single(resume, name, value)
        elif kind is FieldKind.LIST_ASSOC:
            _apply_list(resume, name, value)

    resume.updated_at = datetime.now(UTC)
    session.flush()
    return resume


def _validate_changes(
    session: Session, resume: Resume, changes: Mapping[str, Any]
) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}

    title = changes.get("title", resume.title)
    if "title" in changes and title is not None:
        if not isinstance(title, str) or not title.strip():
            errors.setdefault("title", []).append(_BLANK)
        elif len(title) > _TITLE_MAX_LENGTH:
            errors.setdefault("title", []).append(
                f"should be at most {_TITLE_MAX_LENGTH} character(s)"
            )
        elif _title_taken(session, resume, title):
            errors.setdefault("title", []).append("has already been taken")

    description = changes.get("description")
    if description is not None and not isinstance(description, str):
        errors.setdefault("description", []).append("must be a string")

    hobbies = changes.get("hobbies")
    if hobbies is not None and (
        not isinstance(hobbies, list) or not all(isinstance(h, Mapping) for h in hobbies)
    ):
        errors.setdefault("hobbies", []).append("must be a list of objects")

    for name, kind in RESUME_FIELDS:
        if name not in changes:
            continue
        if kind is FieldKind.SINGLE_ASSOC:
            _validate_single(resume, name, changes[name], errors)
        elif kind is FieldKind.LIST_ASSOC:
            _validate_list(resume, name, changes[name], errors)

    return errors


def _title_taken(session: Session, resume: Resume, title: str) -> bool:
    other = (
        session.query(Resume.id)
        .filter(Resume.user_id == resume.user_id, Resume.title == title, Resume.id != resume.id)
        .first()
    )
    return other is not None


def _validate_single(
    resume: Resume, name: str, value: Any, errors: dict[str, list[str]]
) -> None:
    current = getattr(resume, name)
    if value is None or value == {}:
        if current is not None:
            errors.setdefault(name, []).append(_MISSING_FROM_CHANGES)
        return
    if not isinstance(value, Mapping):
        errors.setdefault(name, []).append("must be an object")
        return
    if value.get(DELETE_FLAG):
        return
    for key, reasons in validate_record(name, value, creating=current is None).items():
        errors.setdefault(key, []).extend(reasons)


def _validate_list(resume: Resume, name: str, value: Any, errors: dict[str, list[str]]) -> None:
    if value is None:
        value = []
    if not isinstance(value, list):
        errors.setdefault(name, []).append("must be a list of objects")
        return

    existing_ids = {record.id for record in getattr(resume, name)}
    mentioned: set[str] = set()
    for position, record in enumerate(value):
        path = f"{name}.{position}"
        if not isinstance(record, Mapping):
            errors.setdefault(path, []).append("must be an object")
            continue
        record_id = record.get("id")
        known = record_id is not None and str(record_id) in existing_ids
        if known:
            mentioned.add(str(record_id))
        if record.get(DELETE_FLAG):
            continue
        for key, reasons in validate_record(name, record, creating=not known, path=path).items():
            errors.setdefault(key, []).extend(reasons)

    for missing in sorted(existing_ids - mentioned):
        errors.setdefault(name, []).append(f"{missing} {_MISSING_FROM_CHANGES}")


def assign_fields(section: str, target: Base, record: Mapping[str, Any]) -> None:
    """Copy the writable fields present in ``record`` onto ``target``.

    A ``None`` index means "keep the current position" and is skipped.
    """
    for field in RECORD_FIELDS[section]:
        if field not in record:
            continue
        if field == "index" and record[field] is None:
            continue
        setattr(target, field, record[field])


def _apply_single(resume: Resume, name: str, value: Any) -> None:
    if value is None or value == {}:
        return
    current = getattr(resume, name)
    if value.get(DELETE_FLAG):
        if current is not None:
            setattr(resume, name, None)
        return
    if current is None:
        current = ASSOC_MODELS[name]()
        setattr(resume, name, current)
    assign_fields(name, current, value)


def _apply_list(resume: Resume, name: str, value: Any) -> None:
    collection = getattr(resume, name)
    existing = {record.id: record for record in collection}
    for record in value or []:
        record_id = record.get("id")
        current = existing.get(str(record_id)) if record_id is not None else None
        if record.get(DELETE_FLAG):
            if current is not None:
                collection.remove(current)
            continue
        if current is None:
            current = ASSOC_MODELS[name]()
            collection.append(current)
        assign_fields(name, current, record)


def _embedded_entries(value: Any) -> list[dict[str, Any]] | None:
    if value is None:
        return None
    entries = []
    for position, entry in enumerate(value):
        entries.append(
            {
                "id": str(entry.get("id") or new_id()),
                "description": entry.get("description"),
                "index": position if entry.get("index") is None else entry["index"],
            }
        )
    return entries
