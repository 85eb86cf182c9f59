"""Resume service: the resume aggregate and its lifecycle.

Updating a resume always goes through the same pipeline:

    load_resume -> snapshot_resume -> reconcile -> apply_resume_changes

inside a single session, so a rejected update leaves nothing behind.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from sqlalchemy.orm import Session, selectinload

from resume_builder.data.db import get_session
from resume_builder.data.models import Resume, User
from resume_builder.errors import NotFoundError, ValidationFailedError
from resume_builder.services.persistence import apply_resume_changes, record_to_dict
from resume_builder.services.reconcile import (
    ALREADY_UPLOADED,
    RESUME_FIELDS,
    FieldKind,
    reconcile,
)

logger = logging.getLogger(__name__)

__all__ = [
    "already_uploaded",
    "create_resume",
    "delete_resume",
    "get_resume",
    "get_resume_by",
    "list_resumes",
    "list_resumes_page",
    "load_resume",
    "snapshot_resume",
    "update_resume",
]

_LOOKUP_FIELDS = ("id", "user_id", "title")


def already_uploaded() -> str:
    """Return the value clients send as ``photo`` when the photo is already stored."""
    return ALREADY_UPLOADED


def load_resume(session: Session, resume_id: str) -> Resume:
    """Load a resume with every section eagerly populated.

    Raises:
        NotFoundError: If no resume has this id.
    """
    resume = (
        session.query(Resume)
        .options(*(selectinload(getattr(Resume, name)) for name in Resume.assoc_fields()))
        .filter(Resume.id == resume_id)
        .first()
    )
    if resume is None:
        raise NotFoundError(f"Resume {resume_id} not found")
    return resume


def snapshot_resume(resume: Resume) -> dict[str, Any]:
    """Convert a loaded resume aggregate into plain mappings, keyed like ``RESUME_FIELDS``."""
    snapshot: dict[str, Any] = {}
    for name, kind in RESUME_FIELDS:
        value = getattr(resume, name)
        if kind is FieldKind.SINGLE_ASSOC:
            snapshot[name] = None if value is None else record_to_dict(name, value)
        elif kind is FieldKind.LIST_ASSOC:
            snapshot[name] = [record_to_dict(name, record) for record in value]
        elif kind is FieldKind.EMBEDDED:
            snapshot[name] = None if value is None else [dict(entry) for entry in value]
        else:
            snapshot[name] = value
    return snapshot


def list_resumes(user_id: str) -> list[dict[str, Any]]:
    """Return every resume of a user (without sections), most recently updated first."""
    with get_session() as session:
        resumes = (
            session.query(Resume)
            .filter(Resume.user_id == user_id)
            .order_by(Resume.updated_at.desc(), Resume.id.desc())
            .all()
        )
        return [_summary(r) for r in resumes]


def list_resumes_page(user_id: str, limit: int, offset: int) -> tuple[list[dict[str, Any]], int]:
    """Return one page of a user's resumes and the total count."""
    with get_session() as session:
        query = session.query(Resume).filter(Resume.user_id == user_id)
        total = query.count()
        resumes = (
            query.order_by(Resume.updated_at.desc(), Resume.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [_summary(r) for r in resumes], total


def get_resume(resume_id: str) -> dict[str, Any] | None:
    """Return the full resume snapshot, or None if it does not exist."""
    with get_session() as session:
        try:
            return snapshot_resume(load_resume(session, resume_id))
        except NotFoundError:
            return None


def get_resume_by(**filters: Any) -> dict[str, Any] | None:
    """Return the first resume matching all ``filters`` (id, user_id, title)."""
    unknown = set(filters) - set(_LOOKUP_FIELDS)
    if unknown:
        raise ValueError(f"Cannot look up resumes by: {', '.join(sorted(unknown))}")

    with get_session() as session:
        query = session.query(Resume)
        for field, value in filters.items():
            query = query.filter(getattr(Resume, field) == value)
        resume = query.first()
        if resume is None:
            return None
        return snapshot_resume(load_resume(session, resume.id))


def create_resume(attrs: dict[str, Any]) -> dict[str, Any]:
    """Create a resume, optionally with its sections.

    A title the user already uses gets the current unix time appended.

    Args:
        attrs: Must contain ``user_id``; may contain ``title``, ``description``,
            ``hobbies`` and any resume section.

    Returns:
        Snapshot of the created resume.

    Raises:
        NotFoundError: If the user does not exist.
        ValidationFailedError: If any value is rejected.
    """
    user_id = attrs.get("user_id")
    if not user_id:
        raise ValidationFailedError({"user_id": ["can't be blank"]})

    with get_session() as session:
        if session.get(User, user_id) is None:
            raise NotFoundError(f"User {user_id} not found")

        attrs = _unique_title(session, attrs)
        resume = Resume(user_id=user_id)
        session.add(resume)
        session.flush()

        resume = load_resume(session, resume.id)
        changes = reconcile(snapshot_resume(resume), attrs)
        apply_resume_changes(session, resume, changes)
        logger.info("Created resume %s for user %s", resume.id, user_id)
        session.expire(resume)
        return snapshot_resume(load_resume(session, resume.id))


def update_resume(resume_id: str, attrs: dict[str, Any]) -> dict[str, Any]:
    """Apply a partial update to a resume.

    Sections absent from ``attrs`` are left alone. A list section present in
    ``attrs`` replaces the stored one: records it no longer contains are deleted.

    Returns:
        Snapshot of the updated resume.

    Raises:
        NotFoundError: If the resume does not exist.
        ValidationFailedError: If any value is rejected; nothing is written.
    """
    with get_session() as session:
        resume = load_resume(session, resume_id)
        changes = reconcile(snapshot_resume(resume), attrs)
        apply_resume_changes(session, resume, changes)
        session.expire(resume)
        return snapshot_resume(load_resume(session, resume_id))


def delete_resume(resume_id: str) -> bool:
    """Delete a resume and all of its sections.

    Returns:
        True if deleted, False if it did not exist.
    """
    with get_session() as session:
        resume = session.get(Resume, resume_id)
        if resume is None:
            return False
        session.delete(resume)
        logger.info("Deleted resume %s", resume_id)
        return True


def _unique_title(session: Session, attrs: dict[str, Any]) -> dict[str, Any]:
    title = attrs.get("title")
    if title is None:
        return attrs
    taken = (
        session.query(Resume.id)
        .filter(Resume.user_id == attrs["user_id"], Resume.title == title)
        .first()
    )
    if taken is None:
        return attrs
    return {**attrs, "title": f"{title}_{int(time.time())}"}


def _summary(resume: Resume) -> dict[str, Any]:
    return {
        "id": resume.id,
        "user_id": resume.user_id,
        "title": resume.title,
        "description": resume.description,
        "inserted_at": resume.inserted_at,
        "updated_at": resume.updated_at,
    }
