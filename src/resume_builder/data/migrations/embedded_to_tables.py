"""Data migration between embedded JSON lists and normalized tables.

Resumes used to store spoken languages and supplementary skills as JSON lists
on the resumes table (``languages`` and ``additional_skills``). They now live
in the ``spoken_languages`` and ``supplementary_skills`` tables.

``migrate_to_tables`` copies the embedded entries into the tables.
``migrate_to_embedded`` does the reverse for one table/column pair, which is
what a rollback needs.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.orm import Session

from resume_builder.data.db import Base
from resume_builder.data.ids import new_id
from resume_builder.data.models import Resume, SpokenLanguage, SupplementarySkill

logger = logging.getLogger(__name__)

# embedded column on resumes -> table it migrates to
EMBEDDED_TO_TABLE = {
    "languages": SpokenLanguage.__tablename__,
    "additional_skills": SupplementarySkill.__tablename__,
}

_CARRIED_FIELDS = ("description", "level")


def _entry_index(entry: dict[str, Any]) -> int:
    index = entry.get("index")
    return index if isinstance(index, int) else 0


def compute_insertable_rows(session: Session, embedded_column: str) -> list[dict[str, Any]]:
    """Build table rows from the embedded entries of every resume.

    Entries are ordered by their embedded ``index``. Only ``description`` and
    ``level`` are carried over; each row gets a new id, the resume id, and the
    resume's timestamps.
    """
    if embedded_column not in EMBEDDED_TO_TABLE:
        raise ValueError(f"Not an embedded column: {embedded_column}")

    resumes = Resume.__table__
    result = session.execute(
        select(
            resumes.c.id,
            resumes.c[embedded_column],
            resumes.c.inserted_at,
            resumes.c.updated_at,
        )
    )

    rows: list[dict[str, Any]] = []
    for resume_id, entries, inserted_at, updated_at in result:
        for position, entry in enumerate(sorted(entries or [], key=_entry_index)):
            row = {field: entry.get(field) for field in _CARRIED_FIELDS}
            row.update(
                {
                    "id": new_id(),
                    "resume_id": resume_id,
                    "index": position,
                    "inserted_at": inserted_at,
                    "updated_at": updated_at,
                }
            )
            rows.append(row)
    return rows


def migrate_to_tables(session: Session) -> dict[str, int]:
    """Copy embedded languages / additional skills into their tables.

    Returns:
        Number of rows inserted per table.
    """
    inserted: dict[str, int] = {}
    for embedded_column, table_name in EMBEDDED_TO_TABLE.items():
        rows = compute_insertable_rows(session, embedded_column)
        if rows:
            session.execute(insert(Base.metadata.tables[table_name]), rows)
        inserted[table_name] = len(rows)
        logger.info("Migrated %d %s entries into %s", len(rows), embedded_column, table_name)
    return inserted


def migrate_to_embedded(session: Session, table_name: str, embedded_column: str) -> int:
    """Write the rows of ``table_name`` back into ``resumes.<embedded_column>``.

    Rows are grouped per resume and numbered from 1 as ``index``.

    Returns:
        Number of resumes updated.
    """
    if EMBEDDED_TO_TABLE.get(embedded_column) != table_name:
        raise ValueError(f"{table_name} does not migrate to resumes.{embedded_column}")

    table = Base.metadata.tables[table_name]
    rows = session.execute(
        select(table.c.id, table.c.description, table.c.level, table.c.resume_id).order_by(
            table.c.resume_id, table.c["index"], table.c.id
        )
    )

    grouped: dict[str, list[Any]] = defaultdict(list)
    for row in rows:
        grouped[row.resume_id].append(row)

    resumes = Resume.__table__
    for resume_id, table_values in grouped.items():
        embedded_values = [
            {"description": row.description, "level": row.level, "index": index, "id": row.id}
            for index, row in enumerate(table_values, 1)
        ]
        session.execute(
            update(resumes)
            .where(resumes.c.id == resume_id)
            .values({embedded_column: embedded_values})
        )

    logger.info(
        "Migrated %s back into resumes.%s for %d resumes", table_name, embedded_column, len(grouped)
    )
    return len(grouped)
