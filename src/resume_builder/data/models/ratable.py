"""ORM models for rated resume entries.

SpokenLanguage and SupplementarySkill share one shape: a description and a
self-assessed level. Both used to live as embedded JSON lists on the resumes
table (``languages`` / ``additional_skills``).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from resume_builder.data.db import Base
from resume_builder.data.ids import ID_LENGTH, new_id

if TYPE_CHECKING:
    from resume_builder.data.models.resume import Resume


class SpokenLanguage(Base):
    """A language the resume owner speaks.

    Attributes:
        id: ULID primary key.
        resume_id: Foreign key to resumes table.
        description: Language name.
        level: Proficiency (e.g. "native", "B2").
        index: Display ordering.
    """

    __tablename__ = "spoken_languages"
    __table_args__ = (CheckConstraint('"index" >= 0', name="ck_spoken_language_index_positive"),)

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    resume_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("resumes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    resume: Mapped[Resume] = relationship("Resume", back_populates="spoken_languages")

    @validates("index")
    def validate_index(self, key: str, value: int) -> int:
        """Validate index is non-negative."""
        if value < 0:
            raise ValueError("Index must be non-negative")
        return value


class SupplementarySkill(Base):
    """An additional skill with a level (e.g. "Photoshop", "intermediate").

    Attributes:
        id: ULID primary key.
        resume_id: Foreign key to resumes table.
        description: Skill name.
        level: Proficiency.
        index: Display ordering.
    """

    __tablename__ = "supplementary_skills"
    __table_args__ = (
        CheckConstraint('"index" >= 0', name="ck_supplementary_skill_index_positive"),
    )

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    resume_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("resumes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    resume: Mapped[Resume] = relationship("Resume", back_populates="supplementary_skills")

    @validates("index")
    def validate_index(self, key: str, value: int) -> int:
        """Validate index is non-negative."""
        if value < 0:
            raise ValueError("Index must be non-negative")
        return value
