"""ORM model for the skills section of a resume."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from resume_builder.data.db import Base
from resume_builder.data.ids import ID_LENGTH, new_id

if TYPE_CHECKING:
    from resume_builder.data.models.resume import Resume


class Skill(Base):
    """A skill listed on a resume.

    Attributes:
        id: ULID primary key.
        resume_id: Foreign key to resumes table.
        description: What the skill is (e.g. "Distributed systems").
        index: Display ordering on the resume.
        achievements: Supporting achievements for the skill.
    """

    __tablename__ = "skills"
    __table_args__ = (CheckConstraint('"index" >= 0', name="ck_skill_index_positive"),)

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    resume_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("resumes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    achievements: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    resume: Mapped[Resume] = relationship("Resume", back_populates="skills")

    @validates("index")
    def validate_index(self, key: str, value: int) -> int:
        """Validate index is non-negative."""
        if value < 0:
            raise ValueError("Index must be non-negative")
        return value
