"""Education model for storing the education section of a resume.

It has a 1:many relationship with the Resume model.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from resume_builder.data.db import Base
from resume_builder.data.ids import ID_LENGTH, new_id

if TYPE_CHECKING:
    from resume_builder.data.models.resume import Resume


class Education(Base):
    """Education entry on a resume.

    Attributes:
        id: ULID primary key.
        resume_id: Foreign key to resumes table.
        school: Name of school/university.
        course: Course or degree studied.
        from_date: Free-form start date.
        to_date: Free-form end date.
        index: Display ordering on the resume (lower = earlier).
        achievements: List of achievements, honors, or activities.
    """

    __tablename__ = "education"
    __table_args__ = (CheckConstraint('"index" >= 0', name="ck_education_index_positive"),)

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    resume_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("resumes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    school: Mapped[str | None] = mapped_column(String(255), nullable=True)
    course: Mapped[str | None] = mapped_column(String(255), nullable=True)
    from_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    to_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
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

    resume: Mapped[Resume] = relationship("Resume", back_populates="education")

    @validates("index")
    def validate_index(self, key: str, value: int) -> int:
        """Validate index is non-negative."""
        if value < 0:
            raise ValueError("Index must be non-negative")
        return value
