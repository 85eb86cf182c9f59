"""Experience model for storing the work history section of a resume.

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


class Experience(Base):
    """Work experience entry on a resume.

    Attributes:
        id: ULID primary key.
        resume_id: Foreign key to resumes table.
        position: Job title.
        company_name: Name of the company/organization.
        from_date: Free-form start date as typed by the user.
        to_date: Free-form end date (None or "present" for a current job).
        index: Display ordering on the resume (lower = earlier).
        achievements: List of achievement strings.
    """

    __tablename__ = "experiences"
    __table_args__ = (CheckConstraint('"index" >= 0', name="ck_experience_index_positive"),)

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    resume_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("resumes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    position: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
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

    resume: Mapped[Resume] = relationship("Resume", back_populates="experiences")

    @validates("index")
    def validate_index(self, key: str, value: int) -> int:
        """Validate index is non-negative."""
        if value < 0:
            raise ValueError("Index must be non-negative")
        return value
