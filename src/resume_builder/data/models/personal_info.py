"""PersonalInfo model: the contact block at the top of a resume.

It has a 1:1 relationship with the Resume model.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from resume_builder.data.db import Base
from resume_builder.data.ids import ID_LENGTH, new_id

if TYPE_CHECKING:
    from resume_builder.data.models.resume import Resume


class PersonalInfo(Base):
    """Personal and contact information shown on a resume.

    Attributes:
        id: ULID primary key.
        resume_id: Foreign key to resumes table (unique, 1:1 relationship).
        first_name: First name.
        last_name: Last name.
        profession: Headline / job title.
        email: Contact email address.
        phone: Phone number.
        address: Postal address.
        photo: Stored photo path or URL.
        date_of_birth: Free-form date of birth.
    """

    __tablename__ = "personal_info"

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    resume_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("resumes.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    first_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    profession: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    photo: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    date_of_birth: Mapped[str | None] = mapped_column(String(32), nullable=True)

    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    resume: Mapped[Resume] = relationship("Resume", back_populates="personal_info")
