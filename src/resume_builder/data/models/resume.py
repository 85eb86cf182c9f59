from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from resume_builder.data.db import Base
from resume_builder.data.ids import ID_LENGTH, new_id

if TYPE_CHECKING:
    from resume_builder.data.models.education import Education
    from resume_builder.data.models.experience import Experience
    from resume_builder.data.models.personal_info import PersonalInfo
    from resume_builder.data.models.ratable import SpokenLanguage, SupplementarySkill
    from resume_builder.data.models.skill import Skill
    from resume_builder.data.models.user import User


class Resume(Base):
    """
    A user's resume: the owner of personal info, experiences, education,
    skills, spoken languages and supplementary skills.
    """

    __tablename__ = "resumes"
    __table_args__ = (UniqueConstraint("user_id", "title", name="uq_resume_user_title"),)

    id: Mapped[str] = mapped_column(String(ID_LENGTH), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(ID_LENGTH),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Embedded list of {"id", "description", "index"} maps
    hobbies: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)

    # Legacy embedded columns, superseded by the spoken_languages and
    # supplementary_skills tables (see data.migrations.embedded_to_tables)
    languages: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    additional_skills: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)

    inserted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    # Relationships
    user: Mapped[User] = relationship("User", back_populates="resumes")
    personal_info: Mapped[PersonalInfo | None] = relationship(
        "PersonalInfo", back_populates="resume", uselist=False, cascade="all, delete-orphan"
    )
    experiences: Mapped[list[Experience]] = relationship(
        "Experience",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by="Experience.index",
    )
    education: Mapped[list[Education]] = relationship(
        "Education",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by="Education.index",
    )
    skills: Mapped[list[Skill]] = relationship(
        "Skill",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by="Skill.index",
    )
    spoken_languages: Mapped[list[SpokenLanguage]] = relationship(
        "SpokenLanguage",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by="SpokenLanguage.index",
    )
    supplementary_skills: Mapped[list[SupplementarySkill]] = relationship(
        "SupplementarySkill",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by="SupplementarySkill.index",
    )

    @staticmethod
    def assoc_fields() -> tuple[str, ...]:
        """Names of the relationships that make up the resume aggregate."""
        return (
            "personal_info",
            "experiences",
            "education",
            "skills",
            "spoken_languages",
            "supplementary_skills",
        )
