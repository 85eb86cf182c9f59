"""Pydantic schemas for resume API endpoints.

Request schemas are dumped with ``exclude_unset=True`` so that a key the
client left out stays absent (section untouched) while an explicit ``null``
is kept (section cleared).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from resume_builder.api.schemas.common import PaginationMeta

RecordId = str | int


class ResumeSection(str, Enum):
    """Resume sections addressable through per-record endpoints."""

    PERSONAL_INFO = "personal_info"
    EXPERIENCES = "experiences"
    EDUCATION = "education"
    SKILLS = "skills"
    SPOKEN_LANGUAGES = "spoken_languages"
    SUPPLEMENTARY_SKILLS = "supplementary_skills"


# ---- Requests ----


class HobbyInput(BaseModel):
    id: RecordId | None = None
    description: str | None = None
    index: int | None = None


class PersonalInfoInput(BaseModel):
    """Personal info block. ``photo`` may be a stored path/URL, the
    already-uploaded marker, or an upload descriptor object."""

    id: RecordId | None = None
    first_name: str | None = None
    last_name: str | None = None
    profession: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    photo: str | dict[str, Any] | None = None
    date_of_birth: str | None = None
    delete: bool | None = None


class ExperienceInput(BaseModel):
    id: RecordId | None = None
    position: str | None = None
    company_name: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    index: int | None = None
    achievements: list[str] | None = None
    delete: bool | None = None


class EducationInput(BaseModel):
    id: RecordId | None = None
    school: str | None = None
    course: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    index: int | None = None
    achievements: list[str] | None = None
    delete: bool | None = None


class SkillInput(BaseModel):
    id: RecordId | None = None
    description: str | None = None
    index: int | None = None
    achievements: list[str] | None = None
    delete: bool | None = None


class RatableInput(BaseModel):
    """A spoken language or supplementary skill."""

    id: RecordId | None = None
    description: str | None = None
    level: str | None = None
    index: int | None = None
    delete: bool | None = None


class _ResumeFields(BaseModel):
    title: str | None = Field(None, description="Resume title, unique per user")
    description: str | None = Field(None, description="Free-form description")
    hobbies: list[HobbyInput] | None = Field(None, description="Hobbies")
    personal_info: PersonalInfoInput | None = Field(None, description="Personal info block")
    experiences: list[ExperienceInput | None] | None = Field(None, description="Work history")
    education: list[EducationInput | None] | None = Field(None, description="Education")
    skills: list[SkillInput | None] | None = Field(None, description="Skills")
    spoken_languages: list[RatableInput | None] | None = Field(
        None, description="Spoken languages"
    )
    supplementary_skills: list[RatableInput | None] | None = Field(
        None, description="Supplementary skills"
    )


class ResumeCreateRequest(_ResumeFields):
    """Request schema for creating a resume, optionally with its sections."""


class ResumeUpdateRequest(_ResumeFields):
    """Request schema for partially updating a resume.

    Omitted sections are left untouched. A list section that is sent replaces
    the stored one: records not included (by id) are deleted, records without
    an id are created. ``null`` clears a section.
    """


# ---- Responses ----


class HobbyResponse(BaseModel):
    id: RecordId
    description: str | None = None
    index: int | None = None


class PersonalInfoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str | None = None
    last_name: str | None = None
    profession: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    photo: str | None = None
    date_of_birth: str | None = None
    inserted_at: datetime
    updated_at: datetime


class ExperienceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    position: str | None = None
    company_name: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    index: int = 0
    achievements: list[str] | None = None
    inserted_at: datetime
    updated_at: datetime


class EducationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school: str | None = None
    course: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    index: int = 0
    achievements: list[str] | None = None
    inserted_at: datetime
    updated_at: datetime


class SkillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    description: str | None = None
    index: int = 0
    achievements: list[str] | None = None
    inserted_at: datetime
    updated_at: datetime


class RatableResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    description: str | None = None
    level: str | None = None
    index: int = 0
    inserted_at: datetime
    updated_at: datetime


class ResumeSummaryResponse(BaseModel):
    """A resume without its sections (list views)."""

    id: str
    user_id: str
    title: str | None = None
    description: str | None = None
    inserted_at: datetime
    updated_at: datetime


class ResumeResponse(ResumeSummaryResponse):
    """A resume with every section."""

    hobbies: list[HobbyResponse] | None = None
    personal_info: PersonalInfoResponse | None = None
    experiences: list[ExperienceResponse] = []
    education: list[EducationResponse] = []
    skills: list[SkillResponse] = []
    spoken_languages: list[RatableResponse] = []
    supplementary_skills: list[RatableResponse] = []


class PaginatedResumesResponse(BaseModel):
    """One page of a user's resumes."""

    items: list[ResumeSummaryResponse]
    pagination: PaginationMeta
