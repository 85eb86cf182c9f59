"""Resume routes: whole-resume editing and per-record section endpoints."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, HTTPException, Query, Response, status
from fastapi import Path as PathParam
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from resume_builder.api.dependencies import CurrentUser
from resume_builder.api.schemas.common import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    PaginationMeta,
    ValidationErrorDetail,
)
from resume_builder.api.schemas.resumes import (
    EducationInput,
    EducationResponse,
    ExperienceInput,
    ExperienceResponse,
    PaginatedResumesResponse,
    PersonalInfoInput,
    PersonalInfoResponse,
    RatableInput,
    RatableResponse,
    ResumeCreateRequest,
    ResumeResponse,
    ResumeSection,
    ResumeSummaryResponse,
    ResumeUpdateRequest,
    SkillInput,
    SkillResponse,
)
from resume_builder.errors import NotFoundError, ValidationFailedError
from resume_builder.services import resumes as resume_service
from resume_builder.services import sections as section_service

router = APIRouter(prefix="/resumes", tags=["resumes"])

_SECTION_INPUTS: dict[ResumeSection, type[BaseModel]] = {
    ResumeSection.PERSONAL_INFO: PersonalInfoInput,
    ResumeSection.EXPERIENCES: ExperienceInput,
    ResumeSection.EDUCATION: EducationInput,
    ResumeSection.SKILLS: SkillInput,
    ResumeSection.SPOKEN_LANGUAGES: RatableInput,
    ResumeSection.SUPPLEMENTARY_SKILLS: RatableInput,
}

_SECTION_RESPONSES: dict[ResumeSection, type[BaseModel]] = {
    ResumeSection.PERSONAL_INFO: PersonalInfoResponse,
    ResumeSection.EXPERIENCES: ExperienceResponse,
    ResumeSection.EDUCATION: EducationResponse,
    ResumeSection.SKILLS: SkillResponse,
    ResumeSection.SPOKEN_LANGUAGES: RatableResponse,
    ResumeSection.SUPPLEMENTARY_SKILLS: RatableResponse,
}

# Keys clients may echo back but that per-record endpoints never write.
_IGNORED_RECORD_KEYS = ("id", "delete")

ResumeId = Annotated[str, PathParam(description="Resume ID")]
RecordIdParam = Annotated[str, PathParam(description="Section record ID")]
SectionParam = Annotated[ResumeSection, PathParam(description="Resume section")]


def _unprocessable(exc: ValidationFailedError, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=ValidationErrorDetail(message=message, errors=exc.errors).model_dump(),
    )


def _verify_ownership(resume_id: str, current_user: dict[str, Any]) -> dict[str, Any]:
    """Load a resume and check it belongs to the current user.

    Raises:
        HTTPException: 404 if the resume does not exist, 403 if it belongs
            to someone else.
    """
    resume = resume_service.get_resume(resume_id)
    if resume is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Resume {resume_id} not found",
        )
    if resume["user_id"] != current_user["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only access your own resumes",
        )
    return resume


def _section_payload(section: ResumeSection, payload: dict[str, Any]) -> dict[str, Any]:
    """Validate a raw record body against the section's input schema."""
    try:
        data = _SECTION_INPUTS[section].model_validate(payload)
    except PydanticValidationError as exc:
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            path = ".".join(str(part) for part in error["loc"]) or section.value
            errors.setdefault(path, []).append(error["msg"])
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=ValidationErrorDetail(message="Invalid record", errors=errors).model_dump(),
        ) from None
    dumped = data.model_dump(exclude_unset=True)
    for key in _IGNORED_RECORD_KEYS:
        dumped.pop(key, None)
    return dumped


def _section_response(section: ResumeSection, record: dict[str, Any]) -> dict[str, Any]:
    return _SECTION_RESPONSES[section](**record).model_dump(mode="json")


# ---- Whole resumes ----


@router.get("", response_model=PaginatedResumesResponse)
def list_resumes(
    current_user: CurrentUser,
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> PaginatedResumesResponse:
    """List the current user's resumes, most recently updated first."""
    items, total = resume_service.list_resumes_page(current_user["id"], limit, offset)
    return PaginatedResumesResponse(
        items=[ResumeSummaryResponse(**item) for item in items],
        pagination=PaginationMeta(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(items) < total,
        ),
    )


@router.post("", response_model=ResumeResponse, status_code=status.HTTP_201_CREATED)
def create_resume(data: ResumeCreateRequest, current_user: CurrentUser) -> ResumeResponse:
    """Create a resume for the current user, optionally with its sections.

    A title already used by this user gets a timestamp suffix.
    """
    attrs = data.model_dump(exclude_unset=True)
    attrs["user_id"] = current_user["id"]
    try:
        resume = resume_service.create_resume(attrs)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from None
    except ValidationFailedError as exc:
        raise _unprocessable(exc, "Resume could not be created") from None
    return ResumeResponse(**resume)


@router.get("/{resume_id}", response_model=ResumeResponse)
def get_resume(resume_id: ResumeId, current_user: CurrentUser) -> ResumeResponse:
    """Get a resume with every section."""
    return ResumeResponse(**_verify_ownership(resume_id, current_user))


@router.patch("/{resume_id}", response_model=ResumeResponse)
def update_resume(
    resume_id: ResumeId,
    data: ResumeUpdateRequest,
    current_user: CurrentUser,
) -> ResumeResponse:
    """Partially update a resume.

    Omitted sections are untouched. A list section that is sent must mention
    every stored record by id; entries flagged ``delete`` are removed and
    entries without an id are created.
    """
    _verify_ownership(resume_id, current_user)
    try:
        resume = resume_service.update_resume(resume_id, data.model_dump(exclude_unset=True))
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from None
    except ValidationFailedError as exc:
        raise _unprocessable(exc, "Resume could not be updated") from None
    return ResumeResponse(**resume)


@router.delete("/{resume_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resume(resume_id: ResumeId, current_user: CurrentUser) -> Response:
    """Delete a resume and all of its sections."""
    _verify_ownership(resume_id, current_user)
    if not resume_service.delete_resume(resume_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Resume {resume_id} not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---- Section records ----


@router.get("/{resume_id}/{section}", response_model=None)
def list_section_records(
    resume_id: ResumeId,
    section: SectionParam,
    current_user: CurrentUser,
) -> list[dict[str, Any]]:
    """List the records of one section, in display order."""
    _verify_ownership(resume_id, current_user)
    records = section_service.list_records(section.value, resume_id) or []
    return [_section_response(section, r) for r in records]


@router.post("/{resume_id}/{section}", response_model=None, status_code=status.HTTP_201_CREATED)
def create_section_record(
    resume_id: ResumeId,
    section: SectionParam,
    payload: Annotated[dict[str, Any], Body()],
    current_user: CurrentUser,
) -> dict[str, Any]:
    """Add a record to a section."""
    _verify_ownership(resume_id, current_user)
    data = _section_payload(section, payload)
    try:
        record = section_service.create_record(section.value, resume_id, data)
    except ValidationFailedError as exc:
        raise _unprocessable(exc, "Record could not be created") from None
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Resume {resume_id} already has {section.value}",
        )
    return _section_response(section, record)


@router.get("/{resume_id}/{section}/{record_id}", response_model=None)
def get_section_record(
    resume_id: ResumeId,
    section: SectionParam,
    record_id: RecordIdParam,
    current_user: CurrentUser,
) -> dict[str, Any]:
    """Get one section record."""
    _verify_ownership(resume_id, current_user)
    record = section_service.get_record(section.value, resume_id, record_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{section.value} record {record_id} not found",
        )
    return _section_response(section, record)


@router.patch("/{resume_id}/{section}/{record_id}", response_model=None)
def update_section_record(
    resume_id: ResumeId,
    section: SectionParam,
    record_id: RecordIdParam,
    payload: Annotated[dict[str, Any], Body()],
    current_user: CurrentUser,
) -> dict[str, Any]:
    """Update the given fields of a section record."""
    _verify_ownership(resume_id, current_user)
    data = _section_payload(section, payload)
    try:
        record = section_service.update_record(section.value, resume_id, record_id, data)
    except ValidationFailedError as exc:
        raise _unprocessable(exc, "Record could not be updated") from None
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{section.value} record {record_id} not found",
        )
    return _section_response(section, record)


@router.delete(
    "/{resume_id}/{section}/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_section_record(
    resume_id: ResumeId,
    section: SectionParam,
    record_id: RecordIdParam,
    current_user: CurrentUser,
) -> Response:
    """Delete a section record."""
    _verify_ownership(resume_id, current_user)
    if not section_service.delete_record(section.value, resume_id, record_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{section.value} record {record_id} not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
