from typing import Optional
from fastapi import HTTPException
from pydantic import BaseModel, Field, ValidationError

from app.schemas import Barrio, ReportStatus, ReportType


class ValidatedCreateReport(BaseModel):
    title: str = Field(min_length=5, max_length=120)
    description: str = Field(min_length=20, max_length=2000)
    type: ReportType
    barrio: Barrio
    location: str = Field(default="", max_length=200)


class ValidatedUpdateReport(BaseModel):
    title: Optional[str] = Field(default=None, min_length=5, max_length=120)
    description: Optional[str] = Field(default=None, min_length=20, max_length=2000)
    type: Optional[ReportType] = None
    barrio: Optional[Barrio] = None
    location: Optional[str] = Field(default=None, max_length=200)
    status: Optional[ReportStatus] = None


class ValidatedComment(BaseModel):
    content: str = Field(min_length=1, max_length=1000)


class ValidatedProfile(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


def validate_create_report_form(
    title: Optional[str],
    description: Optional[str],
    type: Optional[str],
    barrio: Optional[str],
    location: Optional[str],
) -> ValidatedCreateReport:
    # title, type, barrio and description are all mandatory
    missing = [
        name
        for name, value in (("title", title), ("type", type), ("barrio", barrio), ("description", description))
        if not _strip(value)
    ]
    if missing:
        raise HTTPException(
            status_code=400,
            detail=f"Missing required fields: {', '.join(missing)}",
        )

    try:
        return ValidatedCreateReport(
            title=_strip(title),
            description=_strip(description),
            type=type,
            barrio=barrio,
            location=_strip(location) or "",
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=e.errors(include_url=False, include_context=False),
        )


def validate_update_report_form(**fields) -> ValidatedUpdateReport:
    cleaned = {name: _strip(value) for name, value in fields.items() if value is not None}

    try:
        return ValidatedUpdateReport(**cleaned)
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=e.errors(include_url=False, include_context=False),
        )


def validate_comment_form(content: Optional[str]) -> ValidatedComment:
    try:
        return ValidatedComment(content=_strip(content) or "")
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=e.errors(include_url=False, include_context=False),
        )


def validate_profile_form(first_name: Optional[str], last_name: Optional[str]) -> ValidatedProfile:
    try:
        return ValidatedProfile(first_name=_strip(first_name), last_name=_strip(last_name))
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=e.errors(include_url=False, include_context=False),
        )
