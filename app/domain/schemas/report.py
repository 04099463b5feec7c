"""Pydantic schemas for Reports."""

from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, StringConstraints

from app.domain.schemas.base import CamelModel

ReportType = Literal["red-flag", "intervention"]
ReportStatus = Literal["draft", "under-investigation", "rejected", "resolved"]
AdminStatus = Literal["under-investigation", "rejected", "resolved"]

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2000)]


class Location(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class ReportCreate(BaseModel):
    type: ReportType
    title: Title
    description: Description
    location: Optional[Location] = None


class ReportUpdate(BaseModel):
    """Only fields that are present are applied; an explicit ``location: null`` clears it."""
    title: Optional[Title] = None
    description: Optional[Description] = None
    location: Optional[Location] = None
    retained_media: Optional[List[str]] = None


class StatusUpdate(BaseModel):
    status: AdminStatus


class ReportFilter(BaseModel):
    status: Optional[ReportStatus] = None
    type: Optional[ReportType] = None


class ReportOwner(CamelModel):
    first_name: str
    last_name: str
    email: str


class ReportRead(CamelModel):
    id: str
    user_id: str
    type: str
    title: str
    description: str
    location: Optional[Location] = None
    media: List[str] = []
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[ReportOwner] = Field(default=None, validation_alias=AliasChoices("owner", "user"))
