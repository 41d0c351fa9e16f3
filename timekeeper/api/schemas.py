"""Request and response bodies of the HTTP API."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from timekeeper.domain.models import DayTotal, EntryView


class StartResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Started"
    entry_id: int = Field(..., alias="entryId")


class EndResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Stopped"
    seconds: int
    entry_id: int = Field(..., alias="entryId")


class TodayResponse(BaseModel):
    total_seconds: int
    running: bool


class HistoryResponse(BaseModel):
    history: List[DayTotal]


class EntriesResponse(BaseModel):
    entries: List[EntryView]


class ProjectUpsert(BaseModel):
    name: str = Field(..., min_length=1, max_length=190)
    color: Optional[str] = Field(default=None, max_length=16)


class TagUpsert(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, max_length=16)


class CatalogItem(BaseModel):
    """A project or tag as the owner sees it"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: Optional[str] = None


class ProjectsResponse(BaseModel):
    projects: List[CatalogItem]


class TagsResponse(BaseModel):
    tags: List[CatalogItem]


class OkResponse(BaseModel):
    ok: bool = True


class ErrorResponse(BaseModel):
    message: str
    error: str
    details: Optional[dict] = None


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    full_name: str = Field(..., min_length=3, max_length=190, alias="fullName")

    @field_validator("email")
    @classmethod
    def email_fits_column(cls, value: str) -> str:
        if len(value) > 190:
            raise ValueError("Email must be at most 190 characters")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    """Empty or omitted fields are left unchanged"""
    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[str] = Field(default=None, max_length=190, alias="fullName")
    password: Optional[str] = Field(default=None, max_length=100)
    confirm_password: Optional[str] = Field(default=None, max_length=100,
                                            alias="confirmPassword")


class MessageResponse(BaseModel):
    message: str


class TokenResponse(BaseModel):
    token: str


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    avatar_path: Optional[str] = None
    role: str
