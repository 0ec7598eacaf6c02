import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

ReportType = Literal["Vialidad", "Alumbrado", "Basura", "Seguridad", "Áreas verdes", "Otro"]
Barrio = Literal[
    "Col. Centro",
    "Las Flores",
    "Av. Central",
    "Parque Norte",
    "San José",
    "Vista Hermosa",
    "El Roble",
]
ReportStatus = Literal["Abierto", "En proceso", "Resuelto"]


# Session / auth
class SessionUser(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    avatar: str


class RegisterRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(default="", max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: SessionUser


# Reports
class CommentOut(BaseModel):
    id: uuid.UUID
    report_id: uuid.UUID
    user_id: uuid.UUID
    user_name: str
    user_avatar: str
    content: str
    image_url: Optional[str] = None
    created_at: datetime


class ReportOut(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    type: str
    barrio: str
    status: str
    location: str
    created_at: datetime
    updated_at: datetime
    author_id: uuid.UUID
    author_name: str
    author_avatar: str
    images: List[str] = []
    comments: List[CommentOut] = []
    comment_count: Optional[int] = None
    support_count: int
    supported_by: List[uuid.UUID] = []


class ReportPage(BaseModel):
    reports: List[ReportOut]
    total_count: int
    page: int
    page_size: int
    # matching reports older than the last one in this page
    remaining: int = 0
    # pass back as `before` to fetch the next page; None on the last page
    next_cursor: Optional[str] = None


class StatusUpdate(BaseModel):
    status: ReportStatus


class AuthoredComment(BaseModel):
    comment: CommentOut
    report_id: uuid.UUID
    report_title: str
