from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    email: str = Field(index=True, unique=True)
    hashed_password: str

    # Profile
    first_name: str = Field(default="")
    last_name: str = Field(default="")
    avatar_path: Optional[str] = Field(default=None)  # path inside the avatars bucket
