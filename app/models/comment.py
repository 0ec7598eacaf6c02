from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class Comment(SQLModel, table=True):
    __tablename__ = "comments"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)

    report_id: uuid.UUID = Field(foreign_key="reports.id", index=True, ondelete="CASCADE")
    author_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    content: str
    image_path: Optional[str] = Field(default=None)  # path inside the comment images bucket
