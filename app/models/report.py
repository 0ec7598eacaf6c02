from typing import List
import uuid
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class Report(SQLModel, table=True):
    __tablename__ = "reports"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Author info
    author_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    # Report fields
    title: str
    description: str
    type: str = Field(index=True)  # see config.REPORT_TYPES
    barrio: str = Field(index=True)  # see config.BARRIOS
    location: str = Field(default="")
    status: str = Field(default="Abierto", index=True)  # "Abierto", "En proceso", "Resuelto"

    # Storage paths inside the report images bucket, in display order
    image_paths: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Kept equal to the number of report_supports rows for this report
    support_count: int = Field(default=0)
