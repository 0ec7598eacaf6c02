import uuid
from sqlmodel import Field, SQLModel, UniqueConstraint
from datetime import datetime, timezone


class Support(SQLModel, table=True):
    __tablename__ = "report_supports"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    report_id: uuid.UUID = Field(foreign_key="reports.id", index=True, ondelete="CASCADE")
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    __table_args__ = (
        # A user supports a report at most once
        UniqueConstraint(
            "report_id",
            "user_id",
            name="uq_report_supporter"
        ),
    )
