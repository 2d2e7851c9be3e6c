from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class StoredRecord(SQLModel, table=True):
    """A progression or campaign document."""

    __tablename__ = "records"

    id: str = Field(primary_key=True)
    kind: Optional[str] = Field(default=None, index=True)
    document: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
