from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel


class FingerPrint(SQLModel, table=True):
    __tablename__ = "fingerprints"

    id: int = Field(primary_key=True)
    fingerprint_id: Optional[str] = Field(default=None, unique=True, index=True)
    template: str = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Attendance(SQLModel, table=True):
    __tablename__ = "attendance"

    id: Optional[int] = Field(default=None, primary_key=True)
    fingerprint_id: int = Field(foreign_key="fingerprints.id", index=True)
    timestamp: datetime = Field(default_factory=datetime.utcnow)
