from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, field_validator
from datetime import datetime


class MatchStatus(str, Enum):
    matched = "matched"
    no_match = "no_match"

    def __str__(self):
        return self.value


class FingerPrintCreate(BaseModel):
    template: Optional[str] = None
    fingerprint_id: Optional[str] = None

    @field_validator("fingerprint_id", mode="before")
    @classmethod
    def numeric_id_to_str(cls, value):
        # Enrolment devices send the slot number as a JSON integer
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class FingerPrintMatchRequest(BaseModel):
    template: Optional[str] = None


class FingerPrintRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fingerprint_id: Optional[str] = None
    template: str
    created_at: datetime


class AttendanceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fingerprint_id: int
    timestamp: datetime


class CreationResponse(BaseModel):
    message: str
    data: FingerPrintRead


class MatchResponse(BaseModel):
    message: str
    status: MatchStatus
    similarity: str
    confidence: Optional[str] = None
    closest_fingerprint_id: Optional[int] = None
    attendance_logged: bool = False
    data: Optional[FingerPrintRead] = None


class FingerPrintListResponse(BaseModel):
    message: str
    count: int
    data: List[FingerPrintRead]


class DecodeResponse(BaseModel):
    id: int
    hex: str


class AttendanceListResponse(BaseModel):
    fingerprint_id: int
    count: int
    data: List[AttendanceRead]
