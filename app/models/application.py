# app/models/application.py
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApplicationStatus(str, Enum):
    APPLIED = "applied"
    INTERVIEWING = "interviewing"
    OFFERED = "offered"
    REJECTED = "rejected"
    ACCEPTED = "accepted"


class ApplicationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    company: str = Field(min_length=1)
    position: str = Field(min_length=1)
    status: ApplicationStatus = ApplicationStatus.APPLIED
    date_applied: date = Field(default_factory=date.today, alias="dateApplied")
    notes: str = ""
    job_url: str = Field(default="", alias="jobUrl")


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class Application(ApplicationCreate):
    """A tracked job application; stored in the applications collection."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str = Field(alias="userId")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "userId": self.owner_id,
            "company": self.company,
            "position": self.position,
            "status": self.status.value,
            # BSON has no date type
            "dateApplied": self.date_applied.isoformat(),
            "notes": self.notes,
            "jobUrl": self.job_url,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Application":
        return cls(
            id=str(doc["_id"]),
            owner_id=doc["userId"],
            company=doc["company"],
            position=doc["position"],
            status=ApplicationStatus(doc.get("status", ApplicationStatus.APPLIED.value)),
            date_applied=doc.get("dateApplied") or date.today(),
            notes=doc.get("notes", ""),
            job_url=doc.get("jobUrl", ""),
            created_at=doc.get("createdAt"),
        )
