# app/models/enhancement.py
from enum import Enum
from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


class JobState(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({JobState.COMPLETED, JobState.ERROR})

# forward-only state machine; terminal states have no exits
ALLOWED_TRANSITIONS: Dict[JobState, frozenset] = {
    JobState.PENDING: frozenset({JobState.PROCESSING, JobState.ERROR}),
    JobState.PROCESSING: frozenset({JobState.COMPLETED, JobState.ERROR}),
    JobState.COMPLETED: frozenset(),
    JobState.ERROR: frozenset(),
}


def can_transition(current: JobState, target: JobState) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def sources_for(target: JobState) -> list:
    """States a job may be in for a move to `target` to be allowed."""
    return [s.value for s, targets in ALLOWED_TRANSITIONS.items() if target in targets]


class EnhancementJob(BaseModel):
    """
    One resume enhancement request.

    Stored in the jobs collection with camelCase field names; see
    to_document / from_document for the mapping.
    """
    id: str
    owner_id: str
    file_reference: str
    file_name: str
    state: JobState = JobState.PENDING
    result: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    processing_started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    errored_at: Optional[datetime] = None

    def to_document(self) -> Dict[str, Any]:
        doc = {
            "_id": self.id,
            "userId": self.owner_id,
            "fileUrl": self.file_reference,
            "fileName": self.file_name,
            "status": self.state.value,
            "createdAt": self.created_at,
        }
        # optional fields are only written once their transition has happened
        optional = {
            "enhancedResume": self.result,
            "error": self.error_message,
            "processingStartTime": self.processing_started_at,
            "completionTime": self.completed_at,
            "errorTime": self.errored_at,
        }
        doc.update({k: v for k, v in optional.items() if v is not None})
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "EnhancementJob":
        return cls(
            id=str(doc["_id"]),
            owner_id=doc["userId"],
            file_reference=doc.get("fileUrl", ""),
            file_name=doc.get("fileName", ""),
            state=JobState(doc.get("status", JobState.PENDING.value)),
            result=doc.get("enhancedResume"),
            error_message=doc.get("error"),
            created_at=doc.get("createdAt"),
            processing_started_at=doc.get("processingStartTime"),
            completed_at=doc.get("completionTime"),
            errored_at=doc.get("errorTime"),
        )


# --- API payloads (wire names match the callable functions' contracts) ---

class EnqueueRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_url: str = Field(alias="fileUrl")
    file_name: str = Field(alias="fileName")


class EnqueueResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    queue_id: str = Field(alias="queueId")
    message: str = "Resume enhancement process started"


class StatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    queue_id: str = Field(alias="queueId")


class StatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: JobState
    enhanced_resume: Optional[str] = Field(default=None, alias="enhancedResume")
    error: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    completion_time: Optional[datetime] = Field(default=None, alias="completionTime")

    @classmethod
    def from_job(cls, job: EnhancementJob) -> "StatusResponse":
        return cls(
            status=job.state,
            enhanced_resume=job.result,
            error=job.error_message,
            created_at=job.created_at,
            completion_time=job.completed_at,
        )


class UploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_url: str = Field(alias="fileUrl")
    file_name: str = Field(alias="fileName")
    storage_key: str = Field(alias="storageKey")
