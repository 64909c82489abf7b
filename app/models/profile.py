# app/models/profile.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CareerInterests(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    job_types: List[str] = Field(default_factory=list, alias="jobTypes")
    work_types: List[str] = Field(default_factory=list, alias="workTypes")
    locations: str = ""


class ProfileLinks(BaseModel):
    model_config = ConfigDict(extra="forbid")

    linkedin: str = ""
    portfolio: str = ""


class ProfileUpdate(BaseModel):
    """
    Fields a user may set on their own profile. Resume and enhancement
    fields are written by the upload and the worker only.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    full_name: Optional[str] = Field(default=None, alias="fullName")
    username: Optional[str] = None
    skills: Optional[List[str]] = None
    profile_picture: Optional[str] = Field(default=None, alias="profilePicture")
    career_interests: Optional[CareerInterests] = Field(default=None, alias="careerInterests")
    links: Optional[ProfileLinks] = None

    @field_validator("skills", mode="before")
    @classmethod
    def split_skills(cls, v):
        # the setup form sends "python, sql"
        if isinstance(v, str):
            v = v.split(",")
        if v is None:
            return v
        return [s.strip() for s in v if s and s.strip()]

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)
