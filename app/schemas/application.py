# app/schemas/application.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional, List


class ApplicationValues(BaseModel):
    """Raw form values as sent by the applicant form. Everything optional so drafts can be partial."""

    # SECTION A: Basic Info
    phone_number: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    citizenship: Optional[str] = Field(None, max_length=100)

    # SECTION B: Education
    is_student: Optional[bool] = None
    school: Optional[str] = Field(None, max_length=200)
    study_level: Optional[str] = Field(None, max_length=50)
    graduation_year: Optional[int] = Field(None, ge=1900, le=2100)
    major: Optional[str] = Field(None, max_length=100)

    # SECTION C: Experience
    attended_mlh: Optional[bool] = None
    technical_skills: Optional[List[str]] = None
    programming_languages: Optional[List[str]] = None
    hackathon_experience: Optional[bool] = None
    hackathon_experience_desc: Optional[str] = None

    # SECTION D: Team & Goals
    has_team: Optional[bool] = None
    needs_teammates: Optional[bool] = None
    desired_teammate_skills: Optional[str] = None
    goals: Optional[str] = None
    heard_from: Optional[str] = Field(None, max_length=200)

    # SECTION E: Support Needs
    needs_sponsorship: Optional[bool] = None
    accessibility_needs: Optional[bool] = None
    accessibility_desc: Optional[str] = None
    dietary_restrictions: Optional[bool] = None
    dietary_desc: Optional[str] = None

    # SECTION F: Emergency Contact
    emergency_contact_name: Optional[str] = Field(None, max_length=100)
    emergency_contact_phone: Optional[str] = Field(None, max_length=30)
    emergency_contact_relation: Optional[str] = Field(None, max_length=50)

    # SECTION G: Demographics
    tshirt_size: Optional[str] = Field(None, max_length=10)
    ethnicity: Optional[List[str]] = None
    underrepresented: Optional[bool] = None

    # SECTION H: Agreements
    mlh_code_of_conduct: Optional[bool] = None
    mlh_data_sharing: Optional[bool] = None
    mlh_communications: Optional[bool] = None
    info_accurate: Optional[bool] = None
    understands_admission: Optional[bool] = None

    model_config = ConfigDict(title="ApplicationValues", extra="ignore")


class ApplicationSubmission(BaseModel):
    """Server-side rules a submitted application must satisfy."""

    phone_number: str = Field(min_length=10, max_length=30)
    address: str = Field(min_length=1)
    citizenship: str = Field(min_length=1, max_length=100)

    is_student: bool
    school: Optional[str] = Field(None, max_length=200)
    study_level: Optional[str] = Field(None, max_length=50)
    graduation_year: Optional[int] = Field(None, ge=1900, le=2100)
    major: Optional[str] = Field(None, max_length=100)

    attended_mlh: bool
    technical_skills: List[str] = []
    programming_languages: List[str] = []
    hackathon_experience: bool
    hackathon_experience_desc: Optional[str] = None

    has_team: bool
    needs_teammates: bool
    desired_teammate_skills: Optional[str] = None
    goals: str = Field(min_length=1)
    heard_from: str = Field(min_length=1, max_length=200)

    needs_sponsorship: bool
    accessibility_needs: bool
    accessibility_desc: Optional[str] = None
    dietary_restrictions: bool
    dietary_desc: Optional[str] = None

    emergency_contact_name: str = Field(min_length=1, max_length=100)
    emergency_contact_phone: str = Field(min_length=10, max_length=30)
    emergency_contact_relation: str = Field(min_length=1, max_length=50)

    tshirt_size: str = Field(min_length=1, max_length=10)
    ethnicity: List[str] = []
    underrepresented: bool

    mlh_code_of_conduct: bool
    mlh_data_sharing: bool
    mlh_communications: bool = False
    info_accurate: bool
    understands_admission: bool

    @field_validator("phone_number", "address", "citizenship", "goals", "heard_from",
                     "emergency_contact_name", "emergency_contact_phone",
                     "emergency_contact_relation", "tshirt_size", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("mlh_code_of_conduct", "mlh_data_sharing", "info_accurate", "understands_admission")
    @classmethod
    def must_agree(cls, v: bool):
        if v is not True:
            raise ValueError("This agreement must be accepted")
        return v

    model_config = ConfigDict(title="ApplicationSubmission")


class ApplicationResponse(ApplicationValues):
    id: str
    user_id: str
    status: str
    version: int
    created_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, title="ApplicationResponse")
