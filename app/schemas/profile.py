# app/schemas/profile.py
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from datetime import date, datetime
from typing import Optional


class ProfileUpdate(BaseModel):
    """Fields an applicant may edit. Role and completion flag are not accepted here."""
    display_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    dob: Optional[date] = None
    school: Optional[str] = Field(None, max_length=200)
    phone_number: Optional[str] = Field(None, max_length=20)
    pronouns: Optional[str] = Field(None, max_length=50)
    country: Optional[str] = Field(None, max_length=100)

    model_config = ConfigDict(title="ProfileUpdate", extra="ignore")


class ProfileResponse(BaseModel):
    id: str
    role: str
    is_profile_complete: bool
    display_name: Optional[str] = None
    email: Optional[str] = None
    dob: Optional[date] = None
    school: Optional[str] = None
    phone_number: Optional[str] = None
    pronouns: Optional[str] = None
    country: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, title="ProfileResponse")
