# app/schemas/auth.py
from pydantic import BaseModel, EmailStr, ConfigDict, Field
from typing import Optional


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    display_name: Optional[str] = None

    model_config = ConfigDict(title="SignupRequest")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    model_config = ConfigDict(title="LoginRequest")


class ResendVerificationRequest(BaseModel):
    email: EmailStr

    model_config = ConfigDict(title="ResendVerificationRequest")


class SessionResponse(BaseModel):
    status: str
    message: str
    next: Optional[str] = None
    access_token: Optional[str] = None
    token_type: Optional[str] = None

    model_config = ConfigDict(title="SessionResponse")
