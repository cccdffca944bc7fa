from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from datetime import datetime
from typing import List, Optional
import re

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")
NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRegistrationRequest(CamelModel):
    email: str
    password: str
    first_name: str
    last_name: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Email is required")
        if not 5 <= len(value) <= 255:
            raise ValueError("Email must be 5-255 characters")
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format")
        return value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Password is required")
        if not 8 <= len(value) <= 128:
            raise ValueError("Password must be 8-128 characters")
        if not PASSWORD_PATTERN.match(value):
            raise ValueError("Password must contain uppercase, lowercase, number, and special character")
        return value

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, value: str, info) -> str:
        label = "First name" if info.field_name == "first_name" else "Last name"
        if not value or not value.strip():
            raise ValueError(f"{label} is required")
        if not 2 <= len(value) <= 50:
            raise ValueError(f"{label} must be 2-50 characters")
        if not NAME_PATTERN.match(value):
            raise ValueError(f"{label} can only contain letters, spaces, hyphens, and apostrophes")
        return value


class UserRegistrationResponse(CamelModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    message: str = "Registration successful! You can now log in."


class UserProfileResponse(CamelModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime


# Error envelope
class FieldError(BaseModel):
    field: str
    message: str


class ErrorDetail(BaseModel):
    code: str
    message: str
    timestamp: datetime
    details: Optional[List[FieldError]] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail
