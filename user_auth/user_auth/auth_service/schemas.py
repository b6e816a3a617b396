from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from email_validator import validate_email, EmailNotValidError

from datetime import datetime
from typing import Optional


def _required(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"The {field} field is required.")
    return value


def _valid_email(value: str) -> str:
    value = _required(value, "email").strip()
    try:
        return validate_email(value, check_deliverability=False).normalized
    except EmailNotValidError as exc:
        raise ValueError("The email field must be a valid email address.") from exc


class UserCreate(BaseModel):
    name: str
    email: str
    password: str
    password_confirmation: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        return _required(value, "name").strip()

    @field_validator("email")
    @classmethod
    def email_valid(cls, value: str) -> str:
        return _valid_email(value)

    @field_validator("password")
    @classmethod
    def password_required(cls, value: str) -> str:
        return _required(value, "password")

    @field_validator("password_confirmation")
    @classmethod
    def password_confirmed(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        # Skip when password itself already failed validation
        password = info.data.get("password")
        if password is not None and value != password:
            raise ValueError("The password field confirmation does not match.")
        return value


class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_valid(cls, value: str) -> str:
        return _valid_email(value)

    @field_validator("password")
    @classmethod
    def password_required(cls, value: str) -> str:
        return _required(value, "password")


class UserProfile(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class APIResponse(BaseModel):
    status: bool
    message: str


class TokenResponse(APIResponse):
    token: str
    token_type: str = "bearer"
    expires_in: int


class ProfileResponse(APIResponse):
    data: UserProfile

