"""
Request schemas for the Task Manager API.

Every request body is parsed into one of the pydantic models below before
anything touches the database.  Creation models ignore unknown keys so
clients cannot mass-assign protected fields; update models are closed
(``extra="forbid"``) so any key outside the allowed set rejects the whole
request.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from .models import MAX_INTEGER

INVALID_UPDATES_MESSAGE = "Invalid updates!"

PASSWORD_MIN_LENGTH = 7
DESCRIPTION_MIN_LENGTH = 5


def _check_password(value: str) -> str:
    if "password" in value.lower():
        raise ValueError("Password cannot contain 'password'")
    return value


class _Schema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class _UpdateSchema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class UserCreate(_Schema):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    age: int = Field(0, ge=0, le=MAX_INTEGER)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def _password_rules(cls, value: str) -> str:
        return _check_password(value)


class UserUpdate(_UpdateSchema):
    """Fields a user may change on their own profile."""

    name: str | None = Field(None, min_length=1)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=PASSWORD_MIN_LENGTH)
    age: int | None = Field(None, ge=0, le=MAX_INTEGER)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str | None) -> str | None:
        return value.lower() if value is not None else None

    @field_validator("password")
    @classmethod
    def _password_rules(cls, value: str | None) -> str | None:
        return _check_password(value) if value is not None else None


class LoginRequest(_Schema):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()


class TaskCreate(_Schema):
    description: str = Field(..., min_length=DESCRIPTION_MIN_LENGTH)
    completed: bool = False


class TaskUpdate(_UpdateSchema):
    """Fields an owner may change on a task."""

    description: str | None = Field(None, min_length=DESCRIPTION_MIN_LENGTH)
    completed: bool | None = None


def explicit_fields(model: BaseModel) -> dict[str, Any]:
    """
    Return only the fields the client actually sent.

    Explicit ``null`` values are rejected because none of the updatable
    columns are nullable.

    Raises:
        ValueError: If a sent field is ``None``.
    """
    data = model.model_dump(exclude_unset=True)
    for field, value in data.items():
        if value is None:
            raise ValueError(f"{field}: must not be null")
    return data


def format_validation_error(exc: ValidationError) -> str:
    """
    Collapse a pydantic ``ValidationError`` into one readable message.

    Unknown keys on a closed update model map to the fixed
    ``"Invalid updates!"`` message; any other problem is reported as
    ``"<field>: <reason>"`` for the first failing field.
    """
    errors = exc.errors()
    if any(error["type"] == "extra_forbidden" for error in errors):
        return INVALID_UPDATES_MESSAGE

    first = errors[0]
    location = ".".join(str(part) for part in first["loc"]) or "body"
    message = first["msg"]
    # Custom validators surface as "Value error, <text>"
    if message.startswith("Value error, "):
        message = message[len("Value error, ") :]
    return f"{location}: {message}"
