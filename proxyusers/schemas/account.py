"""Create/update payloads and the public view of a proxy user account.

AccountCreate and AccountChanges double as the change set handed to the
lifecycle guard: a field counts as modified only when the caller set it
explicitly (``model_fields_set``), regardless of its value.
"""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from proxyusers.core.config import settings

RoleTag = Literal["user", "admin"]

EMAIL_PATTERN = re.compile(r".+@.+\..+")

EMAIL_REQUIRED_MESSAGE = "Please enter your email address"
EMAIL_INVALID_MESSAGE = "Please enter a valid email address"
PASSWORD_LENGTH_MESSAGE = "Password should be at least 8 characters"
USERNAME_REQUIRED_MESSAGE = "Please enter a username"
ROLES_REQUIRED_MESSAGE = "At least one role is required"


def _clean_email(value: object) -> str:
    if value is not None and not isinstance(value, str):
        raise PydanticCustomError("email_invalid", EMAIL_INVALID_MESSAGE)
    email = (value or "").strip()
    if not email:
        raise PydanticCustomError("email_required", EMAIL_REQUIRED_MESSAGE)
    if not EMAIL_PATTERN.fullmatch(email):
        raise PydanticCustomError("email_invalid", EMAIL_INVALID_MESSAGE)
    return email


def _check_roles(value: list[RoleTag] | None) -> list[RoleTag]:
    if not value:
        raise PydanticCustomError("roles_required", ROLES_REQUIRED_MESSAGE)
    return value


class AccountCreate(BaseModel):
    """Payload for creating an account; validated before the first save."""

    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., max_length=255, description="Unique login name")
    password: str = Field(
        default="", max_length=1024, validate_default=True, description="Plaintext password"
    )
    email: str = Field(
        default="", max_length=255, validate_default=True, description="Contact address"
    )
    roles: list[RoleTag] = Field(default_factory=lambda: ["user"])
    vm_id: str = ""
    vm_ip: str = ""
    vm_ip_id: str = ""
    volume_id: str = ""
    device_type: str = ""
    approved: bool = False

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not v or not v.strip():
            raise PydanticCustomError("username_required", USERNAME_REQUIRED_MESSAGE)
        return v.strip()

    @field_validator("password", mode="after")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) <= settings.PASSWORD_MIN_LENGTH:
            raise PydanticCustomError("password_too_short", PASSWORD_LENGTH_MESSAGE)
        return v

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, v: str | None) -> str:
        return _clean_email(v)

    @field_validator("roles")
    @classmethod
    def validate_roles(cls, v: list[RoleTag]) -> list[RoleTag]:
        return _check_roles(v)


class AccountChanges(BaseModel):
    """
    Partial update of an existing account.

    Only explicitly supplied fields are applied. username and the creation
    time cannot be changed. The password is not length-checked here; short
    passwords are ignored by the lifecycle guard instead.
    """

    model_config = ConfigDict(extra="forbid")

    password: str | None = None
    email: str | None = None
    roles: list[RoleTag] | None = None
    vm_id: str | None = None
    vm_ip: str | None = None
    vm_ip_id: str | None = None
    volume_id: str | None = None
    device_type: str | None = None
    approved: bool | None = None

    @field_validator("*")
    @classmethod
    def reject_null(cls, v: object, info: ValidationInfo) -> object:
        if v is None:
            raise PydanticCustomError("null", "{field} cannot be null", {"field": info.field_name})
        return v

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, v: str | None) -> str:
        return _clean_email(v)

    @field_validator("roles")
    @classmethod
    def validate_roles(cls, v: list[RoleTag] | None) -> list[RoleTag]:
        return _check_roles(v)


class AccountRead(BaseModel):
    """Public view of an account (no password hash or salt)."""

    username: str
    email: str
    roles: list[RoleTag]
    vm_id: str
    vm_ip: str
    vm_ip_id: str
    volume_id: str
    device_type: str
    approved: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True
