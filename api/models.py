"""
API request and response models for TaskVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route handlers
map between the two.

Required-field checks for signup, login and task creation are done by the
services, not here, so a missing field produces the services' 400 message
instead of a schema error. These models only bound sizes and types.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tasks.models import Task

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TaskStatusEnum(str, Enum):
    pending = "pending"
    in_progress = "in progress"
    completed = "completed"


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Request body for POST /auth/signup and POST /auth/login.

    The password is used exactly as sent; only the email is stripped. The
    72-byte bcrypt limit is checked by the Authenticator, since max_length
    here counts characters.
    """

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=64)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        return value.strip() if isinstance(value, str) else value


class TokenResponse(BaseModel):
    """Response for POST /auth/login and GET /auth/verify-token."""

    model_config = ConfigDict(frozen=True)

    token: Optional[str]


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskCreate(BaseModel):
    """Request body for POST /task. Clients send dueDate (camelCase)."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    due_date: Optional[int] = Field(default=None, alias="dueDate")
    status: Optional[TaskStatusEnum] = None


class TaskUpdate(BaseModel):
    """Request body for PUT /task/{id}. Omitted fields are left unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    due_date: Optional[int] = Field(default=None, alias="dueDate")
    status: Optional[TaskStatusEnum] = None


class TaskResponse(BaseModel):
    """A single task as returned to its owner."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    title: str
    description: str
    due_date: int = Field(alias="dueDate")
    status: TaskStatusEnum

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            due_date=task.due_date,
            status=task.status,
        )


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    message: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
