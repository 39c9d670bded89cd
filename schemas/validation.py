from fastapi import HTTPException
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError
from typing import Any, List, Optional


def first_error_message(exc: PydanticValidationError) -> str:
    """Short client-facing message for the first failing field"""
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    error = errors[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg')}" if location else str(error.get("msg"))


class SignupRequest(BaseModel):
    """Schema for teacher self-registration"""

    email: str = Field(..., min_length=3, max_length=100, description="Teacher email")
    nombre: str = Field(..., min_length=1, max_length=50)
    apellidos: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        v = v.strip()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @field_validator("nombre", "apellidos")
    @classmethod
    def validate_names(cls, v):
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=1, max_length=100)


class PermissionUpdate(BaseModel):
    """Admin toggle for a teacher's student-management permission"""

    # Must be a real JSON boolean: "true" or 1 are rejected
    puede_gestionar_alumnos: StrictBool


class TeacherStudentLink(BaseModel):
    id_alumno: int = Field(..., gt=0, description="Student ID")


class HistoryTurn(BaseModel):
    """One chat message as the frontend stores it"""

    model_config = ConfigDict(extra="ignore")

    sender: str = Field("", description="user, LLMS or separator")
    text: Optional[str] = ""

    @field_validator("sender", mode="before")
    @classmethod
    def coerce_sender(cls, v: Any):
        # Unknown senders are dropped later, when the history is formatted
        return v if isinstance(v, str) else ""

    @field_validator("text", mode="before")
    @classmethod
    def coerce_text(cls, v: Any):
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class AskRequest(BaseModel):
    """Schema for POST /ask"""

    model_config = ConfigDict(extra="ignore")

    question: StrictStr
    studentId: Optional[int] = None
    IaModel: Optional[str] = None
    alumnoNombre: Optional[str] = ""
    msgHistory: List[HistoryTurn] = Field(default_factory=list)

    @field_validator("question")
    @classmethod
    def validate_question(cls, v):
        if not v.strip():
            raise ValueError("Question cannot be empty")
        return v

    @field_validator("studentId", mode="before")
    @classmethod
    def blank_student_id(cls, v):
        # The chat sends "" before a student is picked
        if v == "":
            return None
        return v

    @field_validator("IaModel", mode="before")
    @classmethod
    def unknown_model_tag(cls, v):
        # Anything that is not a tag selects the default provider
        return v if isinstance(v, str) else None

    @field_validator("alumnoNombre", mode="before")
    @classmethod
    def blank_student_name(cls, v):
        return v or ""

    @field_validator("msgHistory", mode="before")
    @classmethod
    def null_history(cls, v):
        return v or []


def parse_body(model, body: Any):
    """Validate a raw JSON body, answering 400 (not 422) on a bad shape"""
    try:
        return model.model_validate(body if body is not None else {})
    except PydanticValidationError as e:
        raise HTTPException(status_code=400, detail=first_error_message(e))
