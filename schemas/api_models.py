"""
Response schemas for the teacher-facing API
JSON keys follow the frontend contract, hence the Spanish column names
"""

from pydantic import BaseModel, ConfigDict
from typing import Any, List, Optional
from datetime import datetime


# ============================================================================
# AUTH
# ============================================================================


class SignupResponse(BaseModel):
    userId: int


class LoginResponse(BaseModel):
    token: str
    rol: str
    nombre: str
    apellidos: str
    id: int


class ProfileResponse(BaseModel):
    """Admins have no permission flag, so it is omitted for them"""

    nombre: str
    apellidos: str
    email: str
    puede_gestionar_alumnos: Optional[bool] = None


# ============================================================================
# STUDENTS
# ============================================================================


class StudentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id_alumno: int
    email: str
    nombre: str
    apellidos: str
    genero: Optional[str] = None
    curso: Optional[str] = None


class StudentListResponse(BaseModel):
    alumnos: List[StudentResponse]
    totalPages: int


class StudentSearchResponse(BaseModel):
    alumnos: List[StudentResponse]


class StudentExerciseRow(StudentResponse):
    """A student joined with one of their exercise records (all None when there are none)"""

    id_ejercicio: Optional[int] = None
    aciertos: Optional[int] = None
    fallos: Optional[int] = None
    letras_correctas: Optional[int] = None
    date_inicio: Optional[datetime] = None
    date_fin: Optional[datetime] = None
    dificultad: Optional[str] = None
    tipo_ejercicio: Optional[str] = None


# ============================================================================
# TEACHERS
# ============================================================================


class TeacherResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id_profesor: int
    nombre: str
    apellidos: str
    email: str
    puede_gestionar_alumnos: bool


# ============================================================================
# COMMON
# ============================================================================


class MessageResponse(BaseModel):
    message: str


class AskResponse(BaseModel):
    answer: str


class ErrorResponse(BaseModel):
    """Envelope produced by the application's exception handlers"""

    success: bool = False
    error: str
    detail: Optional[Any] = None
    status_code: int
    request_id: Optional[str] = None
    correlation_id: Optional[str] = None
