"""
Students Router
A teacher's student list, per-student exercise stats and the global email search
"""

import math
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import get_db
from models import ExerciseRecord, Student, teacher_students
from schemas.api_models import StudentExerciseRow, StudentListResponse, StudentSearchResponse
from utils.auth_dependencies import TokenUser, check_token
from utils.structured_logging import get_logger, LogCategory

router = APIRouter()

logger = get_logger("routes.students")

FILTERABLE_FIELDS = {
    "nombre": Student.nombre,
    "apellidos": Student.apellidos,
    "curso": Student.curso,
}

SEARCH_LIMIT = 50


@router.get("/", response_model=StudentListResponse)
def list_students(
    page: int = Query(1, ge=1),
    page_size: int = Query(16, ge=1, le=500),
    filter_by: Optional[str] = None,
    query: str = "",
    current_user: TokenUser = Depends(check_token),
    db: Session = Depends(get_db),
):
    """
    Students linked to the calling teacher, one page at a time

    ``filter_by`` + ``query`` apply a case-insensitive substring match on
    nombre, apellidos or curso.
    """
    base = (
        db.query(Student)
        .join(teacher_students, teacher_students.c.id_alumno == Student.id_alumno)
        .filter(teacher_students.c.id_profesor == current_user.user_id)
    )

    if filter_by and query:
        column = FILTERABLE_FIELDS.get(filter_by)
        if column is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid filter field")
        base = base.filter(func.lower(column).like(f"%{query.lower()}%"))

    try:
        total = base.count()
        students = base.order_by(Student.id_alumno).offset((page - 1) * page_size).limit(page_size).all()
    except SQLAlchemyError as e:
        logger.error("Error fetching students", category=LogCategory.DATABASE, exception=e)
        raise HTTPException(status_code=500, detail="Error fetching students")

    return {"alumnos": students, "totalPages": math.ceil(total / page_size)}


@router.get("/add-alumnos/buscar", response_model=StudentSearchResponse)
def search_students_by_email(
    email: str = "",
    current_user: TokenUser = Depends(check_token),
    db: Session = Depends(get_db),
):
    """Global search used when adding students to a teacher's list"""
    if not email:
        return {"alumnos": []}

    try:
        students = (
            db.query(Student)
            .filter(func.lower(Student.email).like(f"%{email.lower()}%"))
            .order_by(Student.email)
            .limit(SEARCH_LIMIT)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error("Error searching students", category=LogCategory.DATABASE, exception=e)
        raise HTTPException(status_code=500, detail="Error searching students")

    return {"alumnos": students}


@router.get("/{id_alumno}", response_model=List[StudentExerciseRow])
def get_student_stats(
    id_alumno: int,
    current_user: TokenUser = Depends(check_token),
    db: Session = Depends(get_db),
):
    """One row per exercise record; a student without records yields a single row of nulls"""
    try:
        rows = (
            db.query(Student, ExerciseRecord)
            .outerjoin(ExerciseRecord, ExerciseRecord.id_alumno == Student.id_alumno)
            .filter(Student.id_alumno == id_alumno)
            .order_by(ExerciseRecord.date_inicio)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error("Error fetching stats", category=LogCategory.DATABASE, exception=e)
        raise HTTPException(status_code=500, detail="Error fetching stats")

    if not rows:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

    return [_stats_row(student, exercise) for student, exercise in rows]


def _stats_row(student: Student, exercise: Optional[ExerciseRecord]) -> dict:
    row = {
        "id_alumno": student.id_alumno,
        "email": student.email,
        "nombre": student.nombre,
        "apellidos": student.apellidos,
        "genero": student.genero,
        "curso": student.curso,
    }
    if exercise is not None:
        row.update(
            id_ejercicio=exercise.id_ejercicio,
            aciertos=exercise.aciertos,
            fallos=exercise.fallos,
            letras_correctas=exercise.letras_correctas,
            date_inicio=exercise.date_inicio,
            date_fin=exercise.date_fin,
            dificultad=exercise.dificultad,
            tipo_ejercicio=exercise.tipo_ejercicio,
        )
    return row
