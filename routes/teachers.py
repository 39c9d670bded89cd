"""
Teachers Router (admin only)
List teachers, toggle their student-management permission, remove accounts
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from db import get_db
from models import Teacher, teacher_students
from schemas.api_models import MessageResponse, TeacherResponse
from schemas.validation import PermissionUpdate, parse_body
from utils.auth_dependencies import TokenUser, check_admin
from utils.error_handling import (
    handle_database_error,
    log_operation_success,
    safe_database_operation,
    validate_resource_exists,
)

router = APIRouter()


@router.get("", response_model=List[TeacherResponse])
def list_teachers(admin: TokenUser = Depends(check_admin), db: Session = Depends(get_db)):
    try:
        return db.query(Teacher).order_by(Teacher.id_profesor).all()
    except Exception as e:
        handle_database_error(e, "list teachers")


@router.patch("/{id_profesor}/permiso", response_model=TeacherResponse)
def update_permission(
    id_profesor: int,
    body: Optional[Dict[str, Any]] = Body(None),
    admin: TokenUser = Depends(check_admin),
    db: Session = Depends(get_db),
):
    data = parse_body(PermissionUpdate, body)

    try:
        teacher = db.query(Teacher).filter(Teacher.id_profesor == id_profesor).first()
        validate_resource_exists(teacher, "Teacher", id_profesor)

        with safe_database_operation(db, "update teacher permission"):
            teacher.puede_gestionar_alumnos = data.puede_gestionar_alumnos
            db.commit()
            db.refresh(teacher)

        log_operation_success(
            "Teacher permission update", f"id_profesor={id_profesor} value={data.puede_gestionar_alumnos}"
        )
        return teacher
    except Exception as e:
        handle_database_error(e, "update teacher permission")


@router.delete("/{id_profesor}", response_model=MessageResponse)
def delete_teacher(id_profesor: int, admin: TokenUser = Depends(check_admin), db: Session = Depends(get_db)):
    """Removes the teacher's student links first, then the teacher"""
    try:
        teacher = db.query(Teacher).filter(Teacher.id_profesor == id_profesor).first()
        validate_resource_exists(teacher, "Teacher", id_profesor)

        with safe_database_operation(db, "delete teacher"):
            db.execute(teacher_students.delete().where(teacher_students.c.id_profesor == id_profesor))
            db.delete(teacher)
            db.commit()

        log_operation_success("Teacher deletion", f"id_profesor={id_profesor}")
        return {"message": "Teacher deleted"}
    except Exception as e:
        handle_database_error(e, "delete teacher")
