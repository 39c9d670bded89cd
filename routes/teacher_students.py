"""
Teacher-Student Links Router
Adds and removes students from the calling teacher's list
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from db import get_db
from models import Student, teacher_students
from schemas.api_models import MessageResponse
from schemas.validation import TeacherStudentLink, parse_body
from utils.auth_dependencies import TokenUser, check_token
from utils.logging_config import logger

router = APIRouter()


def _link_filter(id_profesor, id_alumno):
    return and_(teacher_students.c.id_profesor == id_profesor, teacher_students.c.id_alumno == id_alumno)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
def link_student(
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: TokenUser = Depends(check_token),
    db: Session = Depends(get_db),
):
    data = parse_body(TeacherStudentLink, body)

    try:
        if not db.query(Student).filter(Student.id_alumno == data.id_alumno).first():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")

        linked = db.execute(
            teacher_students.select().where(_link_filter(current_user.user_id, data.id_alumno))
        ).first()
        if linked:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Student already linked to this teacher")

        db.execute(teacher_students.insert().values(id_profesor=current_user.user_id, id_alumno=data.id_alumno))
        db.commit()

        logger.info(f"Student {data.id_alumno} linked to teacher {current_user.user_id}")
        return {"message": "Student linked"}
    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error linking student: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Student already linked to this teacher")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error in link_student: {e}")
        raise HTTPException(status_code=500, detail="Error linking student")


@router.delete("", response_model=MessageResponse)
def unlink_student(
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: TokenUser = Depends(check_token),
    db: Session = Depends(get_db),
):
    data = parse_body(TeacherStudentLink, body)

    try:
        result = db.execute(teacher_students.delete().where(_link_filter(current_user.user_id, data.id_alumno)))
        if result.rowcount == 0:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link not found")
        db.commit()

        logger.info(f"Student {data.id_alumno} unlinked from teacher {current_user.user_id}")
        return {"message": "Student removed from the teacher's list"}
    except HTTPException:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error in unlink_student: {e}")
        raise HTTPException(status_code=500, detail="Error removing student")
