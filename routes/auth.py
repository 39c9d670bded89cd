"""
Authentication Router
Teacher signup, teacher/admin login, password change and profile
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from passlib.hash import bcrypt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from db import get_db
from models import Admin, Teacher, UserRole
from schemas.api_models import LoginResponse, MessageResponse, ProfileResponse, SignupResponse
from schemas.validation import ChangePasswordRequest, LoginRequest, SignupRequest, parse_body
from utils.auth_dependencies import TokenUser, check_token
from utils.jwt_utils import jwt_manager
from utils.logging_config import logger
from utils.structured_logging import log_authentication_event

router = APIRouter()


def _account_for(db: Session, current_user: TokenUser):
    """Teacher or admin row behind a session token, None when it no longer exists"""
    if current_user.is_admin:
        return db.query(Admin).filter(Admin.id_admin == current_user.user_id).first()
    return db.query(Teacher).filter(Teacher.id_profesor == current_user.user_id).first()


@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=SignupResponse)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    """Register a new teacher account"""
    try:
        if db.query(Teacher).filter(Teacher.email == data.email).first():
            logger.warning(f"Signup attempt with existing email: {data.email}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

        teacher = Teacher(
            email=data.email,
            nombre=data.nombre,
            apellidos=data.apellidos,
            password=bcrypt.hash(data.password),
        )
        db.add(teacher)
        db.commit()
        db.refresh(teacher)

        logger.info(f"Teacher registered: {teacher.id_profesor}")
        return {"userId": teacher.id_profesor}
    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error in signup: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error in signup: {e}")
        raise HTTPException(status_code=500, detail="Error registering new user")


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Teachers are looked up first, then admins"""
    try:
        teacher = db.query(Teacher).filter(Teacher.email == data.email).first()
        if teacher:
            account, account_id, role = teacher, teacher.id_profesor, UserRole.TEACHER.value
        else:
            admin = db.query(Admin).filter(Admin.email == data.email).first()
            account, account_id, role = admin, admin.id_admin if admin else None, UserRole.ADMIN.value

        if not account or not bcrypt.verify(data.password, account.password):
            log_authentication_event("login", success=False, details={"email": data.email})
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

        token = jwt_manager.create_access_token(account_id, role)
        log_authentication_event("login", user_id=account_id, success=True, details={"rol": role})
        return {
            "token": token,
            "rol": role,
            "nombre": account.nombre,
            "apellidos": account.apellidos,
            "id": account_id,
        }
    except HTTPException:
        raise
    except SQLAlchemyError as e:
        logger.error(f"Database error in login: {e}")
        raise HTTPException(status_code=500, detail="Error logging in")


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: Optional[Dict[str, Any]] = Body(None),
    current_user: TokenUser = Depends(check_token),
    db: Session = Depends(get_db),
):
    data = parse_body(ChangePasswordRequest, body)
    try:
        account = _account_for(db, current_user)
        if not account:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        if not bcrypt.verify(data.currentPassword, account.password):
            log_authentication_event(
                "change_password", user_id=current_user.user_id, success=False, details={"reason": "wrong password"}
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")

        account.password = bcrypt.hash(data.newPassword)
        db.commit()

        log_authentication_event("change_password", user_id=current_user.user_id, success=True)
        return {"message": "Password changed successfully"}
    except HTTPException:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error in change_password: {e}")
        raise HTTPException(status_code=500, detail="Error changing password")


@router.get("/profile", response_model=ProfileResponse, response_model_exclude_none=True)
def get_profile(current_user: TokenUser = Depends(check_token), db: Session = Depends(get_db)):
    if current_user.role not in (UserRole.TEACHER.value, UserRole.ADMIN.value):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid role")

    try:
        account = _account_for(db, current_user)
    except SQLAlchemyError as e:
        logger.error(f"Database error in get_profile: {e}")
        raise HTTPException(status_code=500, detail="Error fetching profile")

    if not account:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    profile = {"nombre": account.nombre, "apellidos": account.apellidos, "email": account.email}
    if not current_user.is_admin:
        profile["puede_gestionar_alumnos"] = account.puede_gestionar_alumnos
    return profile
