"""
System Router
API information, liveness and database round trip
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import get_db
from schemas.openapi_models import OpenAPIMetadata
from utils.logging_config import logger

router = APIRouter()


@router.get("/", summary="API Information")
async def root():
    """Version, documentation links and the available service endpoints"""
    return {
        "name": OpenAPIMetadata.TITLE,
        "version": OpenAPIMetadata.VERSION,
        "status": "operational",
        "documentation": {"swagger": "/docs", "redoc": "/redoc", "openapi_spec": "/openapi.json"},
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "auth": {"endpoint": "/login", "description": "Teacher and admin authentication"},
            "students": {"endpoint": "/alumnos", "description": "Student directory and exercise stats"},
            "teachers": {"endpoint": "/profesores", "description": "Teacher administration"},
            "links": {"endpoint": "/profesor-alumno", "description": "Teacher-student links"},
            "assistant": {"endpoint": "/ask", "description": "Questions about student performance"},
        },
    }


@router.get("/health", summary="Health Check")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": OpenAPIMetadata.VERSION,
    }


@router.get("/test-db", summary="Database round trip")
def test_db(db: Session = Depends(get_db)):
    try:
        now = db.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()
    except SQLAlchemyError as e:
        logger.error(f"Database connectivity check failed: {e}")
        raise HTTPException(status_code=500, detail="Error connecting to the database")
    return [{"now": str(now)}]
