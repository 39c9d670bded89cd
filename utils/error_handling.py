"""
Centralized error handling: the /ask error taxonomy and database helpers for the CRUD routes
"""

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from sqlalchemy.orm import Session
from utils.logging_config import logger
from typing import Any
import traceback


# =============================================================================
# /ask PIPELINE TAXONOMY
# =============================================================================


class AskError(Exception):
    """Base class for failures surfaced by the question-answer pipeline.

    ``public_message`` is the only text that reaches the client; the
    exception's own message may carry internal detail for the logs.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Internal error in the AI server."

    def __init__(self, message: str = "", public_message: str = None):
        super().__init__(message or self.public_message)
        if public_message:
            self.public_message = public_message


class ValidationError(AskError):
    """Bad input shape (missing or non-string question, malformed history)"""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Missing or invalid question"


class UnsafeQueryError(AskError):
    """Generated query rejected by the read-only gate"""

    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "SQL query blocked for security reasons."


class ProviderError(AskError):
    """LLM provider call failed"""

    status_code = status.HTTP_502_BAD_GATEWAY
    public_message = "Could not reach the AI model. Please try again later."


class StoreError(AskError):
    """Data store connection or query failed"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    public_message = "Could not connect to the database. Please try again later."


class PipelineTimeoutError(AskError):
    """An external call exceeded its time budget"""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    public_message = "The request took too long to complete. Please try again later."


class UnknownError(AskError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message = "Internal error in the AI server."


# =============================================================================
# DATABASE HELPERS
# =============================================================================


def handle_database_error(e: Exception, operation: str = "database operation") -> None:
    """
    Handle database errors consistently across the application

    Args:
        e: The exception that occurred
        operation: Description of the operation that failed
    """
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, IntegrityError):
        logger.warning(f"Database integrity error during {operation}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Data integrity constraint violated. This operation conflicts with existing data.",
        )
    elif isinstance(e, SQLAlchemyError):
        logger.error(f"Database error during {operation}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database operation failed. Please try again later.",
        )
    else:
        logger.error(f"Unexpected error during {operation}: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
        )


class safe_database_operation:
    """
    Context manager for database writes with automatic rollback

    Usage:
        with safe_database_operation(db, "link student"):
            db.add(link)
            db.commit()
    """

    def __init__(self, db: Session, operation_name: str):
        self.db = db
        self.operation_name = operation_name

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.db.rollback()
            handle_database_error(exc_val, self.operation_name)
        return False


def validate_resource_exists(resource: Any, resource_name: str, resource_id: Any) -> None:
    """Raise 404 when a looked-up resource is missing"""
    if not resource:
        logger.warning(f"{resource_name} not found: {resource_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource_name} not found")


def log_operation_success(operation: str, details: str = None) -> None:
    """Log successful operations for audit purposes"""
    if details:
        logger.info(f"Operation successful: {operation} - {details}")
    else:
        logger.info(f"Operation successful: {operation}")
