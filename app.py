"""
SMART-TDAH API
Teacher-facing backend: student directory, teacher administration and the AI assistant
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from routes import ask, auth, health, students, teacher_students, teachers
from config import settings
from db import engine
from utils.error_handling import AskError
from utils.query_pipeline import build_pipeline

# Configure structured logging
from utils.structured_logging import (
    configure_logging,
    get_logger,
    log_request_middleware,
    LogCategory,
)

configure_logging(level=settings.LOG_LEVEL, json_output=True)
logger = get_logger("app")

from schemas.openapi_models import ASK_RESPONSES, COMMON_RESPONSES, OpenAPIMetadata, OpenAPITags

app = FastAPI(
    title=OpenAPIMetadata.TITLE,
    description=OpenAPIMetadata.DESCRIPTION,
    version=OpenAPIMetadata.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    servers=OpenAPIMetadata.SERVERS,
    openapi_tags=[
        OpenAPITags.AUTH,
        OpenAPITags.STUDENTS,
        OpenAPITags.TEACHERS,
        OpenAPITags.ASSISTANT,
        OpenAPITags.SYSTEM,
    ],
)

# Built once; request handlers only read it
app.state.pipeline = build_pipeline(settings, engine)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin", "X-Correlation-ID"],
    expose_headers=["X-Correlation-ID", "X-Request-ID"],
)


# Structured logging middleware - adds correlation IDs and logs all requests
@app.middleware("http")
async def structured_logging_middleware(request: Request, call_next):
    """Add correlation IDs and structured logging to all requests"""
    return await log_request_middleware(request, call_next)


# Global exception handlers
@app.exception_handler(AskError)
async def ask_exception_handler(request: Request, exc: AskError):
    """Pipeline failures: only the public message reaches the client"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"Assistant request failed with {type(exc).__name__}",
        category=LogCategory.PIPELINE,
        request_method=request.method,
        request_path=request.url.path,
        response_status=exc.status_code,
        error_type=type(exc).__name__,
        error_message=str(exc),
        user_id=getattr(request.state, "user_id", None),
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.public_message,
            "status_code": exc.status_code,
            "request_id": getattr(request.state, "request_id", None),
            "correlation_id": getattr(request.state, "correlation_id", None),
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with proper structure and logging"""
    errors = []
    for error in exc.errors():
        errors.append(
            {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"], "code": error["type"]}
        )

    logger.warning(
        "Validation error",
        category=LogCategory.ERROR,
        request_method=request.method,
        request_path=request.url.path,
        error_type="ValidationError",
        error_message=f"{len(errors)} validation errors",
        extra={"errors": errors},
    )

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Validation Error",
            "detail": errors,
            "status_code": 422,
            "request_id": getattr(request.state, "request_id", None),
            "correlation_id": getattr(request.state, "correlation_id", None),
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions with proper structure and logging"""

    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code} error",
            category=LogCategory.ERROR,
            request_method=request.method,
            request_path=request.url.path,
            response_status=exc.status_code,
            error_message=str(exc.detail),
        )
    elif exc.status_code >= 400:
        logger.warning(
            f"HTTP {exc.status_code} client error",
            category=LogCategory.ERROR,
            request_method=request.method,
            request_path=request.url.path,
            response_status=exc.status_code,
            error_message=str(exc.detail),
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "detail": exc.detail,
            "status_code": exc.status_code,
            "request_id": getattr(request.state, "request_id", None),
            "correlation_id": getattr(request.state, "correlation_id", None),
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with structured logging"""

    logger.critical(
        "Unexpected server error",
        category=LogCategory.ERROR,
        exception=exc,
        request_method=request.method,
        request_path=request.url.path,
        user_id=getattr(request.state, "user_id", None),
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred. Please try again later.",
            "status_code": 500,
            "request_id": getattr(request.state, "request_id", None),
            "correlation_id": getattr(request.state, "correlation_id", None),
        },
    )


app.include_router(health.router, tags=[OpenAPITags.SYSTEM["name"]])

app.include_router(auth.router, tags=[OpenAPITags.AUTH["name"]], responses=COMMON_RESPONSES)

app.include_router(
    students.router, prefix="/alumnos", tags=[OpenAPITags.STUDENTS["name"]], responses=COMMON_RESPONSES
)

app.include_router(
    teachers.router, prefix="/profesores", tags=[OpenAPITags.TEACHERS["name"]], responses=COMMON_RESPONSES
)

app.include_router(
    teacher_students.router,
    prefix="/profesor-alumno",
    tags=[OpenAPITags.STUDENTS["name"]],
    responses=COMMON_RESPONSES,
)

app.include_router(
    ask.router,
    tags=[OpenAPITags.ASSISTANT["name"]],
    responses={**COMMON_RESPONSES, **ASK_RESPONSES},
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host=settings.HOST, port=settings.SERVER_PORT)
