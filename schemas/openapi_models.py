"""
OpenAPI Documentation Metadata
Tags, API description and shared error responses for the generated docs
"""

from .api_models import ErrorResponse


class OpenAPITags:
    """Centralized tag definitions for OpenAPI documentation"""

    AUTH = {
        "name": "Authentication",
        "description": """
        **Teacher and admin accounts**

        - **Signup**: teachers register themselves
        - **Login**: teachers first, then admins; returns a one-hour JWT
        - **Profile / password**: for the logged-in account
        """,
    }

    STUDENTS = {
        "name": "Students",
        "description": """
        **Student directory**

        Paginated list of the calling teacher's students, per-student exercise
        statistics and a global email search used to add students to the list.
        """,
    }

    TEACHERS = {
        "name": "Teachers",
        "description": """
        **Teacher administration (admin only)**

        List teachers, grant or revoke the student-management permission and remove accounts.
        """,
    }

    ASSISTANT = {
        "name": "AI Assistant",
        "description": """
        **Questions about student performance**

        The assistant writes one read-only SQL query, runs it after a safety check
        and answers in the language of the question.

        ### Models:
        - `gemini` (default)
        - `groq-llama`
        - `mixtral`
        """,
    }

    SYSTEM = {
        "name": "System",
        "description": """
        **System Information & Health**

        - **Health Checks**: Service availability monitoring
        - **Database check**: a round trip to the database
        """,
    }


class OpenAPIMetadata:
    TITLE = "SMART-TDAH API"

    DESCRIPTION = """
    ## SMART-TDAH API

    Backend for teachers following the exercise results of students with ADHD.

    - **Directory**: students linked to each teacher, exercise statistics
    - **Administration**: teacher accounts and permissions
    - **AI Assistant**: natural-language questions answered from the exercise data

    ---

    **Documentation**: [Swagger UI](/docs) | [ReDoc](/redoc)
    """

    VERSION = "1.0.0"

    SERVERS = [
        {"url": "http://localhost:5000", "description": "Development server"},
    ]


SECURITY_SCHEMES = {
    "BearerAuth": {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
        "description": "Session token from /login. Include it as `Authorization: Bearer <token>`.",
    },
}


def _error(description: str, error: str, status_code: int) -> dict:
    return {
        "description": description,
        "content": {
            "application/json": {
                "schema": ErrorResponse.model_json_schema(),
                "example": {"success": False, "error": error, "detail": error, "status_code": status_code},
            }
        },
    }


# Common response schemas for all endpoints
COMMON_RESPONSES = {
    401: _error("Unauthorized - Missing token", "Unauthorized: No Authorization header", 401),
    403: _error("Forbidden - Invalid token or insufficient role", "Invalid or expired token", 403),
    500: _error("Internal Server Error", "Internal Server Error", 500),
}

# Failure modes of POST /ask
ASK_RESPONSES = {
    400: _error("Missing question or query blocked by the safety check", "SQL query blocked for security reasons.", 400),
    502: _error("AI provider failure", "Could not reach the AI model. Please try again later.", 502),
    503: _error("Database unavailable", "Could not connect to the database. Please try again later.", 503),
    504: _error(
        "Provider or database call timed out", "The request took too long to complete. Please try again later.", 504
    ),
}
