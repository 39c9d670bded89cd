"""
AI Assistant Router
POST /ask runs a teacher question through the query-answer pipeline
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from schemas.api_models import AskResponse
from schemas.validation import AskRequest, first_error_message
from utils.auth_dependencies import TokenUser, check_token
from utils.error_handling import ValidationError
from utils.query_pipeline import ConversationTurn, QueryAnswerPipeline
from utils.structured_logging import get_logger, LogCategory

router = APIRouter()

logger = get_logger("routes.ask")


def get_pipeline(request: Request) -> QueryAnswerPipeline:
    """Pipeline built once at startup; tests override this dependency"""
    return request.app.state.pipeline


def parse_ask_request(body: Any) -> AskRequest:
    if not isinstance(body, dict):
        raise ValidationError("request body must be a JSON object", public_message="Invalid request body")
    try:
        return AskRequest.model_validate(body)
    except PydanticValidationError as e:
        message = first_error_message(e)
        if e.errors() and e.errors()[0].get("loc", ("",))[0] == "question":
            raise ValidationError(message)
        raise ValidationError(message, public_message=message)


@router.post("/ask", response_model=AskResponse)
async def ask(
    request: Request,
    current_user: TokenUser = Depends(check_token),
    pipeline: QueryAnswerPipeline = Depends(get_pipeline),
):
    """
    Answer a teacher's question about student performance

    Errors carry only a public message: 400 bad input or blocked query,
    502 provider failure, 503 database failure, 504 timeout, 500 anything else.
    """
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("request body is not valid JSON", public_message="Invalid request body")

    data = parse_ask_request(body)
    logger.info(
        "Question received",
        category=LogCategory.REQUEST,
        user_id=current_user.user_id,
        extra={"model": data.IaModel, "student_id": data.studentId, "history_turns": len(data.msgHistory)},
    )

    answer = await pipeline.answer(
        question=data.question,
        student_id=data.studentId,
        student_name=data.alumnoNombre,
        model_id=data.IaModel,
        history=[ConversationTurn(sender=turn.sender, text=turn.text) for turn in data.msgHistory],
    )
    return {"answer": answer}
