"""
Question-answer pipeline behind POST /ask

1. ask the selected provider for one read-only query (or the no-query sentinel)
2. run the candidate through the read-only gate
3. execute it on a pooled connection
4. ask the provider for the final answer, grounded on the rows when there are any

The pipeline is stateless: history arrives with each request and is discarded
afterwards, and every external call is bounded by a timeout.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from utils.ask_prompts import build_answer_prompt, build_query_prompt, serialize_rows
from utils.diagnostic_log import DiagnosticLog, FileDiagnosticLog, NullDiagnosticLog
from utils.error_handling import (
    AskError,
    PipelineTimeoutError,
    ProviderError,
    StoreError,
    UnknownError,
    ValidationError,
)
from utils.llm_providers import CompletionProvider, ProviderRegistry, build_provider_registry
from utils.read_store import EngineReadStore, ReadOnlyStore
from utils.sql_guard import ensure_read_only, extract_candidate
from utils.structured_logging import get_logger, LogCategory

logger = get_logger("ask.pipeline")

SEPARATOR_SENDER = "separator"

SENDER_LABELS = {
    "user": "Teacher",
    "teacher": "Teacher",
    "LLMS": "AI Assistant",
    "assistant": "AI Assistant",
}


@dataclass(frozen=True)
class ConversationTurn:
    sender: str
    text: str


@dataclass(frozen=True)
class PipelineConfig:
    history_limit: int = 10
    provider_timeout_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings) -> "PipelineConfig":
        return cls(
            history_limit=settings.ASK_HISTORY_LIMIT,
            provider_timeout_seconds=settings.LLM_TIMEOUT_SECONDS,
        )


def format_history(turns: Iterable[ConversationTurn], limit: int = 10) -> str:
    """Render the most recent ``limit`` teacher/assistant turns, one per line.

    Separator markers and turns from unknown senders are dropped before the
    window is applied.
    """
    kept = [t for t in turns if t.sender != SEPARATOR_SENDER and t.sender in SENDER_LABELS]
    if limit <= 0:
        return ""
    return "\n".join(f"{SENDER_LABELS[t.sender]}: {t.text}" for t in kept[-limit:])


class QueryAnswerPipeline:
    def __init__(
        self,
        providers: ProviderRegistry,
        store: ReadOnlyStore,
        diagnostics: Optional[DiagnosticLog] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.providers = providers
        self.store = store
        self.diagnostics = diagnostics or NullDiagnosticLog()
        self.config = config or PipelineConfig()

    def _trace(self, message: str) -> None:
        # Best effort: a broken sink must never change the request outcome
        try:
            self.diagnostics.write(message)
        except Exception:
            pass

    async def _complete(self, provider: CompletionProvider, prompt: str, stage: str) -> str:
        try:
            return await asyncio.wait_for(provider.complete(prompt), timeout=self.config.provider_timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error(
                f"{stage}: provider timed out",
                category=LogCategory.LLM,
                extra={"provider": provider.name, "timeout_seconds": self.config.provider_timeout_seconds},
            )
            raise PipelineTimeoutError(f"{provider.name} exceeded {self.config.provider_timeout_seconds}s") from e
        except AskError as e:
            logger.error(f"{stage}: provider failed", category=LogCategory.LLM, exception=e)
            raise
        except Exception as e:
            logger.error(f"{stage}: provider raised unexpectedly", category=LogCategory.LLM, exception=e)
            raise ProviderError(f"{provider.name}: {type(e).__name__}") from e

    async def generate_query(
        self,
        provider: CompletionProvider,
        question: str,
        history_block: str,
        student_id: Optional[int],
        student_name: str,
    ) -> Optional[str]:
        """Step 1: candidate SQL, or None when the model says no data is needed"""
        prompt = build_query_prompt(question, history_block, student_id, student_name)
        raw = await self._complete(provider, prompt, "query generation")
        candidate = extract_candidate(raw)
        self._trace(f"Generated SQL query: {candidate if candidate is not None else 'unnecessary'}")
        return candidate

    async def fetch_rows(self, sql: str) -> List[Dict[str, Any]]:
        """Step 3"""
        try:
            rows = await self.store.fetch_rows(sql)
        except AskError:
            raise
        except Exception as e:
            logger.error("Data retrieval raised unexpectedly", category=LogCategory.DATABASE, exception=e)
            raise StoreError(f"data store failure: {type(e).__name__}") from e
        self._trace(f"Retrieved {len(rows)} row(s): {serialize_rows(rows)}")
        return rows

    async def synthesize(
        self,
        provider: CompletionProvider,
        question: str,
        history_block: str,
        student_name: str,
        rows: Optional[List[Dict[str, Any]]],
    ) -> str:
        """Step 4: the provider's raw text is the answer"""
        prompt = build_answer_prompt(question, history_block, student_name, rows)
        answer = await self._complete(provider, prompt, "answer synthesis")
        self._trace(f"Final AI answer: {answer}")
        return answer

    async def answer(
        self,
        question: str,
        student_id: Optional[int],
        student_name: str,
        model_id: Optional[str],
        history: Optional[List[ConversationTurn]] = None,
    ) -> str:
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("question must be a non-empty string")

        model = self.providers.parse(model_id)
        provider = self.providers.resolve(model_id)
        history_block = format_history(history or [], self.config.history_limit)

        self._trace("=" * 20 + " START " + "=" * 20)
        self._trace(f"Teacher question: {question}")
        self._trace(f"Model selected: {model.value} (requested: {model_id})")
        logger.info(
            "Answering teacher question",
            category=LogCategory.PIPELINE,
            extra={"model": model.value, "student_id": student_id, "history_turns": len(history or [])},
        )

        try:
            candidate = await self.generate_query(provider, question, history_block, student_id, student_name)

            rows = None
            if candidate is not None:
                ensure_read_only(candidate)
                rows = await self.fetch_rows(candidate)

            answer = await self.synthesize(provider, question, history_block, student_name, rows)
        except AskError as e:
            self._trace(f"{type(e).__name__}: {e}")
            raise
        except Exception as e:
            self._trace(f"UnknownError: {type(e).__name__}: {e}")
            logger.critical("Unexpected pipeline failure", category=LogCategory.PIPELINE, exception=e)
            raise UnknownError(str(e)) from e

        self._trace("=" * 20 + " END " + "=" * 20)
        return answer


def build_pipeline(settings, engine) -> QueryAnswerPipeline:
    """Wire providers, store and diagnostic log from explicit settings"""
    return QueryAnswerPipeline(
        providers=build_provider_registry(settings),
        store=EngineReadStore(engine, timeout_seconds=settings.STORE_TIMEOUT_SECONDS),
        diagnostics=FileDiagnosticLog(settings.DIAGNOSTIC_LOG_PATH),
        config=PipelineConfig.from_settings(settings),
    )
