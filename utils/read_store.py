"""Read-only query execution for the /ask pipeline"""

import asyncio
from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from utils.error_handling import PipelineTimeoutError, StoreError
from utils.structured_logging import get_logger, LogCategory

logger = get_logger("database.read_store")


class ReadOnlyStore:
    async def fetch_rows(self, sql: str) -> List[Dict[str, Any]]:
        raise NotImplementedError


class EngineReadStore(ReadOnlyStore):
    """Runs one statement on a pooled connection, off the event loop"""

    def __init__(self, engine: Engine, timeout_seconds: float = 30.0):
        self.engine = engine
        self.timeout_seconds = timeout_seconds

    def _execute(self, sql: str) -> List[Dict[str, Any]]:
        # The connection goes back to the pool on every exit path
        with self.engine.connect() as connection:
            try:
                result = connection.execute(text(sql))
                return [dict(row._mapping) for row in result]
            finally:
                connection.rollback()

    async def fetch_rows(self, sql: str) -> List[Dict[str, Any]]:
        try:
            rows = await asyncio.wait_for(run_in_threadpool(self._execute, sql), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error(
                "Read query timed out",
                category=LogCategory.DATABASE,
                extra={"timeout_seconds": self.timeout_seconds},
            )
            raise PipelineTimeoutError(f"query exceeded {self.timeout_seconds}s") from e
        except SQLAlchemyError as e:
            logger.error("Read query failed", category=LogCategory.DATABASE, exception=e)
            raise StoreError(f"database connection or query error: {type(e).__name__}") from e

        logger.debug("Read query executed", category=LogCategory.DATABASE, extra={"rows": len(rows)})
        return rows
