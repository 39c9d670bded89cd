import asyncio
import os
import sys
import tempfile
from pathlib import Path
from types import SimpleNamespace

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment variables
_tmp_dir = tempfile.mkdtemp(prefix="smart_tdah_tests_")
os.environ["NODE_ENV"] = "test"
os.environ["ENV_FILE"] = os.path.join(_tmp_dir, "missing.env")
os.environ["JWT_SECRET"] = "test_jwt_secret"
os.environ["SQLALCHEMY_TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["DIAGNOSTIC_LOG_PATH"] = os.path.join(_tmp_dir, "llms-data.log")
os.environ["GEMINI_API_KEY"] = "test_gemini_key"
os.environ["GROQ_API_KEY"] = "test_groq_key"
os.environ["MISTRAL_API_KEY"] = "test_mistral_key"

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from passlib.hash import bcrypt

from app import app
from config import settings
from db import get_db
from models import Admin, Base, Teacher, UserRole
from utils.diagnostic_log import DiagnosticLog
from utils.jwt_utils import jwt_manager
from utils.llm_providers import CompletionProvider, ModelId, ProviderRegistry
from utils.query_pipeline import PipelineConfig, QueryAnswerPipeline
from utils.read_store import ReadOnlyStore


@pytest.fixture(scope="session")
def test_engine():
    """Create test database engine"""
    engine = create_engine(settings.SQLALCHEMY_TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()
    try:
        os.remove("./test.db")
    except FileNotFoundError:
        pass


@pytest.fixture(scope="function")
def test_db(test_engine):
    """Create test database session"""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    session = TestingSessionLocal()

    yield session

    session.close()
    # Clear all tables
    with test_engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture(scope="function")
def client(test_db):
    """Create test client with test database"""

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# ACCOUNTS AND TOKENS
# =============================================================================

TEACHER_PASSWORD = "secreto123"
ADMIN_PASSWORD = "admin-secreto"


@pytest.fixture
def teacher(test_db):
    teacher = Teacher(
        email="ana.garcia@colegio.es",
        nombre="Ana",
        apellidos="García Pérez",
        password=bcrypt.hash(TEACHER_PASSWORD),
    )
    test_db.add(teacher)
    test_db.commit()
    test_db.refresh(teacher)
    return teacher


@pytest.fixture
def admin(test_db):
    admin = Admin(
        email="direccion@colegio.es",
        nombre="Luis",
        apellidos="Fernández",
        password=bcrypt.hash(ADMIN_PASSWORD),
    )
    test_db.add(admin)
    test_db.commit()
    test_db.refresh(admin)
    return admin


def bearer(user_id, role) -> dict:
    return {"Authorization": f"Bearer {jwt_manager.create_access_token(user_id, role)}"}


@pytest.fixture
def teacher_headers(teacher):
    return bearer(teacher.id_profesor, UserRole.TEACHER.value)


@pytest.fixture
def admin_headers(admin):
    return bearer(admin.id_admin, UserRole.ADMIN.value)


# =============================================================================
# /ask PIPELINE DOUBLES
# =============================================================================


class ScriptedProvider(CompletionProvider):
    """Returns (or raises) the scripted responses in order and records every prompt"""

    def __init__(self, responses, name="scripted", delay=0.0):
        self.name = name
        self.responses = list(responses)
        self.prompts = []
        self.delay = delay

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class StubStore(ReadOnlyStore):
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.queries = []

    async def fetch_rows(self, sql: str):
        self.queries.append(sql)
        if self.error is not None:
            raise self.error
        return [dict(row) for row in self.rows]


class MemoryDiagnosticLog(DiagnosticLog):
    def __init__(self):
        self.lines = []

    def write(self, message: str) -> None:
        self.lines.append(message)


@pytest.fixture
def build_ask_pipeline():
    """
    Factory for a pipeline wired to deterministic doubles

    Every model id gets its own scripted provider; ``responses`` script the one
    registered under ``model``, the others have nothing to say.
    """

    def _build(responses, rows=None, store_error=None, model=ModelId.GEMINI, timeout=30.0, history_limit=10, delay=0.0):
        providers = {
            model_id: ScriptedProvider(responses if model_id == model else [], name=model_id.value, delay=delay)
            for model_id in ModelId
        }
        store = StubStore(rows=rows, error=store_error)
        diagnostics = MemoryDiagnosticLog()
        pipeline = QueryAnswerPipeline(
            providers=ProviderRegistry(providers, default=ModelId.GEMINI),
            store=store,
            diagnostics=diagnostics,
            config=PipelineConfig(history_limit=history_limit, provider_timeout_seconds=timeout),
        )
        return SimpleNamespace(
            pipeline=pipeline, provider=providers[model], providers=providers, store=store, diagnostics=diagnostics
        )

    return _build


@pytest.fixture
def make_headers():
    return bearer
