import pytest


def test_imports_work():
    """Test that we can import our application modules"""
    from models import Student, Teacher
    from schemas.validation import AskRequest

    request = AskRequest(question="¿Cómo va?", studentId="", msgHistory=None)

    assert request.studentId is None
    assert request.msgHistory == []
    assert request.alumnoNombre == ""


def test_app_import():
    """Test that the FastAPI app can be imported"""
    from app import app

    assert app is not None
    assert app.state.pipeline is not None


def test_settings_in_test_mode():
    from config import settings

    assert settings.NODE_ENV == "test"
    assert settings.DATABASE_URL == settings.SQLALCHEMY_TEST_DATABASE_URL
    assert settings.ASK_HISTORY_LIMIT == 10
    assert settings.LLM_TIMEOUT_SECONDS == 30
