import asyncio
import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import QueuePool

from models import Student
from utils.error_handling import PipelineTimeoutError, StoreError
from utils.read_store import EngineReadStore


class TestEngineReadStore:
    def test_rows_come_back_as_dicts(self, test_engine, test_db):
        test_db.add(Student(email="pablo@alumnos.es", nombre="Pablo", apellidos="Ruiz", genero="M", curso="1º ESO"))
        test_db.commit()
        store = EngineReadStore(test_engine)

        rows = asyncio.run(store.fetch_rows("SELECT nombre, curso FROM alumnos"))

        assert rows == [{"nombre": "Pablo", "curso": "1º ESO"}]

    def test_empty_result(self, test_engine):
        store = EngineReadStore(test_engine)

        assert asyncio.run(store.fetch_rows("SELECT * FROM alumnos")) == []

    def test_bad_sql_is_store_error(self, test_engine):
        store = EngineReadStore(test_engine)

        with pytest.raises(StoreError) as exc_info:
            asyncio.run(store.fetch_rows("SELECT * FROM tabla_inexistente"))

        assert exc_info.value.status_code == 503

    def test_slow_query_is_timeout_error(self, test_engine, monkeypatch):
        store = EngineReadStore(test_engine, timeout_seconds=0.05)

        def slow_execute(sql):
            time.sleep(0.5)
            return []

        monkeypatch.setattr(store, "_execute", slow_execute)

        with pytest.raises(PipelineTimeoutError) as exc_info:
            asyncio.run(store.fetch_rows("SELECT 1"))

        assert exc_info.value.status_code == 504


class TestConnectionRelease:
    """A one-connection pool must be usable again after every query"""

    @pytest.fixture
    def single_connection_engine(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'pool.db'}",
            poolclass=QueuePool,
            pool_size=1,
            max_overflow=0,
            pool_timeout=1,
            connect_args={"check_same_thread": False},
        )
        yield engine
        engine.dispose()

    def test_failing_queries_return_the_connection(self, single_connection_engine):
        store = EngineReadStore(single_connection_engine)

        for _ in range(3):
            with pytest.raises(StoreError):
                asyncio.run(store.fetch_rows("SELECT * FROM nope"))
            assert single_connection_engine.pool.checkedout() == 0

        assert asyncio.run(store.fetch_rows("SELECT 1 AS uno")) == [{"uno": 1}]
        assert single_connection_engine.pool.checkedout() == 0

    def test_successful_queries_return_the_connection(self, single_connection_engine):
        store = EngineReadStore(single_connection_engine)

        for _ in range(3):
            asyncio.run(store.fetch_rows("SELECT 1 AS uno"))

        assert single_connection_engine.pool.checkedout() == 0
