"""
Read-only gate for assistant-generated SQL
"""

import pytest
from fastapi import status

from utils.error_handling import UnsafeQueryError
from utils.sql_guard import (
    check_read_only,
    ensure_read_only,
    extract_candidate,
    is_no_query_sentinel,
    strip_code_fence,
)


class TestCandidateExtraction:
    """Turning raw provider output into a candidate query"""

    @pytest.mark.parametrize(
        "raw",
        ["unnecessary", "Unnecessary", "  UNNECESSARY.  ", '"unnecessary"', "```\nunnecessary\n```", "`unnecessary`"],
    )
    def test_sentinel_variants(self, raw):
        assert is_no_query_sentinel(raw)
        assert extract_candidate(raw) is None

    def test_sentinel_inside_a_sentence_is_not_the_sentinel(self):
        assert not is_no_query_sentinel("The query is unnecessary here")

    def test_plain_query_is_returned_trimmed(self):
        assert extract_candidate("  SELECT * FROM alumnos  \n") == "SELECT * FROM alumnos"

    def test_fenced_query_with_language_tag(self):
        raw = "```sql\nSELECT nombre FROM alumnos WHERE id_alumno = 3;\n```"
        assert extract_candidate(raw) == "SELECT nombre FROM alumnos WHERE id_alumno = 3;"

    def test_fenced_query_without_language_tag(self):
        assert strip_code_fence("```\nSELECT 1\n```") == "SELECT 1"

    def test_single_line_fence_keeps_first_keyword(self):
        # No newline after the backticks: SELECT is not a language tag
        assert strip_code_fence("```SELECT 1```") == "SELECT 1"

    def test_unfenced_text_is_untouched(self):
        assert strip_code_fence("WITH x AS (SELECT 1) SELECT * FROM x") == "WITH x AS (SELECT 1) SELECT * FROM x"

    def test_none_is_handled(self):
        assert extract_candidate(None) == ""


class TestReadOnlyGate:
    """Only single read statements get through"""

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM alumnos",
            "  select nombre, apellidos from alumnos where id_alumno = 4",
            "WITH totales AS (SELECT id_alumno, SUM(aciertos) AS aciertos FROM ejercicios GROUP BY id_alumno) "
            "SELECT * FROM totales",
            "SELECT tipo_ejercicio, CASE WHEN SUM(aciertos + fallos) = 0 THEN 0 "
            "ELSE SUM(aciertos)::float / SUM(aciertos + fallos) END AS tasa_acierto "
            "FROM ejercicios WHERE id_alumno = 7 GROUP BY tipo_ejercicio",
            "SELECT date_inicio AS updated_on FROM ejercicios",
        ],
    )
    def test_read_queries_pass(self, sql):
        result = check_read_only(sql)
        assert result.is_safe, result.reasons
        assert ensure_read_only(sql) == sql

    @pytest.mark.parametrize(
        "sql",
        [
            "DELETE FROM alumnos",
            "UPDATE alumnos SET nombre = 'x'",
            "INSERT INTO alumnos (email) VALUES ('a@b.c')",
            "DROP TABLE ejercicios",
            "TRUNCATE ejercicios",
            "EXPLAIN SELECT * FROM alumnos",
            "",
        ],
    )
    def test_non_read_prefix_is_rejected(self, sql):
        result = check_read_only(sql)
        assert not result.is_safe
        assert any(v.violation_type == "non_read_prefix" for v in result.violations)

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM alumnos; DROP TABLE alumnos",
            "select 1; delete from ejercicios",
            "WITH borrados AS (DELETE FROM ejercicios RETURNING *) SELECT * FROM borrados",
            "SELECT * FROM alumnos WHERE nombre = 'x'; GRANT ALL ON alumnos TO public",
            "SELECT 1 /* ALTER */",
        ],
    )
    def test_forbidden_keywords_anywhere_are_rejected(self, sql):
        result = check_read_only(sql)
        assert not result.is_safe
        assert any(v.violation_type == "forbidden_keyword" for v in result.violations)

    def test_side_effecting_functions_are_rejected(self):
        result = check_read_only("SELECT pg_sleep(60)")
        assert not result.is_safe
        assert "pg_sleep" in result.reasons[0]

    def test_multiple_read_statements_are_rejected(self):
        result = check_read_only("SELECT 1; SELECT 2")
        assert not result.is_safe
        assert result.violations[0].violation_type == "multiple_statements"

    def test_ensure_read_only_raises_taxonomy_error(self):
        with pytest.raises(UnsafeQueryError) as exc_info:
            ensure_read_only("DELETE FROM alumnos")

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
        assert exc_info.value.public_message == "SQL query blocked for security reasons."
        assert "SELECT or WITH" in str(exc_info.value)


class TestGateLayers:
    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT lo_unlink(1)",
            "SELECT lo_create(0)",
            "SELECT lo_put(16400, 0, 'x')",
            "SELECT pg_advisory_lock(1)",
            "SELECT pg_try_advisory_lock(1) FROM alumnos",
            "SELECT pg_notify('canal', 'hola')",
        ],
    )
    def test_large_object_and_lock_functions_are_rejected(self, sql):
        result = check_read_only(sql)

        assert not result.is_safe
        assert [v.violation_type for v in result.violations] == ["forbidden_function"]

    def test_parse_is_skipped_once_a_text_check_rejects(self):
        result = check_read_only("DELETE FROM alumnos")

        types = {v.violation_type for v in result.violations}
        assert types == {"non_read_prefix", "forbidden_keyword"}

    def test_parse_runs_when_text_checks_pass(self):
        result = check_read_only("SELECT 1; SELECT 2")

        assert [v.violation_type for v in result.violations] == ["multiple_statements"]
