"""Prompt builders for the two LLM calls of the /ask pipeline"""

import json
from typing import Any, List, Optional

from models import KNOWN_COURSES, Difficulty, ExerciseType
from utils.sql_guard import NO_QUERY_SENTINEL

# Marker sent to the answer prompt when no extraction happened
NO_DATA_MARKER = "false"


def _quoted(values) -> str:
    return ", ".join(f'"{v}"' for v in values)


SCHEMA_DESCRIPTION = f"""Database schema:

alumnos (
  id_alumno SERIAL PRIMARY KEY,
  email VARCHAR(100) UNIQUE NOT NULL,
  nombre VARCHAR(50) NOT NULL,
  apellidos VARCHAR(100) NOT NULL,
  genero VARCHAR(10),
  curso VARCHAR(20)
);

"curso" can be one of: {_quoted(KNOWN_COURSES)}.

ejercicios (
  id_ejercicio SERIAL PRIMARY KEY,
  id_alumno INTEGER REFERENCES alumnos(id_alumno),
  aciertos INTEGER NOT NULL,
  fallos INTEGER NOT NULL,
  letras_correctas INTEGER NOT NULL,
  date_inicio TIMESTAMP NOT NULL,
  date_fin TIMESTAMP NOT NULL,
  dificultad VARCHAR(50) NOT NULL,
  tipo_ejercicio VARCHAR(50) NOT NULL
);

"dificultad" values: {_quoted(d.value for d in Difficulty)}.
"tipo_ejercicio" values: {_quoted(t.value for t in ExerciseType)}."""


def _student_reference(student_id: Optional[int], student_name: str) -> str:
    if student_id is None:
        return (
            "- No student is selected. If the question refers to a specific student, "
            f'respond only with "{NO_QUERY_SENTINEL}".'
        )
    name = student_name or "the selected student"
    return (
        "- If the question refers to a specific student (even if the teacher does not say the name and says "
        f'something like "this student"), use: WHERE id_alumno = {student_id} (this is the id of {name}).\n'
        "- If you have the id_alumno, NEVER search by name in the SQL query.\n"
        f"- If the teacher uses a student name that matches {name} (even with typos), use the corresponding "
        f'id_alumno in the SQL query. If it doesn\'t match, even loosely, respond only with "{NO_QUERY_SENTINEL}".'
    )


def build_query_prompt(question: str, history_block: str, student_id: Optional[int], student_name: str) -> str:
    """Prompt asking the model for one read-only PostgreSQL query or the sentinel"""
    return f"""You are an expert in SQL (PostgreSQL). Your task is to help a teacher retrieve exactly the data they need about the
performance of students with ADHD, using read-only SQL queries.

The extracted query will be executed and its results passed to another AI instance with a separate prompt that writes
the final answer for the teacher.

{SCHEMA_DESCRIPTION}

Output format:
- Respond with exactly ONE SQL statement starting with SELECT or WITH, or with the single word "{NO_QUERY_SENTINEL}".
- Never both. Never add explanations, comments or Markdown code fences.

Instructions:
- Only generate read queries (never modify data).
- If the question doesn't require data, respond only with "{NO_QUERY_SENTINEL}".
- Use both the current teacher message and the message history to understand the question.
{_student_reference(student_id, student_name)}
- If the teacher asks for recommendations, strategies, or evaluations about a student's performance, even indirectly,
  retrieve all the relevant performance data available (exercise types, success rates, progression over time), so the
  next AI instance has enough information to answer accurately.
- If you create aliases when extracting data, they MUST be in the language of the TEACHER QUESTION.

IMPORTANT: Execution safety
Your SQL queries must never cause execution-time errors. If you perform any division, you MUST prevent division by
zero using CASE expressions. Queries should be as efficient and accurate as possible.

CONVERSATION HISTORY (for context): {history_block}

TEACHER QUESTION: {question}
"""


def serialize_rows(rows: Optional[List[Any]]) -> str:
    """JSON for the answer prompt; dates and decimals are rendered with str()"""
    if rows is None:
        return NO_DATA_MARKER
    return json.dumps(rows, default=str, ensure_ascii=False)


def build_answer_prompt(question: str, history_block: str, student_name: str, rows: Optional[List[Any]]) -> str:
    """Prompt asking the model for the final natural-language answer"""
    name = student_name or "the selected student"
    return f"""You are an AI specialized in educational data analysis for teachers working with students with ADHD. Your goal
is to help the teacher interpret exercise data to support better pedagogical decisions.

You will always receive the message history and database data extracted by a previous AI instance using a SQL query.

Instructions:
- Structure your answers clearly, visually, assertively, briefly, and focused on actionable educational insights.
- Always reply in the same language used in the TEACHER QUESTION field.
- Do NOT use original database field values in your response (for example exercise types or difficulty labels).
  Always translate them to the language of the question.
- Use inclusive and respectful language at all times.
- If the available data is insufficient to provide a meaningful answer, say so politely.
- If the question includes a student name that matches {name} (even with typos), use the correct spelling in your
  answer. If not, inform the teacher that the name was incorrect or not found.
- If the previous AI instance decided no data extraction was necessary and the question is general, answer without
  data, stating at the beginning of the answer that you could not use database data to support your response.

RECENT CONVERSATION HISTORY (for context): {history_block}

TEACHER QUESTION: {question}

DATABASE AI-EXTRACTED DATA ({NO_DATA_MARKER} if the previous AI instance determined that no data extraction was necessary): {serialize_rows(rows)}
"""
