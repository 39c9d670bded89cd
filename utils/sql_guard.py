"""
Read-only gate for assistant-generated SQL

Layered checks run on every candidate query before it reaches the database:
a statement-prefix check, a whole-word keyword denylist, and a sqlglot parse
that must yield a single read statement with no mutating node anywhere in the tree.
"""

import re
from typing import List, Optional

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError
from pydantic import BaseModel, Field

from utils.error_handling import UnsafeQueryError
from utils.structured_logging import log_security_event

# =============================================================================
# GATE CONFIGURATION
# =============================================================================

# Literal the query-generation prompt asks for when no data is needed
NO_QUERY_SENTINEL = "unnecessary"

SQL_DIALECT = "postgres"

READ_PREFIX_PATTERN = re.compile(r"^\s*(SELECT|WITH)\b", re.IGNORECASE)

FORBIDDEN_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "CREATE",
    "DROP",
    "ALTER",
    "TRUNCATE",
    "REPLACE",
    "GRANT",
    "REVOKE",
)
FORBIDDEN_KEYWORD_PATTERN = re.compile(r"\b(" + "|".join(FORBIDDEN_KEYWORDS) + r")\b", re.IGNORECASE)

# PostgreSQL functions with side effects callable from a plain SELECT
FORBIDDEN_FUNCTIONS = (
    "pg_sleep",
    "pg_terminate_backend",
    "pg_cancel_backend",
    "pg_reload_conf",
    "pg_read_file",
    "pg_read_binary_file",
    "pg_ls_dir",
    "set_config",
    "setval",
    "nextval",
    "lo_import",
    "lo_export",
    "lo_unlink",
    "lo_create",
    "lo_creat",
    "lo_put",
    "lo_from_bytea",
    "lo_truncate",
    "pg_advisory_lock",
    "pg_advisory_lock_shared",
    "pg_advisory_xact_lock",
    "pg_try_advisory_lock",
    "pg_advisory_unlock",
    "pg_advisory_unlock_all",
    "pg_notify",
    "pg_switch_wal",
    "pg_rotate_logfile",
    "dblink",
    "dblink_exec",
)
FORBIDDEN_FUNCTION_PATTERN = re.compile(r"\b(" + "|".join(FORBIDDEN_FUNCTIONS) + r")\s*\(", re.IGNORECASE)

READ_ROOTS = tuple(getattr(exp, name) for name in ("Select", "Union", "Intersect", "Except") if hasattr(exp, name))

# Node names differ across sqlglot releases (AlterTable became Alter, Grant is recent)
MUTATING_NODES = tuple(
    getattr(exp, name)
    for name in (
        "Insert",
        "Update",
        "Delete",
        "Merge",
        "Create",
        "Drop",
        "Alter",
        "AlterTable",
        "TruncateTable",
        "Grant",
        "Revoke",
        "Into",
        "Command",
        "Set",
        "Copy",
        "Transaction",
        "Commit",
        "Rollback",
    )
    if hasattr(exp, name)
)

# A language tag only counts when the fence line ends right after it
FENCE_PATTERN = re.compile(r"^\s*```(?:[\w+-]*[ \t]*\n)?(.*?)\n?[ \t]*```\s*$", re.DOTALL)


# =============================================================================
# RESULT MODELS
# =============================================================================


class SecurityViolation(BaseModel):
    """A single reason for rejecting a query"""

    violation_type: str = Field(..., description="Type of security violation")
    severity: str = Field(..., description="Severity level: low, medium, high, critical")
    description: str = Field(..., description="Human-readable description")


class ValidationResult(BaseModel):
    """Outcome of the read-only gate"""

    is_safe: bool
    violations: List[SecurityViolation] = Field(default_factory=list)

    @property
    def reasons(self) -> List[str]:
        return [v.description for v in self.violations]


# =============================================================================
# CANDIDATE EXTRACTION
# =============================================================================


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence of any width or language tag"""
    match = FENCE_PATTERN.match(text or "")
    if match:
        return match.group(1).strip()
    return (text or "").strip()


def is_no_query_sentinel(text: str) -> bool:
    cleaned = strip_code_fence(text).strip().strip("\"'`").rstrip(".").strip()
    return cleaned.lower() == NO_QUERY_SENTINEL


def extract_candidate(raw: Optional[str]) -> Optional[str]:
    """
    Turn a raw query-generation response into a candidate SQL string

    Returns None when the provider answered with the no-query sentinel.
    """
    if is_no_query_sentinel(raw or ""):
        return None
    return strip_code_fence(raw or "")


# =============================================================================
# GATE
# =============================================================================


def _structural_violations(sql: str) -> List[SecurityViolation]:
    try:
        statements = [s for s in sqlglot.parse(sql, read=SQL_DIALECT) if s is not None]
    except SqlglotError as e:
        return [
            SecurityViolation(
                violation_type="unparseable_sql",
                severity="high",
                description=f"Query could not be parsed: {type(e).__name__}",
            )
        ]

    if len(statements) != 1:
        return [
            SecurityViolation(
                violation_type="multiple_statements",
                severity="high",
                description=f"Expected exactly one statement, found {len(statements)}",
            )
        ]

    tree = statements[0]
    violations = []
    if not isinstance(tree, READ_ROOTS):
        violations.append(
            SecurityViolation(
                violation_type="non_read_statement",
                severity="critical",
                description=f"Top-level statement is {type(tree).__name__}, not a read",
            )
        )

    for node in tree.find_all(*MUTATING_NODES):
        violations.append(
            SecurityViolation(
                violation_type="mutating_clause",
                severity="critical",
                description=f"Query contains a {type(node).__name__} clause",
            )
        )
        break

    return violations


def check_read_only(sql: str) -> ValidationResult:
    """Run every layer of the gate and collect the violations"""
    violations: List[SecurityViolation] = []

    if not READ_PREFIX_PATTERN.match(sql or ""):
        violations.append(
            SecurityViolation(
                violation_type="non_read_prefix",
                severity="critical",
                description="Query does not start with SELECT or WITH",
            )
        )

    keywords = sorted({m.group(1).upper() for m in FORBIDDEN_KEYWORD_PATTERN.finditer(sql or "")})
    if keywords:
        violations.append(
            SecurityViolation(
                violation_type="forbidden_keyword",
                severity="critical",
                description=f"Forbidden keyword(s): {', '.join(keywords)}",
            )
        )

    functions = sorted({m.group(1).lower() for m in FORBIDDEN_FUNCTION_PATTERN.finditer(sql or "")})
    if functions:
        violations.append(
            SecurityViolation(
                violation_type="forbidden_function",
                severity="high",
                description=f"Side-effecting function(s): {', '.join(functions)}",
            )
        )

    # The parse is skipped once a text check has already rejected the query
    if not violations:
        violations.extend(_structural_violations(sql))

    return ValidationResult(is_safe=not violations, violations=violations)


def ensure_read_only(sql: str, user_id=None) -> str:
    """Return ``sql`` unchanged when it passes the gate, else raise UnsafeQueryError"""
    result = check_read_only(sql)
    if not result.is_safe:
        log_security_event(
            "unsafe_generated_sql",
            "Blocked potentially dangerous SQL query",
            user_id=user_id,
            severity="high",
            details={"reasons": result.reasons, "query": (sql or "")[:1000]},
        )
        raise UnsafeQueryError("; ".join(result.reasons))
    return sql
