"""
Guard for the admin SQL console.

``find_blocked_keyword`` is a plain substring check on the upper-cased text.
It blocks far more than it needs to (a column named ``created_at`` trips
CREATE) and it is not an injection defence: anything that reaches the
database runs with the service account's privileges. The console is limited
to admins for that reason.
"""

import logging
import re
from typing import Optional

import sqlparse

logger = logging.getLogger(__name__)

BLOCKED_KEYWORDS = [
    "DROP",
    "DELETE",
    "TRUNCATE",
    "UPDATE",
    "ALTER",
    "CREATE",
    "INSERT",
    "GRANT",
    "REVOKE",
]


def find_blocked_keyword(sql: str) -> Optional[str]:
    """Return the first denylisted keyword contained in ``sql``, if any."""
    upper_sql = sql.upper()
    for keyword in BLOCKED_KEYWORDS:
        if keyword in upper_sql:
            return keyword
    return None


def statement_types(sql: str) -> list:
    """sqlparse's statement types, e.g. ``['SELECT']``; used for logging only."""
    return [stmt.get_type() for stmt in sqlparse.parse(sql) if str(stmt).strip()]


def fingerprint(sql: str) -> str:
    """Stable-ish hash of the query shape with literals masked out."""
    normalized_sql = sqlparse.format(sql, strip_comments=True, reindent=False, keyword_case='lower', identifier_case='lower')
    normalized_sql = re.sub(r"'.*?'", '?', normalized_sql)
    normalized_sql = re.sub(r'\b\d+\.?\d*\b', '?', normalized_sql)
    normalized_sql = " ".join(normalized_sql.split())
    return hex(hash(normalized_sql) & 0xffffffffffffffff)
