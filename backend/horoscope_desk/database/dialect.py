"""
Horoscope Desk Backend: MySQL → SQLite Dialect Translation
===========================================================

What:  Rewrites the MySQL-flavoured SQL used by the services into SQLite's
       dialect before it runs against the embedded backend.
How:   A fixed, ordered table of targeted text substitutions. There is no
       SQL parser here; each rule covers a known set of call sites.
Who:   Called by Gateway.execute() when the embedded backend is active.

Rules (applied in this order):

    upsert            INSERT ... ON DUPLICATE KEY UPDATE c = VALUES(c)
                      → INSERT ... ON CONFLICT(<key>) DO UPDATE SET c = excluded.c
    current_date      CURDATE()                 → date('now')
    current_timestamp CURRENT_TIMESTAMP         → datetime('now')
    collation         x COLLATE utf8mb4_...     → x
    quoted_identifier `key`                     → "key"
    substring         SUBSTRING(x, 3)           → substr(x, 3)

The upsert rule runs first so that the CURRENT_TIMESTAMP inside its
UPDATE clause is translated exactly once, by the timestamp rule.

Adding a new SQL shape to a service means adding a rule here and a
fixture in tests/test_dialect.py.
"""

import re
from typing import Any, Callable, Dict, List, Sequence, Tuple, Union

from horoscope_desk.exceptions import DialectError


# Conflict targets for the upserts the application issues.
# SQLite needs the unique key spelled out; MySQL infers it.
UPSERT_CONFLICT_TARGETS: Dict[str, str] = {
    "horoscope_shares": "sender_registration_id, recipient_registration_id",
    "app_settings": '"key"',
    "users": "email",
}

_UPSERT_RE = re.compile(
    r"^(?P<insert>\s*INSERT\s+INTO\s+[`\"]?(?P<table>\w+)[`\"]?\s*"
    r"\([^)]*\)\s*VALUES\s*\([^)]*\))"
    r"\s*ON\s+DUPLICATE\s+KEY\s+UPDATE\s+(?P<updates>.+?)\s*;?\s*$",
    re.IGNORECASE | re.DOTALL,
)
_VALUES_REF_RE = re.compile(r"\bVALUES\s*\(\s*(\w+)\s*\)", re.IGNORECASE)


def _translate_upsert(match: "re.Match[str]") -> str:
    table = match.group("table").lower()
    target = UPSERT_CONFLICT_TARGETS.get(table)
    if target is None:
        raise DialectError(
            f"No SQLite conflict target registered for upsert on '{table}'",
            context={"table": table},
        )
    updates = _VALUES_REF_RE.sub(r"excluded.\1", match.group("updates"))
    return f"{match.group('insert')} ON CONFLICT({target}) DO UPDATE SET {updates}"


Replacement = Union[str, Callable[["re.Match[str]"], str]]

# (name, compiled pattern, replacement)
TRANSLATION_RULES: List[Tuple[str, "re.Pattern[str]", Replacement]] = [
    ("upsert", _UPSERT_RE, _translate_upsert),
    ("current_date", re.compile(r"\bCURDATE\s*\(\s*\)", re.IGNORECASE), "date('now')"),
    ("current_timestamp", re.compile(r"\bCURRENT_TIMESTAMP\b(?:\s*\(\s*\))?", re.IGNORECASE), "datetime('now')"),
    ("collation", re.compile(r"\s+COLLATE\s+utf8(?:mb3|mb4)?_\w+", re.IGNORECASE), ""),
    ("quoted_identifier", re.compile(r"`(\w+)`"), r'"\1"'),
    ("substring", re.compile(r"\bSUBSTRING\s*\(", re.IGNORECASE), "substr("),
]


def translate_for_sqlite(sql: str) -> str:
    """
    Apply every translation rule to `sql`, in order.

    Raises:
        DialectError: an upsert targets a table with no registered conflict key
    """
    for _name, pattern, replacement in TRANSLATION_RULES:
        sql = pattern.sub(replacement, sql)
    return sql


# ══════════════════════════════════════════════════════════════════════════
# Statement helpers shared by both backends
# ══════════════════════════════════════════════════════════════════════════

_READ_RE = re.compile(r"^\s*(?:\(\s*)?(SELECT|WITH|PRAGMA|SHOW|EXPLAIN)\b", re.IGNORECASE)

# A single-quoted literal (with '' escapes) or a bare placeholder
_PLACEHOLDER_RE = re.compile(r"'(?:[^']|'')*'|\?")


def is_read_statement(sql: str) -> bool:
    """True when the statement starts with a read keyword (case-insensitive)."""
    return bool(_READ_RE.match(sql))


def bind_positional(sql: str, params: Sequence[Any]) -> Tuple[str, Dict[str, Any]]:
    """
    Convert `?` placeholders into named binds for sqlalchemy.text().

    Question marks inside single-quoted literals are left alone.

    >>> bind_positional("SELECT * FROM t WHERE a = ? AND b = '?'", [1])
    ("SELECT * FROM t WHERE a = :p0 AND b = '?'", {'p0': 1})
    """
    bound: Dict[str, Any] = {}
    counter = iter(range(len(params) + 1))

    def _swap(match: "re.Match[str]") -> str:
        token = match.group(0)
        if token != "?":
            return token
        index = next(counter)
        if index >= len(params):
            raise ValueError("More '?' placeholders than parameters")
        name = f"p{index}"
        bound[name] = params[index]
        return f":{name}"

    converted = _PLACEHOLDER_RE.sub(_swap, sql)
    if len(bound) != len(params):
        raise ValueError(
            f"Statement has {len(bound)} placeholders but {len(params)} parameters were given"
        )
    return converted, bound
