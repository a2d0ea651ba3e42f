"""
core/sql.py -- Builders for parameterized SQL fragments.

Three pure functions turn sparse, caller-supplied mappings into SQL fragments
with positional placeholders ($1, $2, ...) plus the ordered list of values
bound to them:

  sql_for_partial_update()  -- SET clause for a partial UPDATE
  sql_for_filter_company()  -- WHERE clause for company search
  sql_for_filter_job()      -- WHERE clause for job search

Security:
  Values are never interpolated into the SQL text; they travel in the values
  list and are bound by the driver. Column names ARE interpolated. They come
  either from a trusted FieldMapping or, for unmapped keys, from the key
  itself -- which is why unmapped keys must be plain identifiers and callers
  must never let attacker-controlled keys reach sql_for_partial_update().
  The API layer guarantees this by validating request bodies against
  pydantic models with extra="forbid" before calling a store.

Placeholder numbering:
  Each builder numbers placeholders 1..N in the order values are appended.
  Callers that add their own parameters (e.g. the WHERE key of an UPDATE)
  start at len(values) + 1.

Layer rule: core/ is the kernel. No imports from api/, auth/ or board/.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from core.errors import BadRequestError

# ---------------------------------------------------------------------------
# Field mappings (logical camelCase name -> column name)
# ---------------------------------------------------------------------------

USER_FIELDS: Mapping[str, str] = {
    "firstName": "first_name",
    "lastName": "last_name",
    "isAdmin": "is_admin",
}

COMPANY_FIELDS: Mapping[str, str] = {
    "numEmployees": "num_employees",
    "logoUrl": "logo_url",
}

# Job attribute names already match their column names.
JOB_FIELDS: Mapping[str, str] = {}

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PartialUpdate:
    """SET clause body and its positional values."""

    set_clause: str
    values: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class WhereClause:
    """WHERE clause (including the WHERE keyword when non-empty) and its values."""

    where_clause: str
    values: list[Any] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Partial update
# ---------------------------------------------------------------------------


def _column_for(key: str, field_mapping: Mapping[str, str]) -> str:
    mapped = field_mapping.get(key)
    if mapped:
        return mapped
    if not _IDENTIFIER_RE.match(key):
        raise BadRequestError(f"Invalid field name: {key!r}")
    return key


def sql_for_partial_update(data: Mapping[str, Any], field_mapping: Mapping[str, str]) -> PartialUpdate:
    """Build the SET clause of an UPDATE from the fields present in `data`.

    Keys are taken in insertion order; the i-th key becomes "<column>"=$i where
    column is field_mapping[key], or the key itself when unmapped.

        >>> sql_for_partial_update({"firstName": "Aliya", "age": 32}, {"firstName": "first_name"})
        PartialUpdate(set_clause='"first_name"=$1, "age"=$2', values=['Aliya', 32])

    Raises BadRequestError when `data` is empty or an unmapped key is not a
    plain SQL identifier.
    """
    if not data:
        raise BadRequestError("No data")

    cols = [f'"{_column_for(key, field_mapping)}"=${idx}' for idx, key in enumerate(data, start=1)]
    return PartialUpdate(set_clause=", ".join(cols), values=list(data.values()))


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def _contains(value: Any) -> str:
    """Wrap a search term for a case-insensitive substring ILIKE match."""
    return f"%{value}%"


def _as_is(value: Any) -> Any:
    return value


# (criteria key, predicate template, value transform). The template's single
# {} is replaced with the positional placeholder. Rules are applied in this
# order regardless of the order of keys in the incoming criteria.
_Rule = tuple[str, str, Callable[[Any], Any]]

_COMPANY_RULES: tuple[_Rule, ...] = (
    ("name", '"name" ILIKE {}', _contains),
    ("minEmployees", '"num_employees" >= {}', _as_is),
    ("maxEmployees", '"num_employees" <= {}', _as_is),
)

_JOB_RULES: tuple[_Rule, ...] = (
    ("title", "title ILIKE {}", _contains),
    ("minSalary", "salary >= {}", _as_is),
)


def sql_for_filter_company(criteria: Mapping[str, Any]) -> WhereClause:
    """Build the WHERE clause for a company search.

    Recognized keys: name (case-insensitive substring), minEmployees and
    maxEmployees (inclusive bounds on num_employees). Other keys are ignored;
    rejecting them is the caller's job.

    The result always starts with "WHERE ", even when no predicate was
    emitted. An empty criteria mapping therefore yields the unusable clause
    "WHERE " -- BoardStore.filter_companies() never calls this without at
    least one recognized key.
    """
    conditions: list[str] = []
    values: list[Any] = []

    for key, template, transform in _COMPANY_RULES:
        if key in criteria:
            conditions.append(template.format(f"${len(values) + 1}"))
            values.append(transform(criteria[key]))

    return WhereClause(where_clause="WHERE " + " AND ".join(conditions), values=values)


class EquityFilter(Enum):
    """How the hasEquity criterion restricts a job search."""

    UNSET = "unset"  # key absent or None: no restriction
    EXPLICIT_FALSE = "explicit_false"  # False or "false": no restriction
    FILTER = "filter"  # anything else: equity must be non-zero

    @classmethod
    def from_criteria(cls, criteria: Mapping[str, Any]) -> "EquityFilter":
        """Classify the hasEquity value. A None value counts as an absent key,
        matching how BoardStore and the query models drop None criteria.
        """
        if "hasEquity" not in criteria or criteria["hasEquity"] is None:
            return cls.UNSET
        value = criteria["hasEquity"]
        if value is False or value == "false":
            return cls.EXPLICIT_FALSE
        return cls.FILTER


def sql_for_filter_job(criteria: Mapping[str, Any]) -> WhereClause:
    """Build the WHERE clause for a job search.

    Recognized keys: title (case-insensitive substring), minSalary (inclusive
    lower bound) and hasEquity (see EquityFilter). The equity predicate has no
    placeholder, so every placeholder is numbered from the count of values
    already collected, not from the count of predicates.

    Returns an empty clause (no WHERE keyword) when nothing was emitted.
    """
    conditions: list[str] = []
    values: list[Any] = []

    for key, template, transform in _JOB_RULES:
        if key in criteria:
            conditions.append(template.format(f"${len(values) + 1}"))
            values.append(transform(criteria[key]))

    if EquityFilter.from_criteria(criteria) is EquityFilter.FILTER:
        conditions.append("equity <> 0")

    where_clause = ""
    if conditions:
        where_clause = "WHERE " + " AND ".join(conditions)
    return WhereClause(where_clause=where_clause, values=values)
