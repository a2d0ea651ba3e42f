"""
tests/test_sql.py -- Unit tests for the SQL fragment builders in core/sql.py.

Pure functions, no database: every test compares the emitted SQL text and
values list exactly, since that text is what BoardStore splices into its
statements.

Coverage:
  - sql_for_partial_update: mapped and unmapped keys, numbering, empty data,
    non-identifier keys
  - sql_for_filter_company: each key alone and combined, fixed rule order,
    the bare "WHERE " for empty criteria
  - sql_for_filter_job: title/minSalary numbering, every hasEquity variant,
    empty clause for no predicates
  - EquityFilter.from_criteria
"""

from __future__ import annotations

import pytest

from core.errors import BadRequestError
from core.sql import (
    COMPANY_FIELDS,
    JOB_FIELDS,
    USER_FIELDS,
    EquityFilter,
    PartialUpdate,
    WhereClause,
    sql_for_filter_company,
    sql_for_filter_job,
    sql_for_partial_update,
)


class TestPartialUpdate:
    def test_mapped_keys(self) -> None:
        result = sql_for_partial_update({"firstName": "Jane", "isAdmin": True}, USER_FIELDS)
        assert result.set_clause == '"first_name"=$1, "is_admin"=$2'
        assert result.values == ["Jane", True]

    def test_unmapped_key_is_used_as_column(self) -> None:
        result = sql_for_partial_update({"firstName": "Aliya", "age": 32}, {"firstName": "first_name"})
        assert result == PartialUpdate(set_clause='"first_name"=$1, "age"=$2', values=["Aliya", 32])

    def test_indices_follow_input_key_order(self) -> None:
        data = {"email": "a@b.com", "lastName": "Doe", "password": "x", "firstName": "J"}
        result = sql_for_partial_update(data, USER_FIELDS)
        fragments = result.set_clause.split(", ")
        assert fragments == [
            '"email"=$1',
            '"last_name"=$2',
            '"password"=$3',
            '"first_name"=$4',
        ]
        assert result.values == ["a@b.com", "Doe", "x", "J"]

    def test_company_mapping(self) -> None:
        result = sql_for_partial_update({"numEmployees": 5, "logoUrl": "http://x"}, COMPANY_FIELDS)
        assert result.set_clause == '"num_employees"=$1, "logo_url"=$2'

    def test_job_fields_pass_through(self) -> None:
        result = sql_for_partial_update({"title": "Dev", "salary": 10, "equity": 0.5}, JOB_FIELDS)
        assert result.set_clause == '"title"=$1, "salary"=$2, "equity"=$3'
        assert result.values == ["Dev", 10, 0.5]

    def test_single_field(self) -> None:
        result = sql_for_partial_update({"name": "New"}, COMPANY_FIELDS)
        assert result.set_clause == '"name"=$1'
        assert result.values == ["New"]

    def test_none_value_is_kept(self) -> None:
        result = sql_for_partial_update({"logoUrl": None}, COMPANY_FIELDS)
        assert result.set_clause == '"logo_url"=$1'
        assert result.values == [None]

    def test_empty_data_raises(self) -> None:
        with pytest.raises(BadRequestError, match="No data"):
            sql_for_partial_update({}, USER_FIELDS)

    def test_empty_data_raises_with_empty_mapping(self) -> None:
        with pytest.raises(BadRequestError):
            sql_for_partial_update({}, {})

    @pytest.mark.parametrize("key", ['name" = 1; --', "first name", "1abc", "a-b", ""])
    def test_non_identifier_unmapped_key_raises(self, key: str) -> None:
        with pytest.raises(BadRequestError, match="Invalid field name"):
            sql_for_partial_update({key: "x"}, {})

    def test_mapped_key_need_not_be_identifier(self) -> None:
        result = sql_for_partial_update({"first-name": "x"}, {"first-name": "first_name"})
        assert result.set_clause == '"first_name"=$1'

    def test_input_is_not_mutated(self) -> None:
        data = {"firstName": "Jane"}
        sql_for_partial_update(data, USER_FIELDS)
        assert data == {"firstName": "Jane"}

    def test_repeated_calls_are_identical(self) -> None:
        data = {"firstName": "Jane", "isAdmin": False}
        assert sql_for_partial_update(data, USER_FIELDS) == sql_for_partial_update(data, USER_FIELDS)


class TestCompanyFilter:
    def test_all_keys(self) -> None:
        result = sql_for_filter_company({"name": "net", "minEmployees": 1, "maxEmployees": 2})
        assert result.where_clause == (
            'WHERE "name" ILIKE $1 AND "num_employees" >= $2 AND "num_employees" <= $3'
        )
        assert result.values == ["%net%", 1, 2]

    def test_name_only(self) -> None:
        result = sql_for_filter_company({"name": "net"})
        assert result == WhereClause(where_clause='WHERE "name" ILIKE $1', values=["%net%"])

    def test_min_only(self) -> None:
        result = sql_for_filter_company({"minEmployees": 10})
        assert result.where_clause == 'WHERE "num_employees" >= $1'
        assert result.values == [10]

    def test_max_only_numbered_from_one(self) -> None:
        result = sql_for_filter_company({"maxEmployees": 50})
        assert result.where_clause == 'WHERE "num_employees" <= $1'
        assert result.values == [50]

    def test_name_and_max_skip_no_index(self) -> None:
        result = sql_for_filter_company({"name": "a", "maxEmployees": 5})
        assert result.where_clause == 'WHERE "name" ILIKE $1 AND "num_employees" <= $2'
        assert result.values == ["%a%", 5]

    def test_rule_order_ignores_key_order(self) -> None:
        result = sql_for_filter_company({"maxEmployees": 2, "name": "net", "minEmployees": 1})
        assert result.where_clause == (
            'WHERE "name" ILIKE $1 AND "num_employees" >= $2 AND "num_employees" <= $3'
        )
        assert result.values == ["%net%", 1, 2]

    def test_unknown_keys_ignored(self) -> None:
        result = sql_for_filter_company({"name": "net", "color": "red"})
        assert result.where_clause == 'WHERE "name" ILIKE $1'
        assert result.values == ["%net%"]

    def test_empty_criteria_yields_bare_where(self) -> None:
        """The company builder keeps its prefix even with no predicates.

        BoardStore.filter_companies() never runs this clause; it falls back to
        find_all_companies() when no recognized key is present.
        """
        result = sql_for_filter_company({})
        assert result.where_clause == "WHERE "
        assert result.values == []


class TestJobFilter:
    def test_title_and_equity(self) -> None:
        result = sql_for_filter_job({"title": "arc", "hasEquity": True})
        assert result.where_clause == "WHERE title ILIKE $1 AND equity <> 0"
        assert result.values == ["%arc%"]

    def test_all_keys(self) -> None:
        result = sql_for_filter_job({"title": "arc", "minSalary": 1000, "hasEquity": True})
        assert result.where_clause == "WHERE title ILIKE $1 AND salary >= $2 AND equity <> 0"
        assert result.values == ["%arc%", 1000]

    def test_min_salary_only_numbered_from_one(self) -> None:
        result = sql_for_filter_job({"minSalary": 50000})
        assert result.where_clause == "WHERE salary >= $1"
        assert result.values == [50000]

    def test_equity_only_has_no_values(self) -> None:
        result = sql_for_filter_job({"hasEquity": "true"})
        assert result.where_clause == "WHERE equity <> 0"
        assert result.values == []

    @pytest.mark.parametrize("has_equity", [False, "false", None])
    def test_equity_without_restriction(self, has_equity) -> None:
        result = sql_for_filter_job({"title": "arc", "hasEquity": has_equity})
        assert result.where_clause == "WHERE title ILIKE $1"
        assert result.values == ["%arc%"]

    def test_explicit_false_alone_is_empty(self) -> None:
        assert sql_for_filter_job({"hasEquity": False}) == WhereClause(where_clause="", values=[])

    def test_empty_criteria_is_empty(self) -> None:
        result = sql_for_filter_job({})
        assert result.where_clause == ""
        assert result.values == []

    def test_rule_order_ignores_key_order(self) -> None:
        result = sql_for_filter_job({"hasEquity": True, "minSalary": 5, "title": "x"})
        assert result.where_clause == "WHERE title ILIKE $1 AND salary >= $2 AND equity <> 0"
        assert result.values == ["%x%", 5]

    def test_repeated_calls_are_identical(self) -> None:
        criteria = {"title": "arc", "hasEquity": True}
        assert sql_for_filter_job(criteria) == sql_for_filter_job(criteria)


class TestEquityFilter:
    @pytest.mark.parametrize(
        ("criteria", "expected"),
        [
            ({}, EquityFilter.UNSET),
            ({"hasEquity": None}, EquityFilter.UNSET),
            ({"hasEquity": False}, EquityFilter.EXPLICIT_FALSE),
            ({"hasEquity": "false"}, EquityFilter.EXPLICIT_FALSE),
            ({"hasEquity": True}, EquityFilter.FILTER),
            ({"hasEquity": "true"}, EquityFilter.FILTER),
            ({"hasEquity": "yes"}, EquityFilter.FILTER),
            ({"hasEquity": 1}, EquityFilter.FILTER),
        ],
    )
    def test_from_criteria(self, criteria: dict, expected: EquityFilter) -> None:
        assert EquityFilter.from_criteria(criteria) is expected
