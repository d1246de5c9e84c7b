# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for Query builder - compilation, paging, condition copying and execution."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from sqlchain import (
    ConnectionError,
    DriverError,
    JoinKind,
    Query,
    Result,
    ResultSet,
    ValidationError,
)
from sqlchain.sql.conditions import GroupEnd, GroupStart, Param
from sqlchain.sql.dialect import MYSQL, POSTGRESQL, SQLITE


def customers() -> Query:
    return Query(dialect="mysql").add_table("shop", "customers", "c")


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


class TestCompile:
    """SQL text and parameter order."""

    def test_simple_select(self):
        sql, params = customers().add_field("c", "Name").compile()
        assert sql == "SELECT `c`.`Name` FROM `shop`.`customers` AS `c`"
        assert params == []

    def test_empty_field_list(self):
        sql, _ = customers().compile()
        assert sql == "SELECT  FROM `shop`.`customers` AS `c`"

    def test_full_statement(self):
        query = (
            customers()
            .add_table("shop", "orders", "o", joins={"CustomerID": Query.join_to("c", "ID")},
                       join="left")
            .add_field("c", "LastName", "Name")
            .count("o", "ID", alias="Orders")
            .add_param("c", "Active", 1)
            .like("c", "LastName", "doe")
            .add_order_by("c", "LastName", "asc")
            .set_paging(3, 10)
        )
        sql, params = query.compile()
        assert sql == (
            "SELECT `c`.`LastName` AS `Name`, COUNT(`o`.`ID`) AS `Orders` "
            "FROM `shop`.`customers` AS `c` "
            "LEFT JOIN `shop`.`orders` AS `o` ON (`o`.`CustomerID` = `c`.`ID`) "
            "WHERE `c`.`Active` = ? AND `c`.`LastName` LIKE CONCAT('%', ?, '%') "
            "ORDER BY `c`.`LastName` ASC LIMIT 20, 10"
        )
        assert params == [1, "doe"]

    def test_params_in_text_order(self):
        """Field, join and condition values bind in the order they appear."""
        query = (
            Query(dialect="mysql")
            .add_table(None, "customers", "c")
            .add_table(None, "orders", "o", joins={"CustomerID": Query.join_to("c", "ID"),
                                                   "Status": "open"})
            .add_concat_field([("c", "First"), ("c", "Last")], "Full", " ")
            .add_param("o", "Total", 100, ">")
        )
        sql, params = query.compile()
        assert params == [" ", "open", 100]
        assert sql.count("?") == len(params)

    def test_placeholder_count_matches_params(self):
        sub = Query(dialect="mysql").add_table(None, "orders", "o").add_field("o", "CustomerID")
        sub.greater_equal("o", "Total", 50)
        query = (
            customers()
            .add_all_field("c")
            .add_date_format("c", "Created", "%Y", "Year")
            .add_sub_query(
                Query(dialect="mysql").add_table(None, "orders", "x").count()
                .add_param("x", "CustomerID", Query.join_to("c", "ID"))
                .not_equal("x", "Status", "void"),
                "Orders",
            )
            .is_in("c", "ID", sub)
            .not_in("c", "Region", ["N", "S"])
            .between("c", "Score", 1, 9)
            .is_null("c", "Deleted")
            .like_prefix("c", "Email", "jo")
            .like_suffix("c", "Email", ".com", "OR")
            .set_paging(2, 5)
        )
        sql, params = query.compile()
        assert sql.count("?") == len(params)
        assert params == ["%Y", "void", 50, "N", "S", 1, 9, "jo", ".com"]

    def test_empty_in_on_subquery_keeps_placeholders_aligned(self):
        orders = Query(dialect="mysql").add_table(None, "orders", "o").count()
        orders.add_param("o", "Total", 99)
        query = customers().add_field("c", "ID").add_param(orders, None, [], "IN")
        query.add_param("c", "Active", 1)

        sql, params = query.compile()

        assert sql.endswith("WHERE 1 = 0 AND `c`.`Active` = ?")
        assert params == [1]
        assert sql.count("?") == len(params)

    def test_compile_is_deterministic(self):
        query = customers().add_field("c", "Name").add_param("c", "ID", 3)
        assert query.compile() == query.compile()
        assert query.get_query() == query.compile()[0]
        assert query.get_values() == [3]

    def test_default_inner_join(self):
        sql, _ = customers().add_table("shop", "orders", "o").add_all_field("o").compile()
        assert sql.endswith("JOIN `shop`.`orders` AS `o`")
        assert "LEFT" not in sql
        assert " ON " not in sql

    def test_join_kind_enum(self):
        query = customers().add_table(None, "regions", "r", {"ID": Query.join_to("c", "RegionID")},
                                      JoinKind.RIGHT_OUTER)
        expected = "RIGHT OUTER JOIN `regions` AS `r` ON (`r`.`ID` = `c`.`RegionID`)"
        assert expected in query.get_query()

    def test_dialect_override(self):
        query = Query().add_table(None, "customers", "c").add_field("c", "Name").set_paging(2, 10)
        assert query.compile(SQLITE)[0] == 'SELECT "c"."Name" FROM "customers" AS "c" LIMIT 10, 10'
        assert query.compile("postgresql")[0] == (
            'SELECT "c"."Name" FROM "customers" AS "c" LIMIT 10 OFFSET 10'
        )

    def test_default_dialect_is_mysql(self):
        assert Query().dialect is MYSQL

    def test_session_dialect(self):
        session = MagicMock()
        session.dialect = POSTGRESQL
        assert Query(session).dialect is POSTGRESQL

    def test_multiple_order_by(self):
        sql, _ = customers().add_field("c", "ID").add_order_by("c", "LastName") \
            .add_order_by(None, "ID", "DESC").compile()
        assert sql.endswith("ORDER BY `c`.`LastName`, `ID` DESC")

    def test_in_requires_list(self):
        query = customers().add_param("c", "ID", 5, "IN")
        with pytest.raises(ValidationError):
            query.compile()

    def test_count_distinct_requires_column(self):
        assert customers().count("c", "City", distinct=True).get_query().startswith(
            "SELECT COUNT(DISTINCT `c`.`City`)"
        )
        with pytest.raises(ValidationError):
            customers().count(distinct=True).compile()


class TestGroups:
    """start_group / end_group."""

    def test_or_group(self):
        sql, params = (
            customers()
            .add_field("c", "ID")
            .add_param("c", "Active", 1)
            .start_group()
            .add_param("c", "City", "Rome", combo="OR")
            .add_param("c", "City", "Milan", combo="OR")
            .end_group()
            .compile()
        )
        assert sql.endswith("WHERE `c`.`Active` = ? AND (`c`.`City` = ? OR `c`.`City` = ?)")
        assert params == [1, "Rome", "Milan"]

    def test_nodes_recorded(self):
        query = customers().add_param("c", "A", 1).start_group("or").end_group()
        assert query.conditions[1] == GroupStart("OR")
        assert query.conditions[2] == GroupEnd("AND")

    def test_empty_combo_defaults_to_and(self):
        query = customers().add_param("c", "A", 1).add_param("c", "B", 2, combo="")
        assert query.conditions[1].combo == "AND"

    def test_empty_operator_defaults_to_equality(self):
        query = customers().add_param("c", "A", 1, operator="")
        assert query.conditions[0].operator == "="


# ---------------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------------


class TestPaging:
    """Page/limit to LIMIT clause."""

    @pytest.mark.parametrize(
        ("page", "limit", "clause"),
        [
            (1, 10, " LIMIT 0, 10"),
            (3, 10, " LIMIT 20, 10"),
            (0, 10, " LIMIT 0, 10"),
            (-4, 10, " LIMIT 0, 10"),
        ],
    )
    def test_limit_emitted(self, page, limit, clause):
        sql, _ = customers().add_all_field("c").set_paging(page, limit).compile()
        assert sql.endswith(clause)

    @pytest.mark.parametrize(("page", "limit"), [(None, 10), (2, None), (2, 0), (2, -1)])
    def test_no_limit(self, page, limit):
        sql, _ = customers().add_all_field("c").set_paging(page, limit).compile()
        assert "LIMIT" not in sql

    def test_set_page_and_limit_separately(self):
        query = customers().set_page("2").set_limit("25")
        assert (query.page, query.limit) == (2, 25)
        assert query.offset() == 25


# ---------------------------------------------------------------------------
# Condition sharing
# ---------------------------------------------------------------------------


class TestCopyParams:
    """copy_params clones, set_params aliases."""

    def test_copy_is_independent(self):
        source = customers().add_param("c", "Active", 1)
        target = Query(dialect="mysql").add_table("shop", "customers", "c").count()
        source.copy_params(target)
        target.add_param("c", "City", "Rome")
        assert len(source.conditions) == 1
        assert len(target.conditions) == 2
        assert target.get_values() == [1, "Rome"]

    def test_copy_conditions_alias(self):
        assert Query.copy_conditions is Query.copy_params

    def test_set_params_shares_list(self):
        shared = [Param(Query.join_to("c", "ID"), 1)]
        first = customers().set_params(shared)
        second = customers().set_params(shared)
        first.add_param("c", "Active", 1)
        assert second.conditions is first.conditions
        assert len(second.conditions) == 2


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def mock_session(result: Result) -> MagicMock:
    session = MagicMock()
    session.dialect = MYSQL
    session.execute = AsyncMock(return_value=result)
    return session


class TestExecute:
    """execute() and get_results()."""

    async def test_execute_caches_rows(self):
        rows = ResultSet([{"ID": 1, "Name": "John"}, {"ID": 2, "Name": "Jane"}], ["ID", "Name"])
        session = mock_session(Result(True, rows))
        query = Query(session).add_table(None, "customers", "c").add_all_field("c") \
            .add_param("c", "Active", 1)

        ok, value = await query.execute()

        assert ok is True
        assert value is rows
        session.execute.assert_awaited_once_with(
            "SELECT `c`.* FROM `customers` AS `c` WHERE `c`.`Active` = ?", [1]
        )
        assert query.get_results() is rows
        assert query.get_results(1) == {"ID": 2, "Name": "Jane"}
        assert query.get_results(0, "Name") == "John"
        assert query.get_results(0, "Missing") is None
        assert query.get_results(5) is rows

    async def test_sync_callback(self):
        rows = ResultSet([{"ID": 1}])
        query = Query(mock_session(Result(True, rows))).add_table(None, "t", "t").add_all_field("t")
        calls = []

        await query.execute(lambda ok, value: calls.append((ok, value)))

        assert calls == [(True, rows)]

    async def test_async_callback(self):
        error = DriverError("boom")
        query = Query(mock_session(Result(False, error))).add_table(None, "t", "t")
        callback = AsyncMock()

        result = await query.execute(callback)

        callback.assert_awaited_once_with(False, error)
        assert result == Result(False, error)

    async def test_failure_keeps_previous_records(self):
        rows = ResultSet([{"ID": 1}])
        session = mock_session(Result(True, rows))
        query = Query(session).add_table(None, "t", "t").add_all_field("t")
        await query.execute()
        session.execute.return_value = Result(False, DriverError("gone"))

        ok, _ = await query.execute()

        assert ok is False
        assert query.get_results() is rows

    async def test_without_session(self):
        calls = []
        ok, error = await Query().add_table(None, "t", "t").execute(
            lambda *args: calls.append(args)
        )
        assert ok is False
        assert isinstance(error, ConnectionError)
        assert calls == [(False, error)]

    async def test_validation_error_not_sent(self):
        session = mock_session(Result(True, ResultSet()))
        query = Query(session).add_table(None, "t", "t").add_param("t", "ID", 3, "IN")

        ok, error = await query.execute()

        assert ok is False
        assert isinstance(error, ValidationError)
        session.execute.assert_not_awaited()

    def test_get_results_before_execute(self):
        assert Query().get_results() is None
        assert Query().get_results(0, "ID") is None

    def test_repr(self):
        query = customers().add_field("c", "ID").add_param("c", "ID", 1)
        assert repr(query) == "<Query [c] fields=1 conditions=1>"
