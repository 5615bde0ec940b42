"""SQL injection tests: every identifier path rejects hostile input."""
from __future__ import annotations

import pytest

from fluentsql import Query
from fluentsql.compile.mysql import MySQLGrammar
from fluentsql.compile.postgres import PostgresGrammar
from fluentsql.compile.sqlite import SQLiteGrammar
from fluentsql.errors import InvalidIdentifierError, InvalidOperatorError, ValidationError

HOSTILE_IDENTIFIERS = [
    "id; DROP TABLE users;--",
    "id UNION SELECT * FROM passwords",
    "id,(SELECT password FROM admin)",
    "id--",
    "id/*comment*/",
    "id'",
    'id"',
    "id`",
    "id)",
    "1=1",
    "users.id.extra",
    "id\x00",
    "id\r\n",
]

GRAMMARS = [MySQLGrammar(), PostgresGrammar(), SQLiteGrammar()]


def _q(grammar=None) -> Query:
    return Query(grammar or MySQLGrammar()).table("users")


@pytest.mark.parametrize("grammar", GRAMMARS, ids=lambda g: g.dialect_name)
@pytest.mark.parametrize("hostile", HOSTILE_IDENTIFIERS)
@pytest.mark.parametrize(
    "build",
    [
        pytest.param(lambda q, s: q.select(s).to_sql(), id="select"),
        pytest.param(lambda q, s: q.where(s, 1).to_sql(), id="where"),
        pytest.param(lambda q, s: q.where_in(s, [1]).to_sql(), id="where_in"),
        pytest.param(lambda q, s: q.where_between(s, 1, 2).to_sql(), id="between"),
        pytest.param(lambda q, s: q.where_null(s).to_sql(), id="null"),
        pytest.param(lambda q, s: q.where_year(s, 2024).to_sql(), id="year"),
        pytest.param(lambda q, s: q.where_nested(lambda w: w.where(s, 1)).to_sql(), id="nested"),
        pytest.param(lambda q, s: q.order_by(s).to_sql(), id="order_by"),
        pytest.param(lambda q, s: q.group_by(s).to_sql(), id="group_by"),
        pytest.param(lambda q, s: q.having(s, ">", 1).to_sql(), id="having"),
        pytest.param(lambda q, s: q.join("posts", s, "=", "users.id").to_sql(), id="join_left"),
        pytest.param(lambda q, s: q.join("posts", "posts.id", "=", s).to_sql(), id="join_right"),
        pytest.param(lambda q, s: q.join(s, "a", "=", "b").to_sql(), id="join_table"),
        pytest.param(lambda q, s: q.cross_join(s).to_sql(), id="cross_join"),
        pytest.param(lambda q, s: q.to_insert_sql({s: 1}), id="insert"),
        pytest.param(lambda q, s: q.to_insert_batch_sql([{s: 1}]), id="insert_batch"),
        pytest.param(lambda q, s: q.to_update_sql({s: 1}), id="update"),
        pytest.param(lambda q, s: q.to_count_sql(s), id="count"),
        pytest.param(lambda q, s: q.to_aggregate_sql("MAX", s), id="aggregate"),
        pytest.param(
            lambda q, s: q.to_upsert_sql({"a": 1}, [s], ["a"]), id="upsert_update_columns"
        ),
        pytest.param(
            lambda q, s: q.to_upsert_sql({"a": 1}, ["a"], [s]), id="upsert_conflict_columns"
        ),
    ],
)
def test_hostile_identifier_rejected(grammar, hostile: str, build):
    with pytest.raises(InvalidIdentifierError):
        build(_q(grammar), hostile)


@pytest.mark.parametrize(
    "table",
    ["users; DROP TABLE users", "users--", "users u v", "users AS a AS b", "`users`", "users)"],
)
def test_hostile_table_rejected(table: str):
    q = Query().table(table)
    for compile_fn in (
        q.to_sql,
        q.to_delete_sql,
        q.to_exists_sql,
        q.to_count_sql,
        q.to_truncate_sql,
        lambda: q.to_insert_sql({"a": 1}),
        lambda: q.to_update_sql({"a": 1}),
    ):
        with pytest.raises(InvalidIdentifierError):
            compile_fn()


@pytest.mark.parametrize(
    "operator",
    ["= 1 OR 1=1 --", "=;", "; DROP TABLE users", "UNION", "=='", "LIKE '%'"],
)
def test_hostile_operator_rejected(operator: str):
    with pytest.raises(InvalidOperatorError):
        _q().where("id", operator, 1).to_sql()
    with pytest.raises(InvalidOperatorError):
        _q().join("posts", "posts.user_id", operator, "users.id").to_sql()
    with pytest.raises(InvalidOperatorError):
        _q().having("id", operator, 1).to_sql()


@pytest.mark.parametrize(
    "value",
    ["1; DROP TABLE users", "' OR '1'='1", "admin'--", "1 UNION SELECT password FROM users"],
)
def test_values_are_placeholders(value: str):
    sql, args = _q().where("name", value).to_sql()
    assert value not in sql
    assert args == [value]

    sql, args = _q().where("id", 1).to_update_sql({"name": value})
    assert value not in sql
    assert args == [value, 1]


def test_error_does_not_echo_into_sql():
    hostile = "x; DROP TABLE users"
    with pytest.raises(ValidationError) as exc_info:
        _q().where(hostile, 1).to_sql()
    assert exc_info.value.details["identifier"] == hostile


def test_secure_output_format():
    sql, args = _q().select("id", "name").where("status", "=", "active").to_sql()
    assert sql == "SELECT `id`, `name` FROM `users` WHERE `status` = ?"
    assert "active" not in sql
    assert args == ["active"]
