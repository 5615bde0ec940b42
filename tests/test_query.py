"""Unit tests for the Query descriptor: mutators, accessors, clone, sticky error."""
from __future__ import annotations

import pytest

from fluentsql import Query
from fluentsql.compile.mysql import MySQLGrammar
from fluentsql.compile.sqlite import SQLiteGrammar
from fluentsql.errors import CompilationError, NoExecutorError
from fluentsql.schema.clauses import Boolean, JoinType, OrderDirection, RawExpression, WhereType


def _users() -> Query:
    return Query().table("users")


# ---------------------------------------------------------------------------
# Accumulation
# ---------------------------------------------------------------------------


def test_defaults():
    q = Query()
    assert isinstance(q.grammar, MySQLGrammar)
    assert q.table_name == ""
    assert q.columns == ()
    assert q.wheres == ()
    assert q.limit_value is None
    assert q.offset_value is None
    assert q.error is None
    assert q.executor is None


def test_table_forms():
    assert Query().from_("users").table_name == "users"
    q = Query().table_as("users", "u")
    assert q.table_name == "users"
    assert q.table_alias == "u"
    assert q.table_reference == "users u"
    assert q.to_sql().sql == "SELECT * FROM `users` AS `u`"


def test_select_overwrites_add_select_appends():
    q = _users().select("a", "b").select("c").add_select("d")
    assert q.columns == ("c", "d")
    q.select()
    assert q.columns == ()


def test_select_raw_stores_expression():
    q = _users().select_raw("COUNT(*) AS n", 1)
    (col,) = q.columns
    assert isinstance(col, RawExpression)
    assert col.bindings == (1,)


def test_where_records_clauses():
    q = _users().where("a", 1).or_where("b", ">", 2).where_in("c", (3, 4))
    kinds = [(w.type, w.boolean) for w in q.wheres]
    assert kinds == [
        (WhereType.BASIC, Boolean.AND),
        (WhereType.BASIC, Boolean.OR),
        (WhereType.IN, Boolean.AND),
    ]
    assert q.wheres[0].operator == "="
    assert q.wheres[2].values == [3, 4]


def test_where_requires_value():
    with pytest.raises(TypeError):
        _users().where("a")


def test_invalid_input_is_accepted_until_compile():
    q = _users().where("bad column", "=", 1).join("x;y", "a", "=", "b")
    assert len(q.wheres) == 1
    assert q.joins[0].type == JoinType.INNER


def test_join_group_order_accessors():
    q = (
        _users()
        .join("posts", "posts.user_id", "=", "users.id")
        .cross_join("tags")
        .group_by("a", "b")
        .group_by("c")
        .having("a", ">", 1)
        .order_by("a")
        .order_by_desc("b")
    )
    assert [j.type for j in q.joins] == [JoinType.INNER, JoinType.CROSS]
    assert q.groups == ("a", "b", "c")
    assert len(q.havings) == 1
    assert [o.direction for o in q.orders] == [OrderDirection.ASC, OrderDirection.DESC]


def test_limit_offset_overwrite():
    q = _users().limit(10).limit(5).offset(1).offset(2)
    assert q.limit_value == 5
    assert q.offset_value == 2
    assert _users().take(3).skip(4).to_sql().sql == "SELECT * FROM `users` LIMIT 3 OFFSET 4"


@pytest.mark.parametrize(
    "page, per_page, expected",
    [(1, 10, (10, 0)), (3, 10, (10, 20)), (0, 5, (5, 0)), (-2, 5, (5, 0))],
)
def test_for_page(page: int, per_page: int, expected: tuple[int, int]):
    q = _users().for_page(page, per_page)
    assert (q.limit_value, q.offset_value) == expected


# ---------------------------------------------------------------------------
# Sticky error
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("bad", [-1, 1.5, "10", True, None])
def test_bad_limit_is_sticky(bad):
    q = _users().limit(bad)
    assert isinstance(q.error, CompilationError)
    assert q.limit_value is None
    with pytest.raises(CompilationError):
        q.to_sql()
    with pytest.raises(CompilationError):
        q.to_count_sql()
    with pytest.raises(CompilationError):
        q.to_insert_sql({"a": 1})


def test_first_error_wins():
    q = _users().offset(-1).order_by("a", "sideways").limit(-5)
    assert q.error is not None
    assert q.error.clause == "OFFSET"


def test_invalid_direction_is_sticky():
    q = _users().order_by("a", "up")
    assert q.error.clause == "ORDER BY"
    assert q.orders == ()
    with pytest.raises(CompilationError):
        q.to_delete_sql()


def test_direction_is_case_insensitive():
    assert _users().order_by("a", "desc").orders[0].direction == OrderDirection.DESC


def test_nested_error_propagates():
    q = _users().where_nested(lambda w: w.where("a", 1).limit(-1))
    assert q.error is not None
    with pytest.raises(CompilationError):
        q.to_sql()


def test_reset_clears_error():
    q = _users().limit(-1).reset()
    assert q.error is None
    assert q.table_name == ""


# ---------------------------------------------------------------------------
# Conditional chaining
# ---------------------------------------------------------------------------


def test_when_and_unless():
    status = "active"
    q = (
        _users()
        .when(status, lambda q: q.where("status", status))
        .when(None, lambda q: q.where("never", 1), lambda q: q.where("fallback", 1))
        .unless(False, lambda q: q.where("deleted_at", "IS", None))
        .unless(True, lambda q: q.where("never", 1))
    )
    assert [w.column for w in q.wheres] == ["status", "fallback", "deleted_at"]


# ---------------------------------------------------------------------------
# Clone
# ---------------------------------------------------------------------------


def test_clone_is_independent():
    grammar = SQLiteGrammar()
    original = Query(grammar).table("users").where("a", 1).where_in("b", [1, 2]).order_by("a")
    copy = original.clone()

    copy.where("c", 3).order_by("d").limit(1).group_by("e").select("x")
    copy.wheres[1].values.append(99)

    assert len(original.wheres) == 2
    assert original.wheres[1].values == [1, 2]
    assert len(original.orders) == 1
    assert original.limit_value is None
    assert original.groups == ()
    assert original.columns == ()
    assert copy.grammar is original.grammar


def test_clone_keeps_nested_children_independent():
    original = _users().where_nested(lambda w: w.where("a", 1))
    copy = original.clone()
    copy.wheres[0].nested[0].value = 2
    assert original.to_sql().args == [1]
    assert copy.to_sql().args == [2]


def test_clone_carries_error():
    assert _users().limit(-1).clone().error is not None


# ---------------------------------------------------------------------------
# Execution helpers without an executor
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "call",
    [
        lambda q: q.get(),
        lambda q: q.first(),
        lambda q: q.count(),
        lambda q: q.exists(),
        lambda q: q.insert({"a": 1}),
        lambda q: q.delete(),
        lambda q: q.paginate(),
    ],
)
def test_execution_needs_executor(call):
    with pytest.raises(NoExecutorError):
        call(_users())


def test_repr():
    assert repr(_users()) == "Query(table='users', grammar='mysql')"
