"""fluentsql clause model: the query IR and shared allowlists."""
from fluentsql.schema.clauses import (
    Boolean,
    JoinClause,
    JoinType,
    OrderClause,
    OrderDirection,
    RawExpression,
    WhereClause,
    WhereType,
)
from fluentsql.schema.column_reference import ColumnReference

__all__ = [
    "Boolean",
    "ColumnReference",
    "JoinClause",
    "JoinType",
    "OrderClause",
    "OrderDirection",
    "RawExpression",
    "WhereClause",
    "WhereType",
]
