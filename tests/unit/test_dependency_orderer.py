"""
Unit tests for table dependency ordering: topological order, cycles, unknown and self dependencies.
"""

from __future__ import annotations

import pytest

from testhelper.exceptions import CyclicDependencyError, UnknownDependencyError
from testhelper.models.scenario import DDLTable
from testhelper.orchestrator.dependency_orderer import DependencyOrderer

orderer = DependencyOrderer()


def _table(name: str, deps: list[str] | None = None, order: int = 0) -> DDLTable:
    return DDLTable(name=name, ddl=f"CREATE TABLE {name} (id INT)", dependencies=deps or [], order=order)


def _names(tables: list[DDLTable]) -> list[str]:
    return [table.name for table in tables]


def test_dependencies_come_first() -> None:
    """C depends on B, B depends on A: order is A, B, C regardless of input order."""
    tables = [_table("C", ["B"]), _table("A"), _table("B", ["A"])]
    assert _names(orderer.order(tables)) == ["A", "B", "C"]


def test_siblings_of_a_shared_parent_follow_their_order_hint() -> None:
    """B (order 0) and C (order 1) both depend on A; A comes first, then B, then C."""
    tables = [_table("C", ["A"], order=1), _table("B", ["A"], order=0), _table("A", order=5)]
    assert _names(orderer.order(tables)) == ["A", "B", "C"]

    tables = [_table("A", order=5), _table("C", ["A"], order=1), _table("B", ["A"], order=0)]
    assert _names(orderer.order(tables)) == ["A", "B", "C"]


def test_order_hint_breaks_ties_then_name() -> None:
    tables = [_table("b", order=2), _table("a", order=2), _table("z", order=1)]
    assert _names(orderer.order(tables)) == ["z", "a", "b"]


def test_diamond_dependency() -> None:
    tables = [
        _table("orders", ["users", "products"]),
        _table("products"),
        _table("users"),
        _table("order_items", ["orders", "products"]),
    ]
    ordered = _names(orderer.order(tables))
    assert ordered.index("users") < ordered.index("orders")
    assert ordered.index("products") < ordered.index("orders")
    assert ordered[-1] == "order_items"


def test_cycle_is_reported_with_its_tables() -> None:
    tables = [_table("X", ["Y"]), _table("Y", ["X"]), _table("Z")]
    with pytest.raises(CyclicDependencyError) as excinfo:
        orderer.order(tables)
    assert excinfo.value.tables == ["X", "Y"]


def test_unknown_dependency() -> None:
    with pytest.raises(UnknownDependencyError) as excinfo:
        orderer.order([_table("orders", ["customers"])])
    assert excinfo.value.table == "orders"
    assert excinfo.value.dependency == "customers"


def test_self_dependency_is_ignored() -> None:
    """A self-referencing table (parent_id) orders like any other table."""
    tables = [_table("categories", ["categories"]), _table("items", ["categories"])]
    assert _names(orderer.order(tables)) == ["categories", "items"]


def test_duplicate_names_rejected() -> None:
    with pytest.raises(ValueError):
        orderer.order([_table("a"), _table("a")])


def test_empty_input() -> None:
    assert orderer.order([]) == []
