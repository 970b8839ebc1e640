"""
Unit tests for table seeding: create/truncate/insert sequencing, constant resolution, failure reporting.
"""

from __future__ import annotations

import pytest

from testhelper.exceptions import ExecutionError
from testhelper.models.scenario import DDLTable, TableData
from testhelper.orchestrator.table_seeder import TableSeeder, group_table_data
from tests.fakes import RecordingExecutor


def _table(name: str) -> DDLTable:
    return DDLTable(name=name, ddl=f"CREATE TABLE {name} (id TEXT)")


@pytest.mark.asyncio
async def test_each_table_is_seeded_right_after_creation() -> None:
    executor = RecordingExecutor()
    data = group_table_data([
        TableData(table_name="users", rows=[{"id": "u1"}, {"id": "u2"}]),
        TableData(table_name="orders", rows=[{"id": "o1"}]),
    ])

    result = await TableSeeder().seed([_table("users"), _table("orders")], data, executor)

    assert executor.calls == [
        ("create", "users"),
        ("insert", "users"),
        ("create", "orders"),
        ("insert", "orders"),
    ]
    assert result.tables_created == 2
    assert result.rows_inserted == 3


@pytest.mark.asyncio
async def test_truncate_runs_before_insert() -> None:
    executor = RecordingExecutor()
    data = group_table_data([TableData(table_name="users", rows=[{"id": "u1"}], truncate_before=True)])

    await TableSeeder().seed([_table("users")], data, executor)

    assert executor.calls == [("create", "users"), ("truncate", "users"), ("insert", "users")]


@pytest.mark.asyncio
async def test_truncate_flag_on_later_entry_still_precedes_all_inserts() -> None:
    """Two entries for one table: truncate once, then both inserts survive."""
    executor = RecordingExecutor()
    data = group_table_data([
        TableData(table_name="users", rows=[{"id": "a"}]),
        TableData(table_name="users", rows=[{"id": "b"}], truncate_before=True),
    ])

    result = await TableSeeder().seed([_table("users")], data, executor)

    assert executor.calls == [
        ("create", "users"),
        ("truncate", "users"),
        ("insert", "users"),
        ("insert", "users"),
    ]
    assert executor.rows["users"] == [{"id": "a"}, {"id": "b"}]
    assert result.rows_inserted == 2


@pytest.mark.asyncio
async def test_table_without_data_is_only_created() -> None:
    executor = RecordingExecutor()
    result = await TableSeeder().seed([_table("audit")], {}, executor)
    assert executor.calls == [("create", "audit")]
    assert result.rows_inserted == 0


@pytest.mark.asyncio
async def test_constants_resolved_per_row() -> None:
    executor = RecordingExecutor()
    data = group_table_data([TableData(table_name="users", rows=[{"id": "$UUID"}, {"id": "$UUID"}])])

    await TableSeeder().seed([_table("users")], data, executor)

    first, second = executor.rows["users"]
    assert first["id"] != "$UUID"
    assert first["id"] != second["id"]


@pytest.mark.asyncio
async def test_failure_stops_and_reports_partial_counts() -> None:
    """An insert failure on the second table names it and keeps earlier counts."""
    executor = RecordingExecutor(fail_on=("insert", "orders"))
    data = group_table_data([
        TableData(table_name="users", rows=[{"id": "u1"}]),
        TableData(table_name="orders", rows=[{"id": "o1"}]),
    ])

    with pytest.raises(ExecutionError) as excinfo:
        await TableSeeder().seed([_table("users"), _table("orders"), _table("later")], data, executor)

    error = excinfo.value
    assert error.table_name == "orders"
    assert error.step == "insert"
    assert isinstance(error.cause, RuntimeError)
    assert error.partial.tables_created == 2
    assert error.partial.data_inserted == 1
    assert ("create", "later") not in executor.calls
