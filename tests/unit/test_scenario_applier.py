"""
Unit tests for scenario application: end-to-end sequencing and fail-fast behavior.
"""

from __future__ import annotations

import pytest

from testhelper.exceptions import (
    CyclicDependencyError,
    ExecutionError,
    ScenarioValidationError,
    UnknownDependencyError,
)
from testhelper.mock_services.activation import ScenarioActivationManager
from testhelper.models.results import MockRequest
from testhelper.orchestrator.scenario_applier import ScenarioApplier
from tests.fakes import RecordingExecutor
from tests.scenario_factory import scenario_payload


def _applier(executor: RecordingExecutor) -> tuple[ScenarioApplier, ScenarioActivationManager]:
    activations = ScenarioActivationManager()
    return ScenarioApplier(executor, activations), activations


@pytest.mark.asyncio
async def test_apply_creates_seeds_and_registers_mocks() -> None:
    executor = RecordingExecutor()
    applier, activations = _applier(executor)

    result = await applier.apply(scenario_payload())

    assert result.to_dict() == {"tablesCreated": 2, "dataInserted": 2, "mocksConfigured": 1}
    assert executor.calls == [
        ("create", "users"),
        ("insert", "users"),
        ("create", "orders"),
        ("truncate", "orders"),
        ("insert", "orders"),
    ]
    assert executor.rows["orders"][0]["id"].startswith("TST")

    resolved = activations.match(MockRequest(method="GET", path="/payments/p-9"))
    assert resolved.body == {"paymentId": "p-9", "status": "PAID"}
    assert activations.active_scenario_id == "scenario_test_1"


@pytest.mark.asyncio
async def test_cycle_fails_before_any_table_is_created() -> None:
    payload = scenario_payload(
        tables=[
            {"name": "X", "ddl": "CREATE TABLE X (id INT)", "dependencies": ["Y"]},
            {"name": "Y", "ddl": "CREATE TABLE Y (id INT)", "dependencies": ["X"]},
        ],
        tableData=[],
    )
    executor = RecordingExecutor()
    applier, activations = _applier(executor)

    with pytest.raises(CyclicDependencyError):
        await applier.apply(payload)

    assert executor.calls == []
    assert activations.list_endpoints("scenario_test_1") == []


@pytest.mark.asyncio
async def test_invalid_scenario_touches_nothing() -> None:
    payload = scenario_payload()
    payload["tables"][0]["dependencies"] = ["customers"]
    executor = RecordingExecutor()
    applier, activations = _applier(executor)

    with pytest.raises(ScenarioValidationError):
        await applier.apply(payload)

    assert executor.calls == []
    assert activations.active_scenario_id is None


@pytest.mark.asyncio
async def test_unknown_dependency_from_typed_scenario() -> None:
    """A typed scenario built without validation still fails on the unknown dependency."""
    from testhelper.models.scenario import TestScenario

    scenario = TestScenario.model_validate(scenario_payload())
    scenario.tables[0].dependencies = ["customers"]
    applier, _ = _applier(RecordingExecutor())

    with pytest.raises((ScenarioValidationError, UnknownDependencyError)):
        await applier.apply(scenario)


@pytest.mark.asyncio
async def test_execution_failure_leaves_mocks_unregistered() -> None:
    executor = RecordingExecutor(fail_on=("create", "orders"))
    applier, activations = _applier(executor)

    with pytest.raises(ExecutionError) as excinfo:
        await applier.apply(scenario_payload())

    assert excinfo.value.table_name == "orders"
    assert excinfo.value.partial.to_dict() == {"tablesCreated": 1, "dataInserted": 1, "mocksConfigured": 0}
    assert activations.match(MockRequest(method="GET", path="/payments/1")) is None


@pytest.mark.asyncio
async def test_reapply_replaces_mock_set() -> None:
    executor = RecordingExecutor()
    applier, activations = _applier(executor)
    await applier.apply(scenario_payload())

    updated = scenario_payload(tables=[], tableData=[], mockApis=[{
        "id": "mock_health",
        "method": "GET",
        "path": "/health",
        "response": {"status": 204},
    }])
    result = await applier.apply(updated)

    assert result.mocks_configured == 1
    assert activations.match(MockRequest(method="GET", path="/payments/1")) is None
    assert activations.match(MockRequest(method="GET", path="/health")).status == 204
