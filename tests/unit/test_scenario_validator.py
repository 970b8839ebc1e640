"""
Unit tests for scenario validation: required fields, referential integrity, export versions.
"""

from __future__ import annotations

import re

import pytest

from testhelper.exceptions import ScenarioValidationError
from testhelper.models.scenario import MockEndpoint, TestScenario
from testhelper.services.scenario_validator import ScenarioValidator, new_entity_id, to_wire_keys
from tests.scenario_factory import scenario_payload

validator = ScenarioValidator()


def _fields(excinfo: pytest.ExceptionInfo) -> set[str]:
    return {error["field"] for error in excinfo.value.errors}


def test_valid_scenario_is_typed_and_defaulted() -> None:
    scenario = validator.validate_scenario(scenario_payload())
    assert scenario.id == "scenario_test_1"
    assert scenario.mock_apis[0].enabled is True
    assert scenario.table_data[0].truncate_before is False
    assert scenario.table_data[1].truncate_before is True


def test_every_violation_is_reported() -> None:
    """Missing name, bad URL, unknown dependency and unknown tableData table all come back together."""
    payload = scenario_payload(name="", targetApi={"method": "GET", "url": "not-a-url"})
    payload["tables"][0]["dependencies"] = ["customers"]
    payload["tableData"].append({"tableName": "ghost", "rows": []})

    with pytest.raises(ScenarioValidationError) as excinfo:
        validator.validate_scenario(payload)

    fields = _fields(excinfo)
    assert "name" in fields
    assert "targetApi.url" in fields
    assert "tables.0.dependencies.0" in fields
    assert "tableData.2.tableName" in fields


def test_duplicate_table_names_and_mock_ids() -> None:
    payload = scenario_payload()
    payload["tables"].append(dict(payload["tables"][1]))
    payload["mockApis"].append(dict(payload["mockApis"][0]))

    with pytest.raises(ScenarioValidationError) as excinfo:
        validator.validate_scenario(payload)

    types = {error["type"] for error in excinfo.value.errors}
    assert {"duplicate_table", "duplicate_mock"} <= types


def test_invalid_enum_and_negative_values() -> None:
    payload = scenario_payload()
    payload["mockApis"][0]["method"] = "FETCH"
    payload["mockApis"][0]["priority"] = -1
    payload["mockApis"][0]["response"]["delay"] = -5

    with pytest.raises(ScenarioValidationError) as excinfo:
        validator.validate_scenario(payload)

    fields = _fields(excinfo)
    assert "mockApis.0.method" in fields
    assert "mockApis.0.priority" in fields
    assert "mockApis.0.response.delay" in fields


def test_non_object_input() -> None:
    with pytest.raises(ScenarioValidationError):
        validator.validate_scenario(["not", "a", "scenario"])


def test_validate_create_assigns_id_and_timestamps() -> None:
    payload = scenario_payload()
    del payload["createdAt"]
    scenario = validator.validate_create(payload)
    assert scenario.id != "scenario_test_1"
    assert re.fullmatch(r"scenario_\d{13}_[a-z0-9]{9}", scenario.id)
    assert scenario.created_at == scenario.updated_at


def test_new_entity_ids_are_unique() -> None:
    assert len({new_entity_id("group") for _ in range(50)}) == 50


def test_export_accepts_current_major_version() -> None:
    export = validator.validate_export({
        "version": "1.4.0",
        "exportedAt": "2026-01-02T00:00:00.000Z",
        "scenario": scenario_payload(),
    })
    assert export.scenario.name == "Order lookup"


def test_export_rejects_newer_major_version() -> None:
    with pytest.raises(ScenarioValidationError) as excinfo:
        validator.validate_export({
            "version": "2.0.0",
            "exportedAt": "2026-01-02T00:00:00.000Z",
            "scenario": scenario_payload(),
        })
    assert any(error["type"] == "unsupported_version" for error in excinfo.value.errors)


def test_export_reports_nested_scenario_errors_with_prefix() -> None:
    scenario = scenario_payload()
    scenario["tableData"].append({"tableName": "ghost"})
    with pytest.raises(ScenarioValidationError) as excinfo:
        validator.validate_export({"version": "1.0.0", "exportedAt": "x", "scenario": scenario})
    assert "scenario.tableData.2.tableName" in _fields(excinfo)


def test_to_wire_keys_accepts_both_spellings() -> None:
    assert to_wire_keys({"target_api": 1, "tableData": 2, "name": 3}, TestScenario) == {
        "targetApi": 1,
        "tableData": 2,
        "name": 3,
    }


def test_to_wire_keys_rejects_unknown_fields() -> None:
    with pytest.raises(ScenarioValidationError) as excinfo:
        to_wire_keys({"name": "ok", "targetApy": {}, "extra": 1}, TestScenario)
    assert _fields(excinfo) == {"targetApy", "extra"}
    assert {error["type"] for error in excinfo.value.errors} == {"unknown_field"}


def test_mock_endpoint_list_reports_bad_items_and_repeated_ids() -> None:
    good = {"id": "m1", "method": "GET", "path": "/a", "response": {}}
    with pytest.raises(ScenarioValidationError) as excinfo:
        validator.validate_mock_endpoints([good, {**good, "method": "TRACE", "id": "m2"}, good])
    assert {"1.method", "2.id"} <= _fields(excinfo)

    endpoints = validator.validate_mock_endpoints([good, {**good, "id": "m2", "request_match": {"headers": {"A": "1"}}}])
    assert all(isinstance(endpoint, MockEndpoint) for endpoint in endpoints)
    assert endpoints[1].request_match.headers == {"A": "1"}

    with pytest.raises(ScenarioValidationError):
        validator.validate_mock_endpoints({"endpoints": [good]})
