"""
Unit tests for the scenario activation registry: exclusive activation, isolation, deactivation.
"""

from __future__ import annotations

import threading

from testhelper.mock_services.activation import MANUAL_SCENARIO_ID, ScenarioActivationManager
from testhelper.models.results import MockRequest
from testhelper.models.scenario import MockEndpoint


def _endpoint(endpoint_id: str, path: str) -> MockEndpoint:
    return MockEndpoint(id=endpoint_id, method="GET", path=path, response={"status": 200, "body": endpoint_id})


def test_latest_activation_is_default_target() -> None:
    manager = ScenarioActivationManager()
    manager.activate("s1", [_endpoint("a", "/a")])
    manager.activate("s2", [_endpoint("b", "/b")])

    assert manager.active_scenario_id == "s2"
    assert manager.match(MockRequest(method="GET", path="/a")) is None
    assert manager.match(MockRequest(method="GET", path="/a"), scenario_id="s1").body == "a"


def test_managers_are_isolated() -> None:
    first, second = ScenarioActivationManager(), ScenarioActivationManager()
    first.activate("s1", [_endpoint("a", "/a")])
    assert second.match(MockRequest(method="GET", path="/a")) is None


def test_deactivate() -> None:
    manager = ScenarioActivationManager()
    manager.activate("s1", [_endpoint("a", "/a")])

    assert manager.deactivate("s1") is True
    assert manager.deactivate("s1") is False
    assert manager.active_scenario_id is None
    assert manager.list_endpoints() == []


def test_status_summary() -> None:
    manager = ScenarioActivationManager()
    manager.activate("s1", [_endpoint("a", "/a"), _endpoint("b", "/b")])
    status = manager.status()
    assert status["active_scenario_id"] == "s1"
    assert status["scenarios"] == [{"scenario_id": "s1", "endpoints": 2, "is_active": True}]


def test_status_while_scenarios_churn() -> None:
    """status() snapshots the registry, so concurrent activation never breaks iteration."""
    manager = ScenarioActivationManager()
    stop = threading.Event()

    def churn() -> None:
        index = 0
        while not stop.is_set():
            manager.activate(f"s{index % 50}", [_endpoint("a", "/a")])
            manager.deactivate(f"s{(index + 25) % 50}")
            index += 1

    worker = threading.Thread(target=churn)
    worker.start()
    try:
        for _ in range(500):
            status = manager.status()
            assert len(status["scenarios"]) <= 50
    finally:
        stop.set()
        worker.join()


def test_manual_endpoints_become_the_active_set() -> None:
    manager = ScenarioActivationManager()
    manager.activate("s1", [_endpoint("a", "/a")])

    manager.create_endpoint(_endpoint("m1", "/manual"))

    assert manager.active_scenario_id == MANUAL_SCENARIO_ID
    assert manager.match(MockRequest(method="GET", path="/manual")).body == "m1"
    assert manager.match(MockRequest(method="GET", path="/a"), scenario_id="s1").body == "a"


def test_manual_endpoint_update_and_delete() -> None:
    manager = ScenarioActivationManager()
    manager.create_endpoint(_endpoint("m1", "/one"))
    manager.create_endpoint(_endpoint("m2", "/two"))

    moved = _endpoint("m1", "/moved")
    assert manager.update_endpoint(moved) == moved
    assert manager.update_endpoint(_endpoint("ghost", "/x")) is None
    assert manager.match(MockRequest(method="GET", path="/one")) is None
    assert manager.match(MockRequest(method="GET", path="/moved")).body == "m1"

    assert manager.delete_endpoint("m2") is True
    assert manager.delete_endpoint("m2") is False
    assert [endpoint.id for endpoint in manager.manual_endpoints()] == ["m1"]

    assert manager.delete_all_endpoints() == 1
    assert manager.manual_endpoints() == []


def test_manual_import_replaces_the_set() -> None:
    manager = ScenarioActivationManager()
    manager.create_endpoint(_endpoint("old", "/old"))

    assert manager.import_endpoints([_endpoint("x", "/x"), _endpoint("y", "/y")]) == 2

    assert sorted(endpoint.id for endpoint in manager.manual_endpoints()) == ["x", "y"]
    assert manager.get_endpoint("old") is None
