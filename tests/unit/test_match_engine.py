"""
Unit tests for mock matching: path params, priority and specificity, headers, bodies, interpolation.
"""

from __future__ import annotations

from typing import Any

from testhelper.mock_services.match_engine import (
    MockMatchEngine,
    interpolate_params,
    match_path_pattern,
    match_subset,
)
from testhelper.models.results import MockRequest
from testhelper.models.scenario import MockEndpoint


def _endpoint(endpoint_id: str, path: str, method: str = "GET", priority: int = 0, **extra: Any) -> MockEndpoint:
    return MockEndpoint.model_validate({
        "id": endpoint_id,
        "method": method,
        "path": path,
        "priority": priority,
        "response": extra.pop("response", {"status": 200, "body": {"from": endpoint_id}}),
        **extra,
    })


def _engine(*endpoints: MockEndpoint) -> MockMatchEngine:
    engine = MockMatchEngine()
    engine.register(endpoints)
    return engine


def test_path_pattern_captures_params() -> None:
    result = match_path_pattern("/users/:id/orders/:orderId", "/users/42/orders/7")
    assert result.is_match
    assert result.params == {"id": "42", "orderId": "7"}


def test_path_pattern_requires_same_segment_count() -> None:
    assert not match_path_pattern("/users/:id", "/users/42/orders").is_match
    assert not match_path_pattern("/users/:id", "/accounts/42").is_match
    assert match_path_pattern("/users/", "/users").is_match


def test_interpolate_params_fills_placeholders() -> None:
    body = {"id": "{{id}}", "items": ["user-{{id}}"], "missing": "{{nope}}", "n": 1}
    assert interpolate_params(body, {"id": "42"}) == {"id": "42", "items": ["user-42"], "missing": "", "n": 1}


def test_match_subset_semantics() -> None:
    assert match_subset({"a": 1}, {"a": 1, "b": 2})
    assert not match_subset({"a": 1, "c": 3}, {"a": 1})
    assert match_subset({"nested": {"x": [1]}}, {"nested": {"x": [1, 2], "y": 0}})
    assert not match_subset({"flag": True}, {"flag": 1})
    assert not match_subset({"a": 1}, "a=1")


def test_higher_priority_wins() -> None:
    engine = _engine(_endpoint("low", "/users/:id", priority=5), _endpoint("high", "/users/:id", priority=10))
    resolved = engine.match(MockRequest(method="GET", path="/users/1"))
    assert resolved.endpoint_id == "high"


def test_more_constraints_win_at_equal_priority() -> None:
    """Equal priority: the endpoint whose header constraint matched is preferred."""
    engine = _engine(
        _endpoint("generic", "/users"),
        _endpoint("tagged", "/users", request_match={"headers": {"X-Test": "yes"}}),
    )
    tagged = engine.match(MockRequest(method="GET", path="/users", headers={"x-test": "yes"}))
    assert tagged.endpoint_id == "tagged"

    plain = engine.match(MockRequest(method="GET", path="/users"))
    assert plain.endpoint_id == "generic"


def test_full_tie_goes_to_lowest_id() -> None:
    engine = _engine(_endpoint("b", "/ping"), _endpoint("a", "/ping"))
    assert engine.match(MockRequest(method="GET", path="/ping")).endpoint_id == "a"


def test_disabled_endpoints_never_match() -> None:
    engine = MockMatchEngine()
    enabled = engine.register([_endpoint("off", "/users", enabled=False)])
    assert enabled == 0
    assert engine.match(MockRequest(method="GET", path="/users")) is None


def test_method_must_match() -> None:
    engine = _engine(_endpoint("create", "/users", method="POST"))
    assert engine.match(MockRequest(method="GET", path="/users")) is None
    assert engine.match(MockRequest(method="post", path="/users")).endpoint_id == "create"


def test_query_and_body_constraints() -> None:
    engine = _engine(_endpoint(
        "search",
        "/search",
        method="POST",
        request_match={"query": {"page": "1"}, "body": {"filter": {"status": "active"}}},
    ))
    hit = MockRequest(
        method="POST",
        path="/search",
        query={"page": "1", "size": "10"},
        body={"filter": {"status": "active", "region": "eu"}},
    )
    assert engine.match(hit).endpoint_id == "search"

    miss = MockRequest(method="POST", path="/search", query={"page": "2"}, body={"filter": {"status": "active"}})
    assert engine.match(miss) is None


def test_response_interpolates_params_and_resolves_constants() -> None:
    engine = _engine(_endpoint(
        "user",
        "/users/:id",
        response={
            "status": 201,
            "headers": {"X-Trace": "$UUID"},
            "body": {"id": "{{id}}", "token": "$RANDOM_STRING"},
            "delay": 25,
        },
    ))
    resolved = engine.match(MockRequest(method="GET", path="/users/99"))
    assert resolved.status == 201
    assert resolved.body["id"] == "99"
    assert resolved.body["token"] != "$RANDOM_STRING"
    assert resolved.headers["X-Trace"] != "$UUID"
    assert resolved.delay == 25
    assert resolved.path_params == {"id": "99"}


def test_register_replaces_previous_set() -> None:
    engine = _engine(_endpoint("old", "/old"))
    engine.register([_endpoint("new", "/new")])
    assert engine.match(MockRequest(method="GET", path="/old")) is None
    assert [endpoint.id for endpoint in engine.endpoints()] == ["new"]


def test_matching_is_deterministic() -> None:
    engine = _engine(*[_endpoint(f"e{i}", "/same", priority=i % 3) for i in range(9)])
    winners = {engine.match(MockRequest(method="GET", path="/same")).endpoint_id for _ in range(20)}
    assert winners == {"e2"}


def _guarded_and_open() -> tuple[MockEndpoint, MockEndpoint]:
    open_endpoint = _endpoint("open", "/users", priority=1)
    guarded = _endpoint("guarded", "/users", priority=2, request_match={"headers": {"X-Test": "1"}})
    return open_endpoint, guarded


def test_higher_priority_constrained_mock_wins_only_when_satisfied() -> None:
    open_endpoint, guarded = _guarded_and_open()
    engine = _engine(open_endpoint, guarded)

    assert engine.match(MockRequest(method="GET", path="/users", headers={"X-Test": "1"})).endpoint_id == "guarded"
    assert engine.match(MockRequest(method="GET", path="/users")).endpoint_id == "open"
    assert engine.match(MockRequest(method="GET", path="/users", headers={"X-Test": "2"})).endpoint_id == "open"


def test_priority_ignores_registration_order() -> None:
    open_endpoint, guarded = _guarded_and_open()
    with_header = MockRequest(method="GET", path="/users", headers={"x-test": "1"})

    for endpoints in ((open_endpoint, guarded), (guarded, open_endpoint)):
        engine = _engine(*endpoints)
        assert engine.match(with_header).endpoint_id == "guarded"
        assert engine.match(MockRequest(method="GET", path="/users")).endpoint_id == "open"
