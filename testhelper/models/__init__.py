"""Data models for the Test Helper backend."""
from .enums import HttpMethod, ApiMethod, SeedStep, ImportMode
from .scenario import (
    ApiTestConfig,
    DDLTable,
    TableData,
    RequestMatch,
    MockResponse,
    MockEndpoint,
    TestSettings,
    ExpectedResponse,
    TestScenario,
    ScenarioExport,
    ScenarioGroup,
    utc_now_iso,
)
from .results import ApplyScenarioResult, SeedResult, MockRequest, ResolvedMockResponse

__all__ = [
    # Enums
    "HttpMethod",
    "ApiMethod",
    "SeedStep",
    "ImportMode",
    # Scenario
    "ApiTestConfig",
    "DDLTable",
    "TableData",
    "RequestMatch",
    "MockResponse",
    "MockEndpoint",
    "TestSettings",
    "ExpectedResponse",
    "TestScenario",
    "ScenarioExport",
    "ScenarioGroup",
    "utc_now_iso",
    # Results
    "ApplyScenarioResult",
    "SeedResult",
    "MockRequest",
    "ResolvedMockResponse",
]
