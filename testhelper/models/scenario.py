"""Scenario models (wire format is camelCase JSON)."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import ApiMethod, HttpMethod


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CamelModel(BaseModel):
    """Base model accepting both camelCase and snake_case field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase JSON shape."""
        return self.model_dump(by_alias=True, mode="json")


class ApiTestConfig(CamelModel):
    """Target API call exercised by a scenario."""
    id: Optional[str] = None
    name: Optional[str] = None
    method: ApiMethod
    url: str
    headers: Optional[Dict[str, str]] = None
    body: Any = None
    timeout: Optional[float] = Field(default=None, gt=0, description="Timeout in milliseconds")

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("must be an absolute http(s) URL")
        return value


class DDLTable(CamelModel):
    """Table definition: raw DDL plus sequencing metadata."""
    name: str = Field(..., min_length=1)
    ddl: str = Field(..., min_length=1)
    dependencies: List[str] = Field(default_factory=list)
    order: int = Field(default=0, ge=0)


class TableData(CamelModel):
    """Seed rows for one table."""
    table_name: str = Field(..., min_length=1)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    truncate_before: bool = False
    # Pass-through metadata for scenario authors; not interpreted when seeding
    read_only: Optional[bool] = None
    encrypted_columns: Optional[List[str]] = None


class RequestMatch(CamelModel):
    """Subset-match criteria for a mock endpoint. Unset fields match anything."""
    query: Optional[Dict[str, str]] = None
    body: Any = None
    headers: Optional[Dict[str, str]] = None

    def constraint_count(self) -> int:
        """Number of individual constraints, used to rank equally prioritized mocks."""
        count = len(self.query or {}) + len(self.headers or {})
        if self.body is not None:
            count += 1
        return count


class MockResponse(CamelModel):
    """Canned response returned by a mock endpoint."""
    status: int = 200
    headers: Optional[Dict[str, str]] = None
    body: Any = None
    delay: Optional[int] = Field(default=None, ge=0, description="Delay in milliseconds")


class MockEndpoint(CamelModel):
    """Declarative rule mapping a request pattern to a canned response."""
    id: str
    name: Optional[str] = None
    enabled: bool = True
    priority: int = Field(default=0, ge=0)
    method: HttpMethod
    path: str
    request_match: Optional[RequestMatch] = None
    response: MockResponse
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


class TestSettings(CamelModel):
    """Per-scenario overrides used when running the target API call."""
    headers: Optional[Dict[str, str]] = None
    body: Optional[str] = None


class ExpectedResponse(CamelModel):
    """Expected outcome of the target API call."""
    status: Optional[int] = None
    body: Any = None
    headers: Optional[Dict[str, str]] = None


class TestScenario(CamelModel):
    """A named bundle of target API call, tables, seed data, and mocks."""
    __test__ = False  # keep pytest from collecting this class

    id: str
    group_id: Optional[str] = None
    group_name: Optional[str] = None
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    target_api: ApiTestConfig
    tables: List[DDLTable] = Field(default_factory=list)
    table_data: List[TableData] = Field(default_factory=list)
    mock_apis: List[MockEndpoint] = Field(default_factory=list)
    test_settings: Optional[TestSettings] = None
    expected_response: Optional[ExpectedResponse] = None
    tags: List[str] = Field(default_factory=list)
    created_at: str
    updated_at: str


class ScenarioExport(CamelModel):
    """Export wrapper around a single scenario."""
    version: str
    exported_at: str
    scenario: TestScenario


class ScenarioGroup(CamelModel):
    """Named grouping of scenarios."""
    id: str
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)
