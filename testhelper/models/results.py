"""Result and request descriptors passed between the orchestration components."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ApplyScenarioResult:
    """Counters describing one apply run."""
    tables_created: int = 0
    data_inserted: int = 0
    mocks_configured: int = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert to the camelCase JSON shape."""
        return {
            "tablesCreated": self.tables_created,
            "dataInserted": self.data_inserted,
            "mocksConfigured": self.mocks_configured,
        }


@dataclass
class SeedResult:
    """Counters returned by the table seeder."""
    tables_created: int = 0
    rows_inserted: int = 0


@dataclass(frozen=True)
class MockRequest:
    """Inbound request to be matched against the registered mocks."""
    method: str
    path: str
    query: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None


@dataclass
class ResolvedMockResponse:
    """
    Response descriptor produced by a successful match.

    ``delay`` is advisory: the caller waits that many milliseconds before
    answering; the match engine itself never blocks.
    """
    endpoint_id: str
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    delay: Optional[int] = None
    path_params: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "endpointId": self.endpoint_id,
            "status": self.status,
            "headers": self.headers,
            "body": self.body,
            "delay": self.delay,
            "pathParams": self.path_params,
        }
