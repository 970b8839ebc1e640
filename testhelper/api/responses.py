"""Response models for API endpoints."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from testhelper.models.scenario import CamelModel


class ScenarioListResponse(BaseModel):
    """List of scenarios."""
    scenarios: List[Dict[str, Any]]
    total: int


class ApplyScenarioResponse(CamelModel):
    """Outcome of applying a scenario."""
    success: bool = True
    scenario_id: str
    tables_created: int
    data_inserted: int
    mocks_configured: int

    @classmethod
    def from_result(cls, scenario_id: str, result: Dict[str, int]) -> "ApplyScenarioResponse":
        return cls(
            scenario_id=scenario_id,
            tables_created=result["tablesCreated"],
            data_inserted=result["dataInserted"],
            mocks_configured=result["mocksConfigured"],
        )


class ImportResponse(BaseModel):
    """Outcome of an import."""
    imported: int
    scenarios: List[Dict[str, Any]]


class ProxyResponse(CamelModel):
    """Response captured from the API under test."""
    status: int
    status_text: str
    headers: Dict[str, str]
    body: Any = None
    duration: int = Field(..., description="Round-trip time in milliseconds")


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    details: Optional[Any] = None
