"""Mock server API routes: serve matched mocks, manage hand-made mocks, inspect the registry."""
import asyncio
import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, Request
from fastapi.responses import JSONResponse, Response

from testhelper.api.dependencies import get_activations, get_validator
from testhelper.exceptions import MockEndpointNotFoundError
from testhelper.models.scenario import MockEndpoint, utc_now_iso
from testhelper.models.results import MockRequest
from testhelper.mock_services.activation import ScenarioActivationManager
from testhelper.services.constant_resolver import supported_constants
from testhelper.services.scenario_validator import ScenarioValidator, new_entity_id, to_wire_keys
from testhelper.config.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/mock", tags=["Mock Server"])

SCENARIO_HEADER = "X-Scenario-ID"
_SERVED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH"]
_IMMUTABLE_FIELDS = ("id", "createdAt", "updatedAt")


async def _read_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


@router.get("/endpoints")
async def list_endpoints(
    scenario_id: Optional[str] = None,
    activations: ScenarioActivationManager = Depends(get_activations),
):
    """List mock endpoints of a scenario (defaults to the active one)."""
    endpoints = activations.list_endpoints(scenario_id)
    return {
        "activeScenarioId": activations.active_scenario_id,
        "endpoints": [endpoint.to_dict() for endpoint in endpoints],
        "total": len(endpoints),
    }


@router.post("/endpoints", status_code=201)
async def create_endpoint(
    data: Dict[str, Any] = Body(...),
    activations: ScenarioActivationManager = Depends(get_activations),
    validator: ScenarioValidator = Depends(get_validator),
):
    """
    Add a hand-managed mock endpoint.

    The endpoint joins the ``manual`` mock set, which becomes the active
    scenario. Id and timestamps are assigned here.
    """
    now = utc_now_iso()
    payload = {key: value for key, value in to_wire_keys(data, MockEndpoint).items() if key not in _IMMUTABLE_FIELDS}
    endpoint = validator.validate_mock_endpoint({
        **payload,
        "id": new_entity_id("mock"),
        "createdAt": now,
        "updatedAt": now,
    })
    return activations.create_endpoint(endpoint).to_dict()


@router.put("/endpoints/{endpoint_id}")
async def update_endpoint(
    endpoint_id: str,
    updates: Dict[str, Any] = Body(...),
    activations: ScenarioActivationManager = Depends(get_activations),
    validator: ScenarioValidator = Depends(get_validator),
):
    """Merge fields into a hand-managed mock endpoint."""
    wire_updates = to_wire_keys(updates, MockEndpoint)
    existing = activations.get_endpoint(endpoint_id)
    if existing is None:
        raise MockEndpointNotFoundError(endpoint_id)

    merged = existing.to_dict()
    merged.update({key: value for key, value in wire_updates.items() if key not in _IMMUTABLE_FIELDS})
    merged["updatedAt"] = utc_now_iso()

    updated = activations.update_endpoint(validator.validate_mock_endpoint(merged))
    if updated is None:
        raise MockEndpointNotFoundError(endpoint_id)
    return updated.to_dict()


@router.delete("/endpoints/{endpoint_id}")
async def delete_endpoint(
    endpoint_id: str,
    activations: ScenarioActivationManager = Depends(get_activations),
):
    """Remove a hand-managed mock endpoint."""
    if not activations.delete_endpoint(endpoint_id):
        raise MockEndpointNotFoundError(endpoint_id)
    return {"message": "Mock endpoint deleted", "id": endpoint_id}


@router.delete("/endpoints")
async def delete_all_endpoints(activations: ScenarioActivationManager = Depends(get_activations)):
    """Remove every hand-managed mock endpoint."""
    removed = activations.delete_all_endpoints()
    return {"message": "All mock endpoints deleted", "removed": removed}


@router.get("/export")
async def export_endpoints(activations: ScenarioActivationManager = Depends(get_activations)):
    """Hand-managed mock endpoints in a form ``/mock/import`` accepts."""
    endpoints = activations.manual_endpoints()
    return {
        "endpoints": [endpoint.to_dict() for endpoint in endpoints],
        "total": len(endpoints),
        "exportedAt": utc_now_iso(),
    }


@router.post("/import")
async def import_endpoints(
    data: Any = Body(...),
    activations: ScenarioActivationManager = Depends(get_activations),
    validator: ScenarioValidator = Depends(get_validator),
):
    """
    Replace the hand-managed mock set with an exported endpoint array.

    Ids and timestamps are kept. Nothing changes unless every endpoint is valid.
    """
    if not isinstance(data, list):
        return JSONResponse(status_code=400, content={"error": "Request body must be an array of mock endpoints"})
    count = activations.import_endpoints(validator.validate_mock_endpoints(data))
    return {"message": f"{count} mock endpoints imported", "count": count}


@router.get("/status")
async def registry_status(activations: ScenarioActivationManager = Depends(get_activations)):
    """Activated scenarios and their endpoint counts."""
    return activations.status()


@router.get("/constants")
async def list_constants():
    """Dynamic constant tokens available in rows, mock bodies, and headers."""
    return {"constants": supported_constants()}


@router.api_route("/serve/{path:path}", methods=_SERVED_METHODS)
async def serve_mock(
    path: str,
    request: Request,
    x_scenario_id: Optional[str] = Header(default=None, alias=SCENARIO_HEADER),
    activations: ScenarioActivationManager = Depends(get_activations),
):
    """
    Answer a request from the registered mocks.

    The scenario is taken from the ``X-Scenario-ID`` header, falling back to
    the most recently activated scenario. Unmatched requests get a 404 that
    echoes what was received.
    """
    mock_request = MockRequest(
        method=request.method,
        path="/" + path.lstrip("/"),
        query=dict(request.query_params),
        headers=dict(request.headers),
        body=await _read_body(request),
    )

    resolved = activations.match(mock_request, scenario_id=x_scenario_id)
    if resolved is None:
        logger.info("No mock matched", method=mock_request.method, path=mock_request.path)
        return JSONResponse(
            status_code=404,
            content={
                "error": "No matching mock endpoint",
                "request": {
                    "method": mock_request.method,
                    "path": mock_request.path,
                    "query": mock_request.query,
                    "body": mock_request.body,
                },
            },
        )

    if resolved.delay:
        await asyncio.sleep(resolved.delay / 1000)

    logger.info("Mock served", endpoint_id=resolved.endpoint_id, status=resolved.status)
    if resolved.body is None:
        return Response(status_code=resolved.status, headers=resolved.headers)
    return JSONResponse(content=resolved.body, status_code=resolved.status, headers=resolved.headers)
