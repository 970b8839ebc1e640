"""Scenario management API routes."""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query

from testhelper.api.dependencies import get_scenario_service
from testhelper.api.requests import CreateGroupRequest, UpdateGroupRequest
from testhelper.api.responses import ApplyScenarioResponse, ErrorResponse, ImportResponse, ScenarioListResponse
from testhelper.models.enums import ImportMode
from testhelper.services.scenario_service import ScenarioService

router = APIRouter(
    prefix="/scenarios",
    tags=["Scenarios"],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


@router.get("", response_model=ScenarioListResponse)
async def list_scenarios(service: ScenarioService = Depends(get_scenario_service)):
    """List all scenarios, newest first."""
    scenarios = await service.list_scenarios()
    return ScenarioListResponse(scenarios=scenarios, total=len(scenarios))


@router.post("", status_code=201)
async def create_scenario(
    data: Dict[str, Any] = Body(...),
    service: ScenarioService = Depends(get_scenario_service),
):
    """
    Create a scenario.

    Args:
        data: Scenario in camelCase wire format; id and timestamps are assigned
        service: Injected scenario service

    Returns:
        Stored scenario
    """
    return await service.create_scenario(data)


@router.get("/search", response_model=ScenarioListResponse)
async def search_scenarios(
    tags: str = Query(..., description="Comma-separated tags; any match qualifies"),
    service: ScenarioService = Depends(get_scenario_service),
):
    """Search scenarios by tag."""
    scenarios = await service.search_by_tags(tags.split(","))
    return ScenarioListResponse(scenarios=scenarios, total=len(scenarios))


@router.get("/export/all")
async def export_all_scenarios(service: ScenarioService = Depends(get_scenario_service)):
    """Export every scenario as a list of export wrappers."""
    return await service.export_all()


@router.post("/import", response_model=ImportResponse, status_code=201)
async def import_scenarios(
    data: Any = Body(...),
    mode: ImportMode = Query(ImportMode.RESTORE, description="restore keeps ids, create assigns new ones"),
    service: ScenarioService = Depends(get_scenario_service),
):
    """Import one export wrapper or a list of them."""
    scenarios = await service.import_scenarios(data, mode=mode)
    return ImportResponse(imported=len(scenarios), scenarios=scenarios)


# Groups

@router.get("/groups")
async def list_groups(service: ScenarioService = Depends(get_scenario_service)):
    """List scenario groups with member counts."""
    return {"groups": await service.list_groups()}


@router.post("/groups", status_code=201)
async def create_group(
    request: CreateGroupRequest,
    service: ScenarioService = Depends(get_scenario_service),
):
    """Create a scenario group."""
    return await service.create_group(request.name, request.description)


@router.put("/groups/{group_id}")
async def update_group(
    group_id: str,
    request: UpdateGroupRequest,
    service: ScenarioService = Depends(get_scenario_service),
):
    """Update a scenario group."""
    return await service.update_group(group_id, name=request.name, description=request.description)


@router.delete("/groups/{group_id}")
async def delete_group(group_id: str, service: ScenarioService = Depends(get_scenario_service)):
    """Delete a group; member scenarios are kept and lose their group."""
    detached = await service.delete_group(group_id)
    return {"success": True, "groupId": group_id, "scenariosDetached": detached}


@router.get("/groups/{group_id}/scenarios", response_model=ScenarioListResponse)
async def list_group_scenarios(group_id: str, service: ScenarioService = Depends(get_scenario_service)):
    """List the scenarios in a group."""
    scenarios = await service.list_group_scenarios(group_id)
    return ScenarioListResponse(scenarios=scenarios, total=len(scenarios))


# Single scenario

@router.get("/{scenario_id}")
async def get_scenario(scenario_id: str, service: ScenarioService = Depends(get_scenario_service)):
    """Get a scenario."""
    return await service.get_scenario(scenario_id)


@router.put("/{scenario_id}")
async def update_scenario(
    scenario_id: str,
    updates: Dict[str, Any] = Body(...),
    service: ScenarioService = Depends(get_scenario_service),
):
    """Merge top-level fields into a scenario and revalidate it."""
    return await service.update_scenario(scenario_id, updates)


@router.delete("/{scenario_id}")
async def delete_scenario(scenario_id: str, service: ScenarioService = Depends(get_scenario_service)):
    """Delete a scenario."""
    await service.delete_scenario(scenario_id)
    return {"success": True, "id": scenario_id}


@router.get("/{scenario_id}/export")
async def export_scenario(scenario_id: str, service: ScenarioService = Depends(get_scenario_service)):
    """Export a scenario as ``{version, exportedAt, scenario}``."""
    return await service.export_scenario(scenario_id)


@router.post("/{scenario_id}/apply", response_model=ApplyScenarioResponse)
async def apply_scenario(scenario_id: str, service: ScenarioService = Depends(get_scenario_service)):
    """
    Apply a scenario: create and seed its tables, then activate its mocks.

    Validation and dependency errors are reported before anything is executed.
    """
    result = await service.apply_scenario(scenario_id)
    return ApplyScenarioResponse.from_result(scenario_id, result)


@router.post("/{scenario_id}/deactivate")
async def deactivate_scenario(scenario_id: str, service: ScenarioService = Depends(get_scenario_service)):
    """Remove a scenario's mocks from the registry."""
    was_active = await service.deactivate_scenario(scenario_id)
    return {"success": True, "scenarioId": scenario_id, "wasActive": was_active}
