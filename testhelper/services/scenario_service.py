"""Scenario service for managing, exporting, and applying test scenarios."""
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from testhelper.models.enums import ImportMode
from testhelper.models.scenario import ScenarioExport, ScenarioGroup, TestScenario, utc_now_iso
from testhelper.exceptions import GroupNotFoundError, ScenarioNotFoundError, ScenarioValidationError
from testhelper.storage.scenario_repository import ScenarioRepository
from testhelper.storage.executor_interface import TableExecutor
from testhelper.mock_services.activation import ScenarioActivationManager
from testhelper.orchestrator.scenario_applier import ScenarioApplier
from testhelper.services.scenario_validator import (
    ScenarioValidator,
    get_scenario_validator,
    new_entity_id,
    to_wire_keys,
)
from testhelper.config.settings import get_settings
from testhelper.config.logging_config import get_logger

logger = get_logger(__name__)

# Fields a partial update may not change
_IMMUTABLE_FIELDS = ("id", "createdAt", "updatedAt")


class ScenarioService:
    """
    Service for test scenario lifecycle.
    Provides CRUD, tag search, export/import, groups, and apply/deactivate.
    """

    def __init__(
        self,
        session: AsyncSession,
        executor: TableExecutor,
        activations: ScenarioActivationManager,
        validator: Optional[ScenarioValidator] = None,
    ):
        """
        Initialize scenario service.

        Args:
            session: SQLAlchemy async session for scenario storage
            executor: Table executor for the target database
            activations: Registry of activated mock sets
            validator: Scenario validator (defaults to the shared one)
        """
        self.session = session
        self.repository = ScenarioRepository(session)
        self.executor = executor
        self.activations = activations
        self.validator = validator or get_scenario_validator()

    async def list_scenarios(self) -> List[Dict[str, Any]]:
        """List all scenarios, newest first."""
        return [model.to_dict() for model in await self.repository.get_all()]

    async def get_scenario(self, scenario_id: str) -> Dict[str, Any]:
        """
        Get a scenario.

        Raises:
            ScenarioNotFoundError: No scenario with this id
        """
        model = await self.repository.get_by_id(scenario_id)
        if not model:
            raise ScenarioNotFoundError(scenario_id)
        return model.to_dict()

    async def create_scenario(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate and store a new scenario under a fresh id.

        Args:
            data: Scenario fields in wire format (id and timestamps are ignored)

        Returns:
            Stored scenario
        """
        scenario = self.validator.validate_create(data)
        scenario = await self._attach_group(scenario)
        model = await self.repository.save(scenario.to_dict())
        logger.info("Scenario created", scenario_id=scenario.id, name=scenario.name)
        return model.to_dict()

    async def update_scenario(self, scenario_id: str, updates: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Merge updates into a stored scenario and revalidate the result.

        Args:
            scenario_id: Scenario to update
            updates: Top-level fields to replace, camelCase or snake_case

        Returns:
            Updated scenario

        Raises:
            ScenarioValidationError: An update key is not a scenario field
        """
        wire_updates = to_wire_keys(updates, TestScenario)
        current = await self.get_scenario(scenario_id)
        merged = dict(current)
        merged.update({key: value for key, value in wire_updates.items() if key not in _IMMUTABLE_FIELDS})
        merged["updatedAt"] = utc_now_iso()

        scenario = self.validator.validate_scenario(merged)
        scenario = await self._attach_group(scenario)
        model = await self.repository.save(scenario.to_dict())
        logger.info("Scenario updated", scenario_id=scenario_id, fields=sorted(updates.keys()))
        return model.to_dict()

    async def delete_scenario(self, scenario_id: str) -> None:
        """
        Delete a scenario and drop its activated mocks.

        Raises:
            ScenarioNotFoundError: No scenario with this id
        """
        if not await self.repository.delete(scenario_id):
            raise ScenarioNotFoundError(scenario_id)
        self.activations.deactivate(scenario_id)

    async def search_by_tags(self, tags: List[str]) -> List[Dict[str, Any]]:
        """Scenarios carrying any of the given tags."""
        wanted = [tag.strip() for tag in tags if tag and tag.strip()]
        if not wanted:
            return []
        return [model.to_dict() for model in await self.repository.search_by_tags(wanted)]

    async def export_scenario(self, scenario_id: str) -> Dict[str, Any]:
        """Wrap a scenario as ``{version, exportedAt, scenario}``."""
        scenario = await self.get_scenario(scenario_id)
        return self._export(scenario)

    async def export_all(self) -> List[Dict[str, Any]]:
        """Export every stored scenario."""
        return [self._export(scenario) for scenario in await self.list_scenarios()]

    async def import_scenarios(self, data: Any, mode: ImportMode = ImportMode.RESTORE) -> List[Dict[str, Any]]:
        """
        Import one export wrapper or a list of them.

        All wrappers are validated before anything is stored.

        Args:
            data: Export wrapper or list of export wrappers
            mode: ``restore`` keeps ids and timestamps, ``create`` assigns fresh ones

        Returns:
            Stored scenarios, in input order

        Raises:
            ScenarioValidationError: Any wrapper is invalid (errors prefixed by index for lists)
        """
        items = data if isinstance(data, list) else [data]
        exports: List[ScenarioExport] = []
        errors: List[Dict[str, Any]] = []
        for index, item in enumerate(items):
            try:
                exports.append(self.validator.validate_export(item))
            except ScenarioValidationError as e:
                if not isinstance(data, list):
                    raise
                for error in e.errors:
                    errors.append({**error, "field": f"{index}.{error['field']}".rstrip(".")})
        if errors:
            raise ScenarioValidationError(errors)

        imported = []
        for export in exports:
            scenario = export.scenario
            if mode == ImportMode.CREATE:
                now = utc_now_iso()
                scenario = scenario.model_copy(update={
                    "id": new_entity_id("scenario"),
                    "created_at": now,
                    "updated_at": now,
                })
            model = await self.repository.save(scenario.to_dict())
            imported.append(model.to_dict())

        logger.info("Scenarios imported", count=len(imported), mode=mode.value)
        return imported

    async def apply_scenario(self, scenario_id: str) -> Dict[str, Any]:
        """
        Apply a stored scenario to the target database and mock registry.

        Returns:
            ``{tablesCreated, dataInserted, mocksConfigured}``
        """
        scenario = await self.get_scenario(scenario_id)
        applier = ScenarioApplier(self.executor, self.activations, validator=self.validator)
        result = await applier.apply(scenario)
        return result.to_dict()

    async def deactivate_scenario(self, scenario_id: str) -> bool:
        """
        Remove a stored scenario's mocks from the registry.

        Returns:
            True if the scenario had active mocks
        """
        await self.get_scenario(scenario_id)
        return self.activations.deactivate(scenario_id)

    # Groups

    async def list_groups(self) -> List[Dict[str, Any]]:
        """List all groups with member counts."""
        groups = []
        for group in await self.repository.get_all_groups():
            data = group.to_dict()
            data["scenarioCount"] = len(await self.repository.get_all(group_id=group.id))
            groups.append(data)
        return groups

    async def create_group(self, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        """Create a scenario group."""
        group = ScenarioGroup(id=new_entity_id("group"), name=name, description=description)
        model = await self.repository.create_group(group.to_dict())
        return model.to_dict()

    async def update_group(
        self,
        group_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Rename or redescribe a group; member scenarios pick up the new name.

        Raises:
            GroupNotFoundError: No group with this id
        """
        updates: Dict[str, Any] = {"updated_at": utc_now_iso()}
        if name is not None:
            updates["name"] = name
        if description is not None:
            updates["description"] = description

        model = await self.repository.update_group(group_id, updates)
        if not model:
            raise GroupNotFoundError(group_id)

        if name is not None:
            for member in await self.repository.get_all(group_id=group_id):
                payload = dict(member.payload)
                payload["groupName"] = name
                await self.repository.save(payload)
        return model.to_dict()

    async def delete_group(self, group_id: str) -> int:
        """
        Delete a group; its scenarios remain but lose their group.

        Returns:
            Number of scenarios detached

        Raises:
            GroupNotFoundError: No group with this id
        """
        if not await self.repository.get_group(group_id):
            raise GroupNotFoundError(group_id)
        return await self.repository.delete_group(group_id)

    async def list_group_scenarios(self, group_id: str) -> List[Dict[str, Any]]:
        """Scenarios in a group."""
        if not await self.repository.get_group(group_id):
            raise GroupNotFoundError(group_id)
        return [model.to_dict() for model in await self.repository.get_all(group_id=group_id)]

    async def _attach_group(self, scenario: TestScenario) -> TestScenario:
        if not scenario.group_id:
            return scenario.model_copy(update={"group_id": None, "group_name": None})
        group = await self.repository.get_group(scenario.group_id)
        if not group:
            raise GroupNotFoundError(scenario.group_id)
        return scenario.model_copy(update={"group_name": group.name})

    @staticmethod
    def _export(scenario: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "version": get_settings().export_version,
            "exportedAt": utc_now_iso(),
            "scenario": scenario,
        }
