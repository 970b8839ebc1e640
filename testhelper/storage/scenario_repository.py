"""Repository for scenario and group CRUD operations."""
from typing import List, Optional, Dict, Any

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from testhelper.storage.models import ScenarioModel, ScenarioGroupModel
from testhelper.config.logging_config import get_logger

logger = get_logger(__name__)


class ScenarioRepository:
    """Repository for scenario documents and scenario groups."""

    def __init__(self, session: AsyncSession):
        """
        Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def save(self, scenario: Dict[str, Any]) -> ScenarioModel:
        """
        Insert or replace a scenario document.

        Args:
            scenario: Scenario in camelCase wire format

        Returns:
            Stored scenario model
        """
        model = await self.get_by_id(scenario["id"])
        if model is None:
            model = ScenarioModel(id=scenario["id"])
            self.session.add(model)

        model.name = scenario["name"]
        model.group_id = scenario.get("groupId")
        model.tags = list(scenario.get("tags") or [])
        model.created_at = scenario["createdAt"]
        model.updated_at = scenario["updatedAt"]
        model.payload = scenario

        await self.session.flush()
        logger.info("Scenario saved", scenario_id=model.id)
        return model

    async def get_by_id(self, scenario_id: str) -> Optional[ScenarioModel]:
        """
        Get a scenario by ID.

        Args:
            scenario_id: Scenario ID

        Returns:
            Scenario model or None
        """
        result = await self.session.execute(
            select(ScenarioModel).where(ScenarioModel.id == scenario_id)
        )
        return result.scalar_one_or_none()

    async def get_all(self, group_id: Optional[str] = None) -> List[ScenarioModel]:
        """
        Get all scenarios, newest first.

        Args:
            group_id: Restrict to members of this group

        Returns:
            List of scenario models
        """
        query = select(ScenarioModel)
        if group_id:
            query = query.where(ScenarioModel.group_id == group_id)
        query = query.order_by(ScenarioModel.created_at.desc(), ScenarioModel.id)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete(self, scenario_id: str) -> bool:
        """
        Delete a scenario.

        Returns:
            True if a row was removed
        """
        result = await self.session.execute(
            delete(ScenarioModel).where(ScenarioModel.id == scenario_id)
        )
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Scenario deleted", scenario_id=scenario_id)
        return deleted

    async def search_by_tags(self, tags: List[str]) -> List[ScenarioModel]:
        """
        Scenarios carrying at least one of the given tags.

        Tags are stored as JSON, so filtering happens after load.
        """
        wanted = set(tags)
        return [model for model in await self.get_all() if wanted.intersection(model.tags or [])]

    # Groups

    async def create_group(self, group: Dict[str, Any]) -> ScenarioGroupModel:
        """Persist a new scenario group."""
        model = ScenarioGroupModel(
            id=group["id"],
            name=group["name"],
            description=group.get("description"),
            created_at=group["createdAt"],
            updated_at=group["updatedAt"],
        )
        self.session.add(model)
        await self.session.flush()
        logger.info("Scenario group created", group_id=model.id)
        return model

    async def get_group(self, group_id: str) -> Optional[ScenarioGroupModel]:
        """Get a group by ID."""
        result = await self.session.execute(
            select(ScenarioGroupModel).where(ScenarioGroupModel.id == group_id)
        )
        return result.scalar_one_or_none()

    async def get_all_groups(self) -> List[ScenarioGroupModel]:
        """Get all groups ordered by name."""
        result = await self.session.execute(
            select(ScenarioGroupModel).order_by(ScenarioGroupModel.name, ScenarioGroupModel.id)
        )
        return list(result.scalars().all())

    async def update_group(self, group_id: str, updates: Dict[str, Any]) -> Optional[ScenarioGroupModel]:
        """
        Update group fields.

        Args:
            group_id: Group ID
            updates: Column names mapped to new values

        Returns:
            Updated group or None if it does not exist
        """
        group = await self.get_group(group_id)
        if not group:
            return None

        for key, value in updates.items():
            if hasattr(group, key):
                setattr(group, key, value)

        await self.session.flush()
        logger.info("Scenario group updated", group_id=group_id)
        return group

    async def delete_group(self, group_id: str) -> int:
        """
        Delete a group and detach its member scenarios.

        Returns:
            Number of scenarios detached from the group
        """
        members = await self.get_all(group_id=group_id)
        for model in members:
            payload = dict(model.payload)
            payload["groupId"] = None
            payload["groupName"] = None
            model.payload = payload
            model.group_id = None

        await self.session.execute(
            delete(ScenarioGroupModel).where(ScenarioGroupModel.id == group_id)
        )
        await self.session.flush()

        logger.info("Scenario group deleted", group_id=group_id, detached=len(members))
        return len(members)
