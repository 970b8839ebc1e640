"""FastAPI dependencies for dependency injection."""
from typing import AsyncGenerator, Optional

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from testhelper.storage.database import get_session_factory
from testhelper.storage.executor_interface import TableExecutor
from testhelper.storage.table_executor import get_table_executor
from testhelper.services.scenario_service import ScenarioService
from testhelper.services.constant_resolver import ConstantResolver, get_constant_resolver
from testhelper.services.scenario_validator import ScenarioValidator, get_scenario_validator
from testhelper.mock_services.activation import ScenarioActivationManager, get_activation_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_executor() -> TableExecutor:
    """Get target-database executor dependency."""
    return get_table_executor()


def get_activations() -> ScenarioActivationManager:
    """Get mock activation registry dependency."""
    return get_activation_manager()


def get_resolver() -> ConstantResolver:
    """Get constant resolver dependency."""
    return get_constant_resolver()


def get_validator() -> ScenarioValidator:
    """Get scenario validator dependency."""
    return get_scenario_validator()


async def get_scenario_service(
    session: AsyncSession = Depends(get_db),
    executor: TableExecutor = Depends(get_executor),
    activations: ScenarioActivationManager = Depends(get_activations),
) -> ScenarioService:
    """Get scenario service dependency."""
    return ScenarioService(session, executor, activations)


def get_proxy_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for outbound proxy calls; None uses httpx's default."""
    return None
