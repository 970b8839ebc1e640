"""Applies a scenario: validate, order tables, create and seed, register mocks."""
from typing import Any, Optional

from testhelper.models.results import ApplyScenarioResult
from testhelper.orchestrator.dependency_orderer import DependencyOrderer
from testhelper.orchestrator.table_seeder import TableSeeder, group_table_data
from testhelper.mock_services.activation import ScenarioActivationManager
from testhelper.services.scenario_validator import ScenarioValidator, get_scenario_validator
from testhelper.storage.executor_interface import TableExecutor
from testhelper.config.logging_config import get_logger

logger = get_logger(__name__)


class ScenarioApplier:
    """
    Orchestrates one apply run, strictly in sequence:

    1. validate shape and referential integrity (fail fast, nothing applied)
    2. order tables by dependency (cycles/unknown deps fail before any I/O)
    3. create and seed tables through the executor (stops at the first failure)
    4. register the scenario's mocks, replacing its previous set
    5. return the counts

    Mocks are only registered after every table step succeeded.
    """

    def __init__(
        self,
        executor: TableExecutor,
        activations: ScenarioActivationManager,
        validator: Optional[ScenarioValidator] = None,
        orderer: Optional[DependencyOrderer] = None,
        seeder: Optional[TableSeeder] = None,
    ):
        self.executor = executor
        self.activations = activations
        self.validator = validator or get_scenario_validator()
        self.orderer = orderer or DependencyOrderer()
        self.seeder = seeder or TableSeeder()

    async def apply(self, scenario: Any) -> ApplyScenarioResult:
        """
        Materialize a scenario's tables, data, and mocks.

        Args:
            scenario: TestScenario or its wire-format mapping

        Returns:
            Counts of tables created, rows inserted, and enabled mocks registered

        Raises:
            ScenarioValidationError: Scenario is malformed
            CyclicDependencyError: Tables depend on each other in a cycle
            UnknownDependencyError: A dependency names an undefined table
            ExecutionError: The executor failed; carries partial counts
        """
        validated = self.validator.validate_scenario(scenario)
        logger.info(
            "Applying scenario",
            scenario_id=validated.id,
            tables=len(validated.tables),
            mocks=len(validated.mock_apis),
        )

        ordered = self.orderer.order(validated.tables)

        seeded = await self.seeder.seed(
            ordered,
            group_table_data(validated.table_data),
            self.executor,
        )

        mocks_configured = self.activations.activate(validated.id, validated.mock_apis)

        result = ApplyScenarioResult(
            tables_created=seeded.tables_created,
            data_inserted=seeded.rows_inserted,
            mocks_configured=mocks_configured,
        )
        logger.info("Scenario applied", scenario_id=validated.id, **result.to_dict())
        return result
