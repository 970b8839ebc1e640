"""Scenario application: dependency ordering, seeding, and orchestration."""
from .dependency_orderer import DependencyOrderer
from .table_seeder import TableSeeder, group_table_data
from .scenario_applier import ScenarioApplier

__all__ = [
    "DependencyOrderer",
    "TableSeeder",
    "group_table_data",
    "ScenarioApplier",
]
