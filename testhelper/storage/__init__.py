"""Persistence: scenario storage and the target-database table executor."""
from .models import Base, ScenarioModel, ScenarioGroupModel
from .database import init_db, dispose_db, get_session_factory
from .scenario_repository import ScenarioRepository
from .executor_interface import TableExecutor
from .table_executor import SqlTableExecutor, get_table_executor, dispose_table_executor

__all__ = [
    "Base",
    "ScenarioModel",
    "ScenarioGroupModel",
    "init_db",
    "dispose_db",
    "get_session_factory",
    "ScenarioRepository",
    "TableExecutor",
    "SqlTableExecutor",
    "get_table_executor",
    "dispose_table_executor",
]
