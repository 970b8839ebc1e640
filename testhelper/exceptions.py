"""Error taxonomy for scenario validation, ordering, and execution."""
from typing import Any, Dict, List, Optional, Sequence


class ScenarioError(Exception):
    """Base class for scenario orchestration errors."""
    pass


class ScenarioValidationError(ScenarioError):
    """
    Scenario failed schema or referential-integrity checks.

    Carries every violation found, not just the first one. Each error is a
    dict with ``field``, ``message`` and ``type`` keys.
    """

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors[:5])
        if len(errors) > 5:
            summary += f" (+{len(errors) - 5} more)"
        super().__init__(f"Scenario validation failed: {summary}")


class DependencyError(ScenarioError):
    """Table dependencies cannot be put into a total order."""
    pass


class CyclicDependencyError(DependencyError):
    """Table dependency graph contains a cycle."""

    def __init__(self, tables: Sequence[str]):
        self.tables = sorted(tables)
        super().__init__(
            f"Circular dependency detected among tables: {', '.join(self.tables)}"
        )


class UnknownDependencyError(DependencyError):
    """A table declares a dependency on a table that is not defined."""

    def __init__(self, table: str, dependency: str):
        self.table = table
        self.dependency = dependency
        super().__init__(f"Table '{table}' depends on unknown table '{dependency}'")


class ExecutionError(ScenarioError):
    """
    The table executor failed while creating, truncating, or seeding a table.

    ``partial`` holds the counts gathered before the failure
    (an ApplyScenarioResult), so callers can report how far the apply got.
    """

    def __init__(
        self,
        table_name: str,
        step: str,
        cause: Optional[BaseException] = None,
        partial: Optional[Any] = None,
    ):
        self.table_name = table_name
        self.step = step
        self.cause = cause
        self.partial = partial
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to {step} table '{table_name}'{detail}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a response-friendly dictionary."""
        return {
            "table": self.table_name,
            "step": self.step,
            "cause": str(self.cause) if self.cause is not None else None,
            "partial": self.partial.to_dict() if self.partial is not None else None,
        }


class ScenarioNotFoundError(ScenarioError):
    """Requested scenario does not exist."""

    def __init__(self, scenario_id: str):
        self.scenario_id = scenario_id
        super().__init__(f"Scenario not found: {scenario_id}")


class GroupNotFoundError(ScenarioError):
    """Requested scenario group does not exist."""

    def __init__(self, group_id: str):
        self.group_id = group_id
        super().__init__(f"Group not found: {group_id}")


class MockEndpointNotFoundError(ScenarioError):
    """Requested hand-managed mock endpoint does not exist."""

    def __init__(self, endpoint_id: str):
        self.endpoint_id = endpoint_id
        super().__init__(f"Mock endpoint not found: {endpoint_id}")


class DDLParseError(ScenarioError):
    """
    CREATE TABLE statement could not be parsed.

    When several statements are parsed together, ``errors`` holds one
    ``{ddl, error}`` entry per statement that failed.
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        self.errors = errors or []
        super().__init__(message)
