"""Topological ordering of scenario tables by declared dependencies."""
import heapq
from typing import Dict, Iterable, List, Set, Tuple

from testhelper.models.scenario import DDLTable
from testhelper.exceptions import CyclicDependencyError, UnknownDependencyError
from testhelper.config.logging_config import get_logger

logger = get_logger(__name__)


class DependencyOrderer:
    """
    Orders DDL tables so every table follows the tables it depends on.

    Kahn's algorithm over the dependency graph (edge dependency -> dependent).
    Among tables whose dependencies are all placed, the one with the lowest
    ``order`` goes first, then by name, so the output is fully deterministic.
    """

    def order(self, tables: Iterable[DDLTable]) -> List[DDLTable]:
        """
        Produce a dependency-respecting sequence of tables.

        Args:
            tables: Table definitions (names must be unique)

        Returns:
            Tables in creation order

        Raises:
            UnknownDependencyError: A dependency names a table not in the set
            CyclicDependencyError: The dependency graph has a cycle
        """
        by_name: Dict[str, DDLTable] = {}
        for table in tables:
            if table.name in by_name:
                raise ValueError(f"Duplicate table name: {table.name}")
            by_name[table.name] = table

        dependents: Dict[str, Set[str]] = {name: set() for name in by_name}
        remaining: Dict[str, int] = {}

        for name, table in by_name.items():
            deps = set(table.dependencies)
            # Self-references (e.g. a parent_id FK) impose no creation order
            deps.discard(name)
            for dep in sorted(deps):
                if dep not in by_name:
                    raise UnknownDependencyError(name, dep)
                dependents[dep].add(name)
            remaining[name] = len(deps)

        ready: List[Tuple[int, str]] = [
            (by_name[name].order, name) for name, count in remaining.items() if count == 0
        ]
        heapq.heapify(ready)

        ordered: List[DDLTable] = []
        while ready:
            _, name = heapq.heappop(ready)
            ordered.append(by_name[name])
            for dependent in dependents[name]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(ready, (by_name[dependent].order, dependent))

        if len(ordered) != len(by_name):
            placed = {table.name for table in ordered}
            unplaced = [name for name in by_name if name not in placed]
            logger.warning("Circular table dependency", tables=sorted(unplaced))
            raise CyclicDependencyError(unplaced)

        logger.debug("Tables ordered", order=[table.name for table in ordered])
        return ordered
