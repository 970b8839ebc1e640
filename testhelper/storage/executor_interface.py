"""Abstract table executor interface."""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Sequence


class TableExecutor(ABC):
    """Capability that materializes tables and rows in a target database."""

    @abstractmethod
    async def create_table(self, ddl: str) -> None:
        """
        Execute a CREATE TABLE (or other DDL) statement.

        Args:
            ddl: Raw DDL statement
        """
        pass

    @abstractmethod
    async def truncate(self, table_name: str) -> None:
        """
        Remove every row from a table.

        Args:
            table_name: Table to empty
        """
        pass

    @abstractmethod
    async def insert_rows(self, table_name: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """
        Insert rows into a table, in order.

        Args:
            table_name: Target table
            rows: Field-maps, one per row

        Returns:
            Number of rows inserted
        """
        pass

    async def execute_ddls(self, ddls: Sequence[str]) -> None:
        """Execute several DDL statements in one transaction, in order."""
        raise NotImplementedError

    async def check_connection(self) -> bool:
        """Return True when the target database is reachable."""
        return True

    async def list_tables(self) -> List[Dict[str, Any]]:
        """List tables in the target database."""
        raise NotImplementedError

    async def get_table_columns(self, table_name: str) -> List[Dict[str, Any]]:
        """Describe the columns of a table."""
        raise NotImplementedError

    async def drop_table(self, table_name: str) -> None:
        """Drop a table if it exists."""
        raise NotImplementedError
