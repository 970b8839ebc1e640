"""Creates scenario tables and seeds their rows through a table executor."""
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from testhelper.models.scenario import DDLTable, TableData
from testhelper.models.results import ApplyScenarioResult, SeedResult
from testhelper.models.enums import SeedStep
from testhelper.services.constant_resolver import ConstantResolver, get_constant_resolver
from testhelper.storage.executor_interface import TableExecutor
from testhelper.exceptions import ExecutionError
from testhelper.config.logging_config import get_logger

logger = get_logger(__name__)


def group_table_data(table_data: Iterable[TableData]) -> Dict[str, List[TableData]]:
    """Group seed entries by table name, keeping scenario order within each table."""
    grouped: Dict[str, List[TableData]] = {}
    for entry in table_data:
        grouped.setdefault(entry.table_name, []).append(entry)
    return grouped


class TableSeeder:
    """
    Materializes ordered tables one at a time: create, optional truncate, insert.

    A table's data is seeded right after its own creation and before the next
    table is touched. The first executor failure stops the sequence; nothing is
    retried or rolled back here.
    """

    def __init__(self, resolver: Optional[ConstantResolver] = None):
        self.resolver = resolver or get_constant_resolver()

    async def seed(
        self,
        ordered_tables: Sequence[DDLTable],
        table_data_by_name: Mapping[str, Sequence[TableData]],
        executor: TableExecutor,
    ) -> SeedResult:
        """
        Create each table in order and seed any rows associated with it.

        Args:
            ordered_tables: Tables in dependency order
            table_data_by_name: Seed entries keyed by table name
            executor: Capability that runs DDL, truncates, and inserts

        Returns:
            Tables created and rows inserted

        Raises:
            ExecutionError: An executor call failed; carries table, step and
                the counts gathered so far
        """
        result = SeedResult()

        for table in ordered_tables:
            await self._run(table.name, SeedStep.CREATE, result, executor.create_table, table.ddl)
            result.tables_created += 1

            entries = table_data_by_name.get(table.name, ())
            # One truncate per table, ahead of every entry's inserts
            if any(entry.truncate_before for entry in entries):
                await self._run(table.name, SeedStep.TRUNCATE, result, executor.truncate, table.name)

            for entry in entries:
                if not entry.rows:
                    continue

                # Each row resolved on its own so generated values are per row
                rows = [self.resolver.resolve(row) for row in entry.rows]
                inserted = await self._run(
                    table.name, SeedStep.INSERT, result, executor.insert_rows, table.name, rows
                )
                result.rows_inserted += inserted if isinstance(inserted, int) else len(rows)

            logger.debug("Table materialized", table=table.name, rows_total=result.rows_inserted)

        logger.info(
            "Tables seeded",
            tables_created=result.tables_created,
            rows_inserted=result.rows_inserted,
        )
        return result

    async def _run(self, table_name: str, step: SeedStep, progress: SeedResult, operation, *args):
        try:
            return await operation(*args)
        except ExecutionError as e:
            raise ExecutionError(
                table_name, step.value, e.cause or e, partial=self._partial(progress)
            ) from e
        except Exception as e:
            logger.error(
                "Table executor failed",
                table=table_name,
                step=step.value,
                error=str(e),
            )
            raise ExecutionError(table_name, step.value, e, partial=self._partial(progress)) from e

    @staticmethod
    def _partial(progress: SeedResult) -> ApplyScenarioResult:
        return ApplyScenarioResult(
            tables_created=progress.tables_created,
            data_inserted=progress.rows_inserted,
            mocks_configured=0,
        )
