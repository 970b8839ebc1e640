"""Target database utility API routes."""
from fastapi import APIRouter, Depends, HTTPException

from testhelper.api.dependencies import get_executor, get_resolver
from testhelper.api.requests import ExecuteDDLRequest, ExecuteDDLsRequest, InsertDataRequest
from testhelper.services.constant_resolver import ConstantResolver
from testhelper.storage.executor_interface import TableExecutor
from testhelper.config.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/database", tags=["Database"])


@router.get("/health")
async def database_health(executor: TableExecutor = Depends(get_executor)):
    """Report whether the target database is reachable."""
    connected = await executor.check_connection()
    return {"status": "healthy" if connected else "unhealthy", "connected": connected}


@router.get("/tables")
async def list_tables(executor: TableExecutor = Depends(get_executor)):
    """List tables in the target database."""
    tables = await executor.list_tables()
    return {"tables": tables, "total": len(tables)}


@router.get("/tables/{table_name}/columns")
async def get_table_columns(table_name: str, executor: TableExecutor = Depends(get_executor)):
    """Describe a table's columns."""
    columns = await executor.get_table_columns(table_name)
    if not columns:
        raise HTTPException(status_code=404, detail=f"Table not found: {table_name}")
    return {"tableName": table_name, "columns": columns}


@router.post("/execute-ddl")
async def execute_ddl(request: ExecuteDDLRequest, executor: TableExecutor = Depends(get_executor)):
    """Run a DDL statement against the target database."""
    try:
        await executor.create_table(request.ddl)
    except Exception as e:
        logger.warning("DDL execution failed", error=str(e))
        raise HTTPException(status_code=400, detail=f"DDL execution failed: {e}")
    return {"success": True}


@router.post("/execute-ddls")
async def execute_ddls(request: ExecuteDDLsRequest, executor: TableExecutor = Depends(get_executor)):
    """Run several DDL statements in order inside one transaction."""
    try:
        await executor.execute_ddls(request.ddls)
    except Exception as e:
        logger.warning("DDL batch failed", count=len(request.ddls), error=str(e))
        raise HTTPException(status_code=400, detail=f"DDL execution failed: {e}")
    return {"success": True, "executed": len(request.ddls)}


@router.post("/insert-data")
async def insert_data(
    request: InsertDataRequest,
    executor: TableExecutor = Depends(get_executor),
    resolver: ConstantResolver = Depends(get_resolver),
):
    """Insert rows, optionally truncating first and resolving constants per row."""
    rows = [resolver.resolve(row) for row in request.rows] if request.resolve_constants else request.rows
    try:
        if request.truncate_before:
            await executor.truncate(request.table_name)
        inserted = await executor.insert_rows(request.table_name, rows)
    except Exception as e:
        logger.warning("Insert failed", table=request.table_name, error=str(e))
        raise HTTPException(status_code=400, detail=f"Insert into {request.table_name} failed: {e}")
    return {"success": True, "tableName": request.table_name, "rowsInserted": inserted}


@router.delete("/tables/{table_name}/truncate")
async def truncate_table(table_name: str, executor: TableExecutor = Depends(get_executor)):
    """Remove every row from a table."""
    try:
        await executor.truncate(table_name)
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Truncate of {table_name} failed: {e}")
    return {"success": True, "tableName": table_name}


@router.delete("/tables/{table_name}")
async def drop_table(table_name: str, executor: TableExecutor = Depends(get_executor)):
    """Drop a table if it exists."""
    await executor.drop_table(table_name)
    return {"success": True, "tableName": table_name}
