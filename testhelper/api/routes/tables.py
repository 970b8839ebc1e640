"""DDL parsing API routes."""
from fastapi import APIRouter

from testhelper.api.requests import ParseDDLRequest, ParseMultipleDDLRequest
from testhelper.services.ddl_parser import DDLParser

router = APIRouter(prefix="/tables", tags=["Tables"])

_parser = DDLParser()


@router.post("/parse")
async def parse_table(request: ParseDDLRequest):
    """Extract name, columns, and foreign keys from a CREATE TABLE statement."""
    return _parser.parse(request.ddl).to_dict()


@router.post("/parse-multiple")
async def parse_tables(request: ParseMultipleDDLRequest):
    """
    Parse several CREATE TABLE statements into scenario tables.

    Tables come back in dependency order with ``dependencies`` and ``order``
    filled from their foreign keys. Every statement is parsed before any
    error is reported, so a 400 lists all failing statements at once.
    """
    return {"success": True, **_parser.parse_multiple(request.ddls)}
