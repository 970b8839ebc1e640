"""Request models for API endpoints."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from testhelper.models.enums import ApiMethod
from testhelper.models.scenario import CamelModel


class CreateGroupRequest(BaseModel):
    """Request to create a scenario group."""
    name: str = Field(..., min_length=1, description="Group name")
    description: Optional[str] = Field(default=None, description="Group description")


class UpdateGroupRequest(BaseModel):
    """Request to rename or redescribe a scenario group."""
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


class ParseDDLRequest(BaseModel):
    """Request to parse one CREATE TABLE statement."""
    ddl: str = Field(..., min_length=1, description="CREATE TABLE statement")


class ParseMultipleDDLRequest(BaseModel):
    """Request to parse several CREATE TABLE statements and order them."""
    ddls: List[str] = Field(..., min_length=1, description="CREATE TABLE statements")


class ExecuteDDLRequest(BaseModel):
    """Request to run DDL against the target database."""
    ddl: str = Field(..., min_length=1)


class ExecuteDDLsRequest(BaseModel):
    """Request to run several DDL statements in one transaction."""
    ddls: List[str] = Field(..., min_length=1, description="DDL statements, run in order")


class InsertDataRequest(CamelModel):
    """Request to insert rows into a target table."""
    table_name: str = Field(..., min_length=1)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    truncate_before: bool = False
    resolve_constants: bool = True


class ProxyRequest(CamelModel):
    """Request to forward an HTTP call to the API under test."""
    method: ApiMethod
    url: str = Field(..., min_length=1)
    headers: Optional[Dict[str, str]] = None
    body: Any = None
    timeout: Optional[int] = Field(default=None, gt=0, description="Timeout in milliseconds")
