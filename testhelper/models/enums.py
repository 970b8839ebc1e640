"""Enumeration types for the Test Helper backend."""
from enum import Enum


class HttpMethod(str, Enum):
    """HTTP methods a mock endpoint can answer."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class ApiMethod(str, Enum):
    """HTTP methods allowed for a scenario's target API call."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class SeedStep(str, Enum):
    """Executor operations issued while materializing a table."""
    CREATE = "create"
    TRUNCATE = "truncate"
    INSERT = "insert"


class ImportMode(str, Enum):
    """How imported scenarios are stored."""
    RESTORE = "restore"  # Keep the exported id and timestamps
    CREATE = "create"  # Assign a fresh id and timestamps
