"""Scenario services: constants, validation, DDL parsing, scenario management."""
from .constant_resolver import ConstantResolver, ConstantToken, supported_constants, get_constant_resolver

__all__ = [
    "ConstantResolver",
    "ConstantToken",
    "supported_constants",
    "get_constant_resolver",
]
