"""Scenario validation: typed parsing plus referential-integrity checks."""
import re
import secrets
import string
import time
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError as PydanticValidationError

from testhelper.models.scenario import MockEndpoint, TestScenario, ScenarioExport, utc_now_iso
from testhelper.exceptions import ScenarioValidationError
from testhelper.config.logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_EXPORT_MAJOR = 1
_VERSION_MAJOR = re.compile(r"^\s*v?(\d+)(?:\.\d+)*")
_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_entity_id(prefix: str) -> str:
    """Generate an id such as ``scenario_1718000000000_k3j9x0abc``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{time.time_ns() // 1_000_000}_{suffix}"


def _error(field: str, message: str, error_type: str) -> Dict[str, Any]:
    return {"field": field, "message": message, "type": error_type}


def _pydantic_errors(exc: PydanticValidationError, prefix: str = "") -> List[Dict[str, Any]]:
    errors = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        field = f"{prefix}{loc}" if loc else prefix.rstrip(".")
        errors.append(_error(field, err.get("msg", "Invalid value"), err.get("type", "value_error")))
    return errors


def to_wire_keys(data: Mapping[str, Any], model: Type[BaseModel]) -> Dict[str, Any]:
    """
    Rename field names in a partial update to the model's camelCase aliases.

    Raises:
        ScenarioValidationError: A key is neither a field name nor an alias
    """
    aliases: Dict[str, str] = {}
    for name, info in model.model_fields.items():
        alias = info.alias or name
        aliases[name] = alias
        aliases[alias] = alias

    unknown = [key for key in data if key not in aliases]
    if unknown:
        raise ScenarioValidationError([_error(key, "Unknown field", "unknown_field") for key in unknown])
    return {aliases[key]: value for key, value in data.items()}


def _get(item: Any, camel: str, snake: str) -> Any:
    if not isinstance(item, Mapping):
        return None
    return item.get(camel, item.get(snake))


def _list(data: Mapping[str, Any], camel: str, snake: str) -> List[Any]:
    value = data.get(camel, data.get(snake))
    return value if isinstance(value, list) else []


def integrity_errors(data: Mapping[str, Any], prefix: str = "") -> List[Dict[str, Any]]:
    """
    Referential-integrity violations of a scenario mapping.

    Works on raw (possibly schema-invalid) input so structural and
    referential problems are reported together.
    """
    errors: List[Dict[str, Any]] = []
    tables = _list(data, "tables", "tables")
    table_data = _list(data, "tableData", "table_data")
    mocks = _list(data, "mockApis", "mock_apis")

    names = [_get(t, "name", "name") for t in tables]
    known = {name for name in names if isinstance(name, str) and name}

    counts = Counter(name for name in names if isinstance(name, str) and name)
    for index, name in enumerate(names):
        if isinstance(name, str) and counts[name] > 1:
            errors.append(_error(f"{prefix}tables.{index}.name", f"Duplicate table name '{name}'", "duplicate_table"))

    for index, table in enumerate(tables):
        deps = _get(table, "dependencies", "dependencies") or []
        if not isinstance(deps, list):
            continue
        for dep_index, dep in enumerate(deps):
            if isinstance(dep, str) and dep not in known:
                errors.append(_error(
                    f"{prefix}tables.{index}.dependencies.{dep_index}",
                    f"Unknown table '{dep}'",
                    "unknown_dependency",
                ))

    for index, entry in enumerate(table_data):
        table_name = _get(entry, "tableName", "table_name")
        if isinstance(table_name, str) and table_name and table_name not in known:
            errors.append(_error(
                f"{prefix}tableData.{index}.tableName",
                f"Unknown table '{table_name}'",
                "unknown_table",
            ))

    mock_ids = [_get(m, "id", "id") for m in mocks]
    id_counts = Counter(mock_id for mock_id in mock_ids if isinstance(mock_id, str))
    for index, mock_id in enumerate(mock_ids):
        if isinstance(mock_id, str) and id_counts[mock_id] > 1:
            errors.append(_error(f"{prefix}mockApis.{index}.id", f"Duplicate mock id '{mock_id}'", "duplicate_mock"))

    return errors


def check_export_version(version: Any) -> Optional[Dict[str, Any]]:
    """Reject export versions from a newer major format; unparseable versions pass."""
    if not isinstance(version, str):
        return None
    match = _VERSION_MAJOR.match(version)
    if match and int(match.group(1)) > SUPPORTED_EXPORT_MAJOR:
        return _error(
            "version",
            f"Unsupported export version '{version}' (supported major version: {SUPPORTED_EXPORT_MAJOR})",
            "unsupported_version",
        )
    return None


class ScenarioValidator:
    """
    Turns untyped input into a fully-populated TestScenario or a complete list
    of field errors. Components downstream only see validated models.
    """

    def validate_scenario(self, data: Any) -> TestScenario:
        """
        Validate a scenario.

        Args:
            data: Mapping in wire format, or an existing TestScenario

        Returns:
            Typed scenario with optional fields defaulted

        Raises:
            ScenarioValidationError: With every violation found
        """
        if isinstance(data, TestScenario):
            errors = integrity_errors(data.to_dict())
            if errors:
                raise ScenarioValidationError(errors)
            return data

        scenario, errors = self._parse(data)
        if errors:
            logger.info("Scenario rejected", error_count=len(errors))
            raise ScenarioValidationError(errors)
        return scenario

    def validate_create(self, data: Any) -> TestScenario:
        """Validate input for a new scenario, assigning a fresh id and timestamps."""
        if not isinstance(data, Mapping):
            raise ScenarioValidationError([_error("", "Scenario must be a JSON object", "type_error")])
        now = utc_now_iso()
        payload = dict(data)
        payload["id"] = new_entity_id("scenario")
        payload["createdAt"] = now
        payload["updatedAt"] = now
        for key in ("created_at", "updated_at"):
            payload.pop(key, None)
        return self.validate_scenario(payload)

    def validate_export(self, data: Any) -> ScenarioExport:
        """
        Validate an export wrapper ``{version, exportedAt, scenario}``.

        Raises:
            ScenarioValidationError: Invalid wrapper, invalid scenario, or a
                newer major export version
        """
        if not isinstance(data, Mapping):
            raise ScenarioValidationError([_error("", "Export must be a JSON object", "type_error")])

        errors: List[Dict[str, Any]] = []
        export: Optional[ScenarioExport] = None
        try:
            export = ScenarioExport.model_validate(data)
        except PydanticValidationError as e:
            errors.extend(_pydantic_errors(e))

        version_error = check_export_version(data.get("version"))
        if version_error:
            errors.append(version_error)

        scenario_data = data.get("scenario")
        if isinstance(scenario_data, Mapping):
            errors.extend(integrity_errors(scenario_data, prefix="scenario."))

        if errors:
            raise ScenarioValidationError(errors)
        return export

    def validate_mock_endpoint(self, data: Any, prefix: str = "") -> MockEndpoint:
        """Validate a standalone mock endpoint."""
        if not isinstance(data, Mapping):
            raise ScenarioValidationError([_error(prefix.rstrip("."), "Mock endpoint must be a JSON object", "type_error")])
        try:
            return MockEndpoint.model_validate(data)
        except PydanticValidationError as e:
            raise ScenarioValidationError(_pydantic_errors(e, prefix=prefix)) from e

    def validate_mock_endpoints(self, data: Any) -> List[MockEndpoint]:
        """
        Validate a list of mock endpoints, as produced by a mock export.

        Raises:
            ScenarioValidationError: Not a list, any invalid endpoint, or a
                repeated id (errors prefixed by index)
        """
        if not isinstance(data, list):
            raise ScenarioValidationError([_error("", "Mock endpoints must be a JSON array", "type_error")])

        endpoints: List[MockEndpoint] = []
        errors: List[Dict[str, Any]] = []
        seen: Counter = Counter()
        for index, item in enumerate(data):
            try:
                endpoint = self.validate_mock_endpoint(item, prefix=f"{index}.")
            except ScenarioValidationError as e:
                errors.extend(e.errors)
                continue
            seen[endpoint.id] += 1
            if seen[endpoint.id] > 1:
                errors.append(_error(f"{index}.id", f"Duplicate mock id '{endpoint.id}'", "duplicate_mock"))
            endpoints.append(endpoint)

        if errors:
            raise ScenarioValidationError(errors)
        return endpoints

    def _parse(self, data: Any) -> Tuple[Optional[TestScenario], List[Dict[str, Any]]]:
        if not isinstance(data, Mapping):
            return None, [_error("", "Scenario must be a JSON object", "type_error")]

        errors: List[Dict[str, Any]] = []
        scenario: Optional[TestScenario] = None
        try:
            scenario = TestScenario.model_validate(data)
        except PydanticValidationError as e:
            errors.extend(_pydantic_errors(e))

        errors.extend(integrity_errors(data))
        return scenario, errors


_validator = ScenarioValidator()


def get_scenario_validator() -> ScenarioValidator:
    """Get the shared scenario validator."""
    return _validator
