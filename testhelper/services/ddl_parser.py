"""Minimal CREATE TABLE parser for table names, columns, and foreign keys.

Only what is needed to derive table dependencies; this is not a SQL parser.
"""
import re
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from testhelper.models.scenario import DDLTable
from testhelper.exceptions import CyclicDependencyError, DDLParseError

_IDENT = r"[\"'`]?(\w+)[\"'`]?"
_TABLE_NAME = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(?:" + _IDENT + r"\s*\.\s*)?" + _IDENT + r"\s*\(",
    re.IGNORECASE,
)
_COLUMN = re.compile(r"^" + _IDENT + r"\s+(\w+(?:\s*\([^)]*\))?)", re.IGNORECASE)
_REFERENCES = re.compile(r"REFERENCES\s+" + _IDENT + r"\s*\(\s*" + _IDENT + r"\s*\)", re.IGNORECASE)
_FOREIGN_KEY = re.compile(
    r"FOREIGN\s+KEY\s*\(\s*" + _IDENT + r"\s*\)\s*REFERENCES\s+" + _IDENT + r"\s*\(\s*" + _IDENT + r"\s*\)",
    re.IGNORECASE,
)
_DEFAULT = re.compile(r"DEFAULT\s+('[^']*'|\"[^\"]*\"|\S+)", re.IGNORECASE)
_TABLE_CONSTRAINT = re.compile(r"^(CONSTRAINT|PRIMARY\s+KEY|FOREIGN\s+KEY|UNIQUE\s*\(|CHECK\s*\()", re.IGNORECASE)


@dataclass
class ForeignKey:
    """Column-level reference to another table."""
    column: str
    ref_table: str
    ref_column: str

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "references": {"table": self.ref_table, "column": self.ref_column}}


@dataclass
class ColumnDefinition:
    """Parsed column."""
    name: str
    type: str
    nullable: bool = True
    primary_key: bool = False
    unique: bool = False
    default_value: Optional[str] = None
    references: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "nullable": self.nullable,
            "primaryKey": self.primary_key,
            "unique": self.unique,
            "defaultValue": self.default_value,
            "references": self.references,
        }


@dataclass
class TableDefinition:
    """Parsed CREATE TABLE statement."""
    name: str
    columns: List[ColumnDefinition] = field(default_factory=list)
    foreign_keys: List[ForeignKey] = field(default_factory=list)

    @property
    def dependencies(self) -> List[str]:
        """Referenced tables, excluding self-references, in first-seen order."""
        seen: List[str] = []
        for fk in self.foreign_keys:
            if fk.ref_table != self.name and fk.ref_table not in seen:
                seen.append(fk.ref_table)
        return seen

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape."""
        return {
            "name": self.name,
            "columns": [column.to_dict() for column in self.columns],
            "foreignKeys": [fk.to_dict() for fk in self.foreign_keys],
            "dependencies": self.dependencies,
        }


class DDLParser:
    """Extracts table structure and foreign-key references from CREATE TABLE statements."""

    def parse(self, ddl: str) -> TableDefinition:
        """
        Parse a single CREATE TABLE statement.

        Raises:
            DDLParseError: Table name or column list not found
        """
        normalized = self._normalize(ddl)

        name_match = _TABLE_NAME.search(normalized)
        if not name_match:
            raise DDLParseError("Invalid CREATE TABLE syntax: table name not found")
        table_name = name_match.group(2)

        body = self._extract_body(normalized, name_match.end() - 1)
        if body is None or not body.strip():
            raise DDLParseError("Invalid CREATE TABLE syntax: column definitions not found")

        table = TableDefinition(name=table_name)
        for part in self._split_top_level(body):
            item = part.strip()
            if not item:
                continue

            if _TABLE_CONSTRAINT.match(item):
                fk_match = _FOREIGN_KEY.search(item)
                if fk_match:
                    table.foreign_keys.append(ForeignKey(
                        column=fk_match.group(1),
                        ref_table=fk_match.group(2),
                        ref_column=fk_match.group(3),
                    ))
                continue

            column = self._parse_column(item)
            if column is None:
                continue
            table.columns.append(column)
            if column.references:
                table.foreign_keys.append(ForeignKey(
                    column=column.name,
                    ref_table=column.references["table"],
                    ref_column=column.references["column"],
                ))

        return table

    def resolve_table_dependencies(self, tables: List[TableDefinition]) -> List[str]:
        """
        Order parsed tables so referenced tables come first.

        References to tables outside the given set are ignored.

        Raises:
            CyclicDependencyError: Tables reference each other in a cycle
        """
        names = [table.name for table in tables]
        dependents: Dict[str, List[str]] = {name: [] for name in names}
        in_degree: Dict[str, int] = {name: 0 for name in names}

        for table in tables:
            for dep in table.dependencies:
                if dep in dependents:
                    dependents[dep].append(table.name)
                    in_degree[table.name] += 1

        queue = deque(name for name in names if in_degree[name] == 0)
        ordered: List[str] = []
        while queue:
            current = queue.popleft()
            ordered.append(current)
            for dependent in dependents[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(ordered) != len(names):
            raise CyclicDependencyError([name for name in names if name not in ordered])
        return ordered

    def to_ddl_tables(self, ddls: List[str]) -> List[DDLTable]:
        """
        Build scenario table definitions from raw statements.

        Dependencies come from foreign keys (limited to the given set) and
        ``order`` is the 1-based position in dependency order.
        """
        return [table for table, _ in self._ordered(ddls)]

    def parse_multiple(self, ddls: List[str]) -> Dict[str, Any]:
        """
        Parse several statements and order them by their foreign keys.

        Returns:
            ``tables`` (parsed structure plus ``ddl``, ``order`` and in-set
            ``dependencies``) in dependency order, ``order`` as table names,
            and ``dependencies`` mapping each table to every table it references

        Raises:
            DDLParseError: One or more statements failed; ``errors`` lists each
            CyclicDependencyError: Tables reference each other in a cycle
        """
        ordered = self._ordered(ddls)
        return {
            "tables": [
                {**definition.to_dict(), "ddl": table.ddl, "dependencies": table.dependencies, "order": table.order}
                for table, definition in ordered
            ],
            "order": [table.name for table, _ in ordered],
            "dependencies": {definition.name: definition.dependencies for _, definition in ordered},
        }

    def _parse_all(self, ddls: List[str]) -> List[TableDefinition]:
        definitions: List[TableDefinition] = []
        errors: List[Dict[str, str]] = []
        for ddl in ddls:
            try:
                definitions.append(self.parse(ddl))
            except DDLParseError as e:
                snippet = ddl.strip()
                errors.append({"ddl": snippet[:100] + ("..." if len(snippet) > 100 else ""), "error": str(e)})
        if errors:
            raise DDLParseError(f"{len(errors)} of {len(ddls)} DDL statements could not be parsed", errors=errors)
        return definitions

    def _ordered(self, ddls: List[str]) -> List[Tuple[DDLTable, TableDefinition]]:
        definitions = self._parse_all(ddls)
        known = {definition.name for definition in definitions}
        position = {name: index + 1 for index, name in enumerate(self.resolve_table_dependencies(definitions))}

        pairs = [
            (
                DDLTable(
                    name=definition.name,
                    ddl=ddl.strip(),
                    dependencies=[dep for dep in definition.dependencies if dep in known],
                    order=position[definition.name],
                ),
                definition,
            )
            for definition, ddl in zip(definitions, ddls)
        ]
        return sorted(pairs, key=lambda pair: pair[0].order)

    @staticmethod
    def _normalize(ddl: str) -> str:
        without_line_comments = re.sub(r"--[^\n]*", "", ddl)
        without_comments = re.sub(r"/\*.*?\*/", "", without_line_comments, flags=re.DOTALL)
        return re.sub(r"\s+", " ", without_comments).strip()

    @staticmethod
    def _extract_body(ddl: str, open_index: int) -> Optional[str]:
        depth = 0
        for index in range(open_index, len(ddl)):
            char = ddl[index]
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    return ddl[open_index + 1:index]
        return None

    @staticmethod
    def _split_top_level(body: str) -> List[str]:
        parts: List[str] = []
        current: List[str] = []
        depth = 0
        for char in body:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            elif char == "," and depth == 0:
                parts.append("".join(current))
                current = []
                continue
            current.append(char)
        if "".join(current).strip():
            parts.append("".join(current))
        return parts

    @staticmethod
    def _parse_column(definition: str) -> Optional[ColumnDefinition]:
        match = _COLUMN.match(definition)
        if not match:
            return None

        column = ColumnDefinition(
            name=match.group(1),
            type=re.sub(r"\s+", "", match.group(2)),
            nullable=not re.search(r"NOT\s+NULL", definition, re.IGNORECASE),
            primary_key=bool(re.search(r"PRIMARY\s+KEY", definition, re.IGNORECASE)),
            unique=bool(re.search(r"\bUNIQUE\b", definition, re.IGNORECASE)),
        )
        if column.primary_key:
            column.nullable = False

        default_match = _DEFAULT.search(definition)
        if default_match:
            column.default_value = default_match.group(1).strip("'\"")

        ref_match = _REFERENCES.search(definition)
        if ref_match:
            column.references = {"table": ref_match.group(1), "column": ref_match.group(2)}

        return column
