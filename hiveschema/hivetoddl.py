"""Renders an inferred Hive type as text: a create table statement, a flat path listing or a type string."""

from typing import List, Optional

from hiveschema.common import TableShapeError
from hiveschema.hivetypes import HiveType, Kind

# Spaces per nesting level
INDENT = 3

FLOAT_MAX = 3.4028234663852886e+38

INTEGER_TYPES = [
    ('tinyint', -2 ** 7, 2 ** 7 - 1),
    ('smallint', -2 ** 15, 2 ** 15 - 1),
    ('int', -2 ** 31, 2 ** 31 - 1),
]

PRIMITIVE_NAMES = {
    Kind.NULL: 'null',
    Kind.BOOLEAN: 'boolean',
    Kind.STRING: 'string',
    Kind.BINARY: 'binary',
    Kind.TIMESTAMP: 'timestamp',
}


class HiveToDdl:
    """Converts a finished type node to Hive DDL text. Never modifies the node."""

    def __init__(self, indent: int = INDENT):
        self.indent = indent

    def primitive_type_name(self, hive_type: HiveType) -> str:
        """Hive name of a non-nested type, picking the narrowest numeric type for the observed range."""
        if hive_type.kind == Kind.INTEGER:
            for name, low, high in INTEGER_TYPES:
                if hive_type.min_value >= low and hive_type.max_value <= high:
                    return name
            return 'bigint'
        if hive_type.kind == Kind.FLOATING_POINT:
            if max(abs(hive_type.max_value), abs(hive_type.min_value)) > FLOAT_MAX:
                return 'double'
            return 'float'
        return PRIMITIVE_NAMES[hive_type.kind]

    def type_string(self, hive_type: Optional[HiveType]) -> str:
        """Single-line type, e.g. struct<a:int,b:array<string>>."""
        if hive_type is None:
            return 'void'
        if hive_type.kind == Kind.STRUCT:
            return 'struct<' + ','.join(
                f"{name}:{self.type_string(field_type)}" for name, field_type in hive_type.fields.items()) + '>'
        if hive_type.kind == Kind.LIST:
            return f"array<{self.type_string(hive_type.element_type)}>"
        if hive_type.kind == Kind.UNION:
            return 'uniontype<' + ','.join(self.type_string(child) for child in hive_type.children) + '>'
        return self.primitive_type_name(hive_type)

    def render_type(self, hive_type: Optional[HiveType], margin: int = 0) -> str:
        """Indented type; struct fields go on their own lines, ``margin`` spaces deep."""
        if hive_type is None:
            return 'void'
        if hive_type.kind == Kind.STRUCT:
            fields = [
                ' ' * margin + f"{name}: {self.render_type(field_type, margin + self.indent)}"
                for name, field_type in hive_type.fields.items()
            ]
            return 'struct <\n' + ',\n'.join(fields) + '>'
        if hive_type.kind == Kind.LIST:
            return f"array <{self.render_type(hive_type.element_type, margin + self.indent)}>"
        if hive_type.kind == Kind.UNION:
            children = [self.render_type(child, margin + self.indent) for child in hive_type.children]
            return 'uniontype <' + ','.join(children) + '>'
        return self.primitive_type_name(hive_type)

    def render_table(self, hive_type: Optional[HiveType], table_name: str = 'tbl') -> str:
        """Create table statement with one column per top-level struct field.

        Raises:
            TableShapeError: The schema is not a struct
        """
        if hive_type is None:
            return ''
        if hive_type.kind != Kind.STRUCT:
            raise TableShapeError(
                f"Cannot declare a table for top-level type {self.type_string(hive_type)}",
                "only flat rendering supports non-struct records")
        columns = [
            ' ' * self.indent + f"{name} {self.render_type(field_type, 2 * self.indent)}"
            for name, field_type in hive_type.fields.items()
        ]
        lines = [f"create table {table_name} ("]
        if columns:
            lines.append(',\n'.join(columns))
        lines.append(')')
        return '\n'.join(lines) + '\n'

    def render_flat(self, hive_type: Optional[HiveType], root: str = 'root') -> str:
        """One ``path: type`` line per leaf field."""
        lines: List[str] = []
        self._flatten(root, hive_type, lines)
        return '\n'.join(lines) + '\n'

    def _flatten(self, path: str, hive_type: Optional[HiveType], lines: List[str]) -> None:
        if hive_type is not None and hive_type.kind == Kind.STRUCT and hive_type.fields:
            for name, field_type in hive_type.fields.items():
                self._flatten(f"{path}.{name}", field_type, lines)
        elif hive_type is not None and hive_type.kind == Kind.LIST:
            self._flatten(f"{path}.list", hive_type.element_type, lines)
        else:
            lines.append(f"{path}: {self.type_string(hive_type)}")


def hive_type_string(hive_type: Optional[HiveType]) -> str:
    """Single-line Hive type string for a type node."""
    return HiveToDdl().type_string(hive_type)


def convert_hive_type_to_ddl(hive_type: Optional[HiveType], table_name: str = 'tbl') -> str:
    """Create table statement for a struct schema."""
    return HiveToDdl().render_table(hive_type, table_name)


def convert_hive_type_to_flat(hive_type: Optional[HiveType], root: str = 'root') -> str:
    """Path-qualified listing of every leaf field of a schema."""
    return HiveToDdl().render_flat(hive_type, root)
