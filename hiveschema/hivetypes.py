"""Type lattice for Hive schema inference.

Every inferred type is a node of one of the kinds below. Nodes are treated as
immutable values: the merger in ``schema_inference`` always builds new nodes and
only shares sub-nodes that nobody mutates.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, Dict, FrozenSet, List, Optional


class Kind(IntEnum):
    """Discriminant of a type node. The order is the canonical union order."""
    NULL = 0
    BOOLEAN = 1
    INTEGER = 2
    FLOATING_POINT = 3
    STRING = 4
    BINARY = 5
    TIMESTAMP = 6
    STRUCT = 7
    LIST = 8
    UNION = 9


# Kinds without a payload; any two nodes of the same scalar kind are equal.
SCALAR_KINDS = frozenset({Kind.NULL, Kind.BOOLEAN, Kind.STRING, Kind.BINARY, Kind.TIMESTAMP})

LONG_MIN = -(2 ** 63)
LONG_MAX = 2 ** 63 - 1


@dataclass
class HiveType:
    """Base class for all type nodes."""
    kind: ClassVar[Kind]


@dataclass
class NullType(HiveType):
    kind: ClassVar[Kind] = Kind.NULL


@dataclass
class BooleanType(HiveType):
    kind: ClassVar[Kind] = Kind.BOOLEAN


@dataclass
class IntegerType(HiveType):
    """Integral values observed within [min_value, max_value]."""
    kind: ClassVar[Kind] = Kind.INTEGER
    min_value: int = 0
    max_value: int = 0

    @classmethod
    def of(cls, value: int) -> 'IntegerType':
        return cls(value, value)


@dataclass
class FloatingPointType(HiveType):
    """Fractional values observed within [min_value, max_value]."""
    kind: ClassVar[Kind] = Kind.FLOATING_POINT
    min_value: float = 0.0
    max_value: float = 0.0

    @classmethod
    def of(cls, value: float) -> 'FloatingPointType':
        return cls(value, value)


@dataclass
class StringType(HiveType):
    kind: ClassVar[Kind] = Kind.STRING


@dataclass
class BinaryType(HiveType):
    kind: ClassVar[Kind] = Kind.BINARY


@dataclass
class TimestampType(HiveType):
    kind: ClassVar[Kind] = Kind.TIMESTAMP


@dataclass
class StructType(HiveType):
    """Object type.

    ``fields`` is kept in lexical key order. ``shapes`` collects the sorted,
    comma-joined key lists of every object folded into this struct; it is a
    diagnostic only and does not take part in equality.
    """
    kind: ClassVar[Kind] = Kind.STRUCT
    fields: Dict[str, HiveType] = field(default_factory=dict)
    shapes: FrozenSet[str] = field(default_factory=frozenset, compare=False)


@dataclass
class ListType(HiveType):
    """Array type; ``element_type`` is the fold of every element seen."""
    kind: ClassVar[Kind] = Kind.LIST
    element_type: HiveType = field(default_factory=NullType)


@dataclass(eq=False)
class UnionType(HiveType):
    """Alternatives that no merge rule could reconcile, one per kind."""
    kind: ClassVar[Kind] = Kind.UNION
    children: List[HiveType] = field(default_factory=list)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnionType):
            return NotImplemented
        if len(self.children) != len(other.children):
            return False
        return all(child in other.children for child in self.children)


def make_struct(fields: Dict[str, HiveType], shapes: Optional[FrozenSet[str]] = None) -> StructType:
    """Builds a struct whose field map is in lexical key order."""
    return StructType({key: fields[key] for key in sorted(fields)}, shapes or frozenset())


def shape_signature(keys) -> str:
    """The sorted, comma-joined key list used as a struct shape signature."""
    return ','.join(sorted(keys))
