"""Hive schema inference for JSON data.

This module provides the core inference logic used by j2h:
- classification of a single parsed JSON value into a type node
- the pairwise merge that folds type nodes into one schema
"""

import re
from decimal import Decimal
from functools import reduce
from typing import Any, Iterable, List, Optional

from hiveschema.common import HiveSchemaError, NumericRangeError
from hiveschema.hivetypes import (
    LONG_MAX,
    LONG_MIN,
    SCALAR_KINDS,
    BinaryType,
    BooleanType,
    FloatingPointType,
    HiveType,
    IntegerType,
    Kind,
    ListType,
    NullType,
    StringType,
    StructType,
    TimestampType,
    UnionType,
    make_struct,
    shape_signature,
)

# Kind pairs that merge into the more general kind instead of forming a union
RECONCILABLE_KINDS = (
    frozenset({Kind.INTEGER, Kind.FLOATING_POINT}),
    frozenset({Kind.STRING, Kind.BINARY}),
)


class HiveSchemaInferrer:
    """Infers a Hive schema from parsed JSON values."""

    _TIMESTAMP_PATTERN = re.compile(
        r'"?([0-9]{4}[-/][0-9]{2}[-/][0-9]{2})[T ]([0-9]{2}:[0-9]{2}:[0-9]{2})'
        r'( ?[-+][0-9]{2}(:?[0-9]{2})?|Z)?"?')
    _HEX_PATTERN = re.compile(r'(?:[0-9a-fA-F]{2})+')

    def __init__(self, infer_timestamps: bool = True, infer_binary: bool = True):
        """Initialize the schema inferrer.

        Args:
            infer_timestamps: Classify date/time strings as timestamp
            infer_binary: Classify hex-digit strings as binary
        """
        self.infer_timestamps = infer_timestamps
        self.infer_binary = infer_binary

    def python_type_to_hive_type(self, python_value: Any, path: str = 'root') -> HiveType:
        """Maps one parsed JSON value to its initial type node.

        Args:
            python_value: Value as produced by a JSON parser; numbers may be
                int, float or Decimal
            path: Location of the value, used in error context

        Returns:
            Type node for the value

        Raises:
            NumericRangeError: An integral number exceeds the 64-bit signed range
        """
        if python_value is None:
            return NullType()

        # bool is subclass of int in Python, so check bool first
        if isinstance(python_value, bool):
            return BooleanType()

        if isinstance(python_value, int):
            return self._integer_type(python_value, path)

        if isinstance(python_value, Decimal):
            if python_value.is_finite() and python_value.as_tuple().exponent >= 0:
                if python_value.is_zero():
                    return IntegerType.of(0)
                # avoid materializing literals such as 1e999999
                if python_value.adjusted() > 18:
                    raise NumericRangeError(python_value, path)
                return self._integer_type(int(python_value), path)
            return FloatingPointType.of(float(python_value))

        if isinstance(python_value, float):
            return FloatingPointType.of(python_value)

        if isinstance(python_value, str):
            return self._infer_string_type(python_value)

        if isinstance(python_value, list):
            element_type: HiveType = NullType()
            for item in python_value:
                element_type = self.merge_types(
                    element_type, self.python_type_to_hive_type(item, f"{path}.list"))
            return ListType(element_type)

        if isinstance(python_value, dict):
            fields = {
                key: self.python_type_to_hive_type(value, f"{path}.{key}")
                for key, value in python_value.items()
            }
            return make_struct(fields, frozenset({shape_signature(fields)}))

        raise HiveSchemaError(f"Unsupported value of type {type(python_value).__name__}", path)

    def _integer_type(self, value: int, path: str) -> IntegerType:
        if value < LONG_MIN or value > LONG_MAX:
            raise NumericRangeError(value, path)
        return IntegerType.of(value)

    def _infer_string_type(self, value: str) -> HiveType:
        """Timestamp takes priority over binary when both patterns match."""
        if self.infer_timestamps and self._TIMESTAMP_PATTERN.fullmatch(value):
            return TimestampType()
        if self.infer_binary and self._HEX_PATTERN.fullmatch(value):
            return BinaryType()
        return StringType()

    def merge_types(self, previous: Optional[HiveType], current: Optional[HiveType]) -> Optional[HiveType]:
        """Merges two type nodes into the narrowest node covering both.

        ``None`` means no observation yet and yields the other argument.
        Neither input is modified.
        """
        if previous is None:
            return current
        if current is None:
            return previous
        if previous.kind == current.kind:
            return self._merge_same_type(previous, current)

        low, high = (previous, current) if previous.kind < current.kind else (current, previous)
        reconciled = self._reconcile(low, high)
        if reconciled is not None:
            return reconciled
        if low.kind == Kind.NULL:
            return high
        if high.kind == Kind.UNION:
            return UnionType(self._add_union_child(list(high.children), low))
        return UnionType([low, high])

    def _reconcile(self, low: HiveType, high: HiveType) -> Optional[HiveType]:
        """Applies the subsumption rules between two nodes of different kinds."""
        if low.kind == Kind.INTEGER and high.kind == Kind.FLOATING_POINT:
            return FloatingPointType(min(high.min_value, float(low.min_value)),
                                     max(high.max_value, float(low.max_value)))
        if low.kind == Kind.STRING and high.kind == Kind.BINARY:
            return low
        return None

    def _merge_same_type(self, left: HiveType, right: HiveType) -> HiveType:
        if left.kind in SCALAR_KINDS:
            return left
        if left.kind == Kind.INTEGER:
            return IntegerType(min(left.min_value, right.min_value),
                               max(left.max_value, right.max_value))
        if left.kind == Kind.FLOATING_POINT:
            return FloatingPointType(min(left.min_value, right.min_value),
                                     max(left.max_value, right.max_value))
        if left.kind == Kind.STRUCT:
            return self._merge_struct_types(left, right)
        if left.kind == Kind.LIST:
            return ListType(self.merge_types(left.element_type, right.element_type))
        if left.kind == Kind.UNION:
            children = list(left.children)
            for child in right.children:
                children = self._add_union_child(children, child)
            return UnionType(children)
        raise HiveSchemaError(f"Unknown type kind: {left.kind!r}")

    def _merge_struct_types(self, left: StructType, right: StructType) -> StructType:
        """Unions the field maps; fields missing on one side are carried over."""
        fields = dict(left.fields)
        for key, field_type in right.fields.items():
            if key in fields:
                fields[key] = self.merge_types(fields[key], field_type)
            else:
                fields[key] = field_type
        return make_struct(fields, left.shapes | right.shapes)

    def _add_union_child(self, children: List[HiveType], node: HiveType) -> List[HiveType]:
        """Adds a node to union children, widening a compatible child if present.

        The result holds at most one child per kind and is ordered by kind.
        """
        for i, child in enumerate(children):
            if child.kind == node.kind or frozenset({child.kind, node.kind}) in RECONCILABLE_KINDS:
                children[i] = self.merge_types(child, node)
                break
        else:
            if node not in children:
                children.append(node)
        children.sort(key=lambda child: child.kind)
        return children

    def fold(self, accumulator: Optional[HiveType], python_value: Any) -> Optional[HiveType]:
        """Classifies one record and merges it into the accumulator.

        The accumulator is returned unchanged when classification fails, since
        the exception propagates before any merge happens.
        """
        return self.merge_types(accumulator, self.python_type_to_hive_type(python_value))

    def infer_from_json_values(self, values: Iterable[Any]) -> Optional[HiveType]:
        """Infers the schema of a sequence of JSON values.

        Args:
            values: Parsed JSON values, one per record

        Returns:
            Schema covering every value, or None for an empty sequence
        """
        return reduce(self.fold, values, None)

    def merge_all(self, types: Iterable[Optional[HiveType]]) -> Optional[HiveType]:
        """Combines independently inferred schemas, e.g. one per input partition."""
        return reduce(self.merge_types, types, None)


# Convenience functions for direct use

def infer_hive_schema_from_json(
    json_values: Iterable[Any],
    infer_timestamps: bool = True,
    infer_binary: bool = True
) -> Optional[HiveType]:
    """Infers a Hive schema from JSON values.

    Args:
        json_values: Parsed JSON values
        infer_timestamps: Classify date/time strings as timestamp
        infer_binary: Classify hex-digit strings as binary

    Returns:
        Inferred schema, or None when no values were given
    """
    inferrer = HiveSchemaInferrer(infer_timestamps=infer_timestamps, infer_binary=infer_binary)
    return inferrer.infer_from_json_values(json_values)


def merge_hive_types(*types: Optional[HiveType]) -> Optional[HiveType]:
    """Merges any number of type nodes with the default inferrer."""
    return HiveSchemaInferrer().merge_all(types)
