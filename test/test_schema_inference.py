"""Tests for value classification and type merging."""

import os
import sys
import unittest
from decimal import Decimal

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from hiveschema.common import NumericRangeError
from hiveschema.hivetoddl import hive_type_string
from hiveschema.hivetypes import (
    BinaryType,
    BooleanType,
    FloatingPointType,
    IntegerType,
    Kind,
    ListType,
    NullType,
    StringType,
    StructType,
    TimestampType,
    UnionType,
    make_struct,
)
from hiveschema.schema_inference import (
    HiveSchemaInferrer,
    infer_hive_schema_from_json,
    merge_hive_types,
)


class TestClassifier(unittest.TestCase):
    """Test cases for classifying single JSON values."""

    def setUp(self):
        self.inferrer = HiveSchemaInferrer()

    def classify(self, value):
        return self.inferrer.python_type_to_hive_type(value)

    def test_scalars(self):
        """Test null, boolean and plain strings."""
        self.assertEqual(self.classify(None), NullType())
        self.assertEqual(self.classify(True), BooleanType())
        self.assertEqual(self.classify(False), BooleanType())
        self.assertEqual(self.classify("hello"), StringType())
        self.assertEqual(self.classify(""), StringType())

    def test_integers(self):
        """Test that integral numbers carry their exact value as range."""
        self.assertEqual(self.classify(42), IntegerType(42, 42))
        self.assertEqual(self.classify(-7), IntegerType(-7, -7))
        self.assertEqual(self.classify(2 ** 63 - 1), IntegerType(2 ** 63 - 1, 2 ** 63 - 1))
        self.assertEqual(self.classify(-(2 ** 63)), IntegerType(-(2 ** 63), -(2 ** 63)))

    def test_decimal_without_fraction_is_integer(self):
        """Test that decimals with zero fractional digits are integers."""
        self.assertEqual(self.classify(Decimal("1E+3")), IntegerType(1000, 1000))
        self.assertEqual(self.classify(Decimal("0E+5")), IntegerType(0, 0))

    def test_decimal_with_fraction_is_floating_point(self):
        """Test that a fractional part makes a floating point value, even when it is zero."""
        self.assertEqual(self.classify(Decimal("2.5")), FloatingPointType(2.5, 2.5))
        self.assertEqual(self.classify(Decimal("1.0")), FloatingPointType(1.0, 1.0))
        self.assertEqual(self.classify(0.25), FloatingPointType(0.25, 0.25))

    def test_integer_out_of_range(self):
        """Test that integers beyond 64 bits are rejected, not truncated."""
        with self.assertRaises(NumericRangeError) as ctx:
            self.classify(2 ** 63)
        self.assertEqual(ctx.exception.value, 2 ** 63)
        with self.assertRaises(NumericRangeError):
            self.classify(-(2 ** 63) - 1)
        with self.assertRaises(NumericRangeError):
            self.classify(Decimal("1E+999999"))

    def test_out_of_range_error_names_the_path(self):
        """Test that the error context locates the offending value."""
        with self.assertRaises(NumericRangeError) as ctx:
            self.classify({"a": {"b": [1, 10 ** 30]}})
        self.assertEqual(ctx.exception.context, "root.a.b.list")
        self.assertIn("root.a.b.list", str(ctx.exception))

    def test_timestamps(self):
        """Test the date/time pattern variants."""
        for value in ["2016-01-02T03:04:05",
                      "2016-01-02 03:04:05",
                      "2016/01/02 03:04:05Z",
                      "2016-01-02T03:04:05+01:00",
                      "2016-01-02T03:04:05 -0800",
                      "2016-01-02T03:04:05+01",
                      '"2016-01-02 03:04:05"']:
            self.assertEqual(self.classify(value), TimestampType(), value)

    def test_not_timestamps(self):
        """Test near misses of the date/time pattern."""
        for value in ["2016-01-02", "2016-01-02T03:04", "2016-01-02T03:04:05.123", "16-01-02 03:04:05"]:
            self.assertNotEqual(self.classify(value), TimestampType(), value)

    def test_binary(self):
        """Test that even-length hex strings are binary."""
        self.assertEqual(self.classify("ff"), BinaryType())
        self.assertEqual(self.classify("DEADbeef"), BinaryType())
        self.assertEqual(self.classify("2020"), BinaryType())
        self.assertEqual(self.classify("abc"), StringType())
        self.assertEqual(self.classify("0xff"), StringType())
        self.assertEqual(self.classify("ff\n"), StringType())

    def test_detection_can_be_disabled(self):
        """Test the inferrer options for string detection."""
        inferrer = HiveSchemaInferrer(infer_timestamps=False, infer_binary=False)
        self.assertEqual(inferrer.python_type_to_hive_type("2016-01-02 03:04:05"), StringType())
        self.assertEqual(inferrer.python_type_to_hive_type("ff"), StringType())

    def test_empty_list(self):
        """Test that an empty array has a null element type."""
        self.assertEqual(self.classify([]), ListType(NullType()))

    def test_list_folds_elements(self):
        """Test that all array elements are merged into one element type."""
        self.assertEqual(self.classify([1, 2, 3]), ListType(IntegerType(1, 3)))
        self.assertEqual(self.classify([None, 5]), ListType(IntegerType(5, 5)))
        self.assertEqual(self.classify([1, 2.5]), ListType(FloatingPointType(1.0, 2.5)))
        self.assertEqual(self.classify([True, "x", False]),
                         ListType(UnionType([BooleanType(), StringType()])))

    def test_object(self):
        """Test objects become structs with sorted fields and a shape signature."""
        node = self.classify({"b": "x", "a": 1})
        self.assertEqual(node.kind, Kind.STRUCT)
        self.assertEqual(list(node.fields), ["a", "b"])
        self.assertEqual(node.fields["a"], IntegerType(1, 1))
        self.assertEqual(node.fields["b"], StringType())
        self.assertEqual(node.shapes, frozenset({"a,b"}))

    def test_keys_are_not_modified(self):
        """Test that field names are used exactly as they appear."""
        node = self.classify({"first name": 1, "select": 2})
        self.assertEqual(list(node.fields), ["first name", "select"])


class TestMerger(unittest.TestCase):
    """Test cases for the pairwise type merge."""

    def setUp(self):
        self.inferrer = HiveSchemaInferrer()
        self.merge = self.inferrer.merge_types

    def test_absent_side(self):
        """Test that a missing observation yields the other side."""
        self.assertEqual(self.merge(None, StringType()), StringType())
        self.assertEqual(self.merge(StringType(), None), StringType())
        self.assertIsNone(self.merge(None, None))

    def test_null_identity(self):
        """Test that null is absorbed into every kind."""
        for node in [BooleanType(), IntegerType(1, 2), StringType(), ListType(StringType()),
                     UnionType([BooleanType(), StringType()]), make_struct({"a": StringType()})]:
            self.assertEqual(self.merge(NullType(), node), node)
            self.assertEqual(self.merge(node, NullType()), node)

    def test_integer_ranges_widen(self):
        """Test that both integer bounds come from the union of both ranges."""
        self.assertEqual(self.merge(IntegerType(5, 10), IntegerType(1, 3)), IntegerType(1, 10))
        self.assertEqual(self.merge(IntegerType(1, 3), IntegerType(5, 10)), IntegerType(1, 10))
        self.assertEqual(self.merge(IntegerType(-4, 20), IntegerType(0, 2)), IntegerType(-4, 20))

    def test_float_ranges_widen(self):
        self.assertEqual(self.merge(FloatingPointType(1.5, 2.0), FloatingPointType(-3.0, 1.75)),
                         FloatingPointType(-3.0, 2.0))

    def test_integer_into_float(self):
        """Test that integers are absorbed by floating point."""
        expected = FloatingPointType(1.5, 5.0)
        self.assertEqual(self.merge(IntegerType(5, 5), FloatingPointType(1.5, 1.5)), expected)
        self.assertEqual(self.merge(FloatingPointType(1.5, 1.5), IntegerType(5, 5)), expected)

    def test_binary_into_string(self):
        self.assertEqual(self.merge(BinaryType(), StringType()), StringType())
        self.assertEqual(self.merge(StringType(), BinaryType()), StringType())

    def test_timestamp_and_string_form_union(self):
        self.assertEqual(self.merge(TimestampType(), StringType()),
                         UnionType([StringType(), TimestampType()]))

    def test_new_union_is_ordered_by_kind(self):
        """Test that union children do not depend on argument order."""
        left = self.merge(StringType(), BooleanType())
        right = self.merge(BooleanType(), StringType())
        self.assertEqual(left.children, [BooleanType(), StringType()])
        self.assertEqual(right.children, [BooleanType(), StringType()])

    def test_union_deduplication(self):
        """Test that a recurring alternative widens the existing child."""
        union = UnionType([IntegerType(1, 1), StringType()])
        merged = self.merge(union, IntegerType(10, 10))
        self.assertEqual(merged, UnionType([IntegerType(1, 10), StringType()]))
        self.assertEqual(len(merged.children), 2)

    def test_union_absorbs_compatible_kinds(self):
        """Test that a float widens the integer child and a string replaces binary."""
        union = UnionType([IntegerType(1, 4), BinaryType()])
        merged = self.merge(union, FloatingPointType(0.5, 0.5))
        self.assertEqual(merged, UnionType([FloatingPointType(0.5, 4.0), BinaryType()]))
        merged = self.merge(merged, StringType())
        self.assertEqual(merged, UnionType([FloatingPointType(0.5, 4.0), StringType()]))
        self.assertEqual(self.merge(merged, BinaryType()), merged)

    def test_union_with_union(self):
        left = UnionType([BooleanType(), IntegerType(0, 1)])
        right = UnionType([IntegerType(7, 9), StringType()])
        self.assertEqual(self.merge(left, right),
                         UnionType([BooleanType(), IntegerType(0, 9), StringType()]))

    def test_struct_merge_keeps_all_keys(self):
        """Test that keys missing from one record are carried over."""
        left = self.inferrer.python_type_to_hive_type({"a": 1, "b": "x"})
        right = self.inferrer.python_type_to_hive_type({"a": 300, "c": True})
        merged = self.merge(left, right)
        self.assertEqual(list(merged.fields), ["a", "b", "c"])
        self.assertEqual(merged.fields["a"], IntegerType(1, 300))
        self.assertEqual(merged.fields["b"], StringType())
        self.assertEqual(merged.fields["c"], BooleanType())
        self.assertEqual(merged.shapes, frozenset({"a,b", "a,c"}))

    def test_shapes_do_not_affect_equality(self):
        self.assertEqual(StructType({"a": StringType()}, frozenset({"a"})),
                         StructType({"a": StringType()}, frozenset({"a", "a,b"})))

    def test_list_merge(self):
        self.assertEqual(self.merge(ListType(NullType()), ListType(IntegerType(1, 3))),
                         ListType(IntegerType(1, 3)))

    def test_merge_does_not_modify_inputs(self):
        """Test that merging returns new nodes and leaves the inputs untouched."""
        left = self.inferrer.python_type_to_hive_type({"a": 1, "u": [True]})
        right = self.inferrer.python_type_to_hive_type({"a": 99, "b": "x", "u": ["s"]})
        left_before = self.inferrer.python_type_to_hive_type({"a": 1, "u": [True]})
        right_before = self.inferrer.python_type_to_hive_type({"a": 99, "b": "x", "u": ["s"]})
        self.merge(left, right)
        self.assertEqual(left, left_before)
        self.assertEqual(right, right_before)
        self.assertEqual(list(left.fields), ["a", "u"])

        union = UnionType([IntegerType(1, 1), StringType()])
        self.merge(union, IntegerType(5, 5))
        self.assertEqual(union.children, [IntegerType(1, 1), StringType()])

    def test_merge_hive_types(self):
        self.assertEqual(merge_hive_types(IntegerType(1, 1), None, IntegerType(3, 3)), IntegerType(1, 3))
        self.assertIsNone(merge_hive_types())


class TestScenarios(unittest.TestCase):
    """End-to-end inference over record sequences."""

    def test_scenario_int_then_float(self):
        schema = infer_hive_schema_from_json([{"a": 1}, {"a": 2.5}])
        self.assertEqual(schema.fields["a"], FloatingPointType(1.0, 2.5))
        self.assertEqual(hive_type_string(schema), "struct<a:float>")

    def test_scenario_binary_then_string(self):
        schema = infer_hive_schema_from_json([{"a": "ff"}, {"a": "hello"}])
        self.assertEqual(schema.fields["a"], StringType())

    def test_scenario_boolean_then_string(self):
        schema = infer_hive_schema_from_json([{"a": True}, {"a": "x"}])
        self.assertEqual(hive_type_string(schema.fields["a"]), "uniontype<boolean,string>")

    def test_scenario_empty_then_filled_array(self):
        schema = infer_hive_schema_from_json([{"a": []}, {"a": [1, 2, 3]}])
        self.assertEqual(schema.fields["a"], ListType(IntegerType(1, 3)))

    def test_scenario_alternating_field(self):
        """Test that an alternating field keeps exactly two alternatives."""
        records = ({"b": i} if i % 2 == 0 else {"b": str(i) + "x"} for i in range(100000))
        schema = infer_hive_schema_from_json(records)
        self.assertEqual(schema.fields["b"], UnionType([IntegerType(0, 99998), StringType()]))

    def test_empty_input(self):
        self.assertIsNone(infer_hive_schema_from_json([]))

    def test_non_struct_records(self):
        """Test that bare arrays and scalars are legal records."""
        schema = infer_hive_schema_from_json([[1], [2, 3]])
        self.assertEqual(schema, ListType(IntegerType(1, 3)))
        schema = infer_hive_schema_from_json([1, "x"])
        self.assertEqual(schema, UnionType([IntegerType(1, 1), StringType()]))

    def test_failed_record_leaves_accumulator(self):
        """Test that a rejected record does not change the schema folded so far."""
        inferrer = HiveSchemaInferrer()
        schema = inferrer.fold(None, {"a": 1})
        with self.assertRaises(NumericRangeError):
            schema = inferrer.fold(schema, {"a": 2, "b": 2 ** 64})
        self.assertEqual(schema, make_struct({"a": IntegerType(1, 1)}))


if __name__ == '__main__':
    unittest.main()
