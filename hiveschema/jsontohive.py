"""Infers a Hive schema from JSON files.

This module provides:
- j2h: Infer a Hive create table statement (or flat path listing) from JSON files

Input files hold one or more JSON documents separated by whitespace, which
includes JSON Lines. Files ending in .gz are decompressed on the fly.
"""

import gzip
import logging
import os
from concurrent.futures import ProcessPoolExecutor
from contextlib import closing
from itertools import islice, repeat
from typing import Any, Iterator, List, Optional, Tuple

import ijson

from hiveschema.common import InputFormatError, NumericRangeError
from hiveschema.hivetoddl import HiveToDdl
from hiveschema.hivetypes import HiveType, Kind
from hiveschema.schema_inference import HiveSchemaInferrer

logger = logging.getLogger(__name__)


def _open_input(file_path: str):
    if file_path.endswith('.gz'):
        return gzip.open(file_path, 'rb')
    return open(file_path, 'rb')


def _is_blank(file_path: str) -> bool:
    with _open_input(file_path) as f:
        for chunk in iter(lambda: f.read(65536), b''):
            if chunk.strip():
                return False
    return True


def iter_json_values(file_path: str) -> Iterator[Any]:
    """Yields the top-level JSON values of a file without loading it whole.

    Integral numbers are yielded as int, all other numbers as Decimal.

    Raises:
        InputFormatError: The file holds malformed JSON
    """
    count = 0
    with _open_input(file_path) as f:
        try:
            for value in ijson.items(f, '', multiple_values=True):
                count += 1
                yield value
        except ijson.JSONError as e:
            if count == 0 and _is_blank(file_path):
                return
            raise InputFormatError(f"Malformed JSON after {count} records: {e}", file_path, e) from e


def iter_json_records(input_files: List[str]) -> Iterator[Tuple[str, Any]]:
    """Concatenates the values of all input files into one record stream."""
    for file_path in input_files:
        logger.info("Reading %s", file_path)
        for value in iter_json_values(file_path):
            yield file_path, value


def _fold_records(inferrer: HiveSchemaInferrer, input_files: List[str], sample_size: int,
                  skip_errors: bool) -> Tuple[int, Optional[HiveType]]:
    count = 0
    skipped = 0
    schema: Optional[HiveType] = None
    with closing(iter_json_records(input_files)) as stream:
        records = islice(stream, sample_size) if sample_size > 0 else stream
        for file_path, value in records:
            count += 1
            try:
                schema = inferrer.fold(schema, value)
            except NumericRangeError as e:
                if not skip_errors:
                    raise
                skipped += 1
                logger.warning("Skipping record %d from %s: %s", count, file_path, e)
    logger.info("%d records read, %d skipped", count, skipped)
    return count, schema


def _infer_partition(file_path: str, skip_errors: bool, infer_timestamps: bool,
                     infer_binary: bool) -> Tuple[int, Optional[HiveType]]:
    inferrer = HiveSchemaInferrer(infer_timestamps=infer_timestamps, infer_binary=infer_binary)
    return _fold_records(inferrer, [file_path], 0, skip_errors)


def infer_hive_schema_from_files(
    input_files: List[str],
    sample_size: int = 0,
    skip_errors: bool = False,
    jobs: int = 1,
    infer_timestamps: bool = True,
    infer_binary: bool = True
) -> Tuple[int, Optional[HiveType]]:
    """Infers one schema covering every record of the input files.

    Args:
        input_files: JSON file paths, read in order as one record stream
        sample_size: Maximum number of records to read (0 = all)
        skip_errors: Skip records with out-of-range integers instead of failing
        jobs: Number of worker processes; each file is folded separately and
            the per-file schemas are merged afterwards
        infer_timestamps: Classify date/time strings as timestamp
        infer_binary: Classify hex-digit strings as binary

    Returns:
        Tuple of (records read, schema). The schema is None when no record was read.
    """
    if not input_files:
        raise ValueError("At least one input file is required")
    if jobs > 1 and sample_size > 0:
        raise ValueError("sample_size cannot be combined with more than one job")

    inferrer = HiveSchemaInferrer(infer_timestamps=infer_timestamps, infer_binary=infer_binary)
    if jobs > 1 and len(input_files) > 1:
        with ProcessPoolExecutor(max_workers=jobs) as executor:
            results = list(executor.map(_infer_partition, input_files, repeat(skip_errors),
                                        repeat(infer_timestamps), repeat(infer_binary)))
        count = sum(partition_count for partition_count, _ in results)
        return count, inferrer.merge_all(schema for _, schema in results)
    return _fold_records(inferrer, input_files, sample_size, skip_errors)


def render_hive_schema(record_count: int, schema: Optional[HiveType], table_name: str = 'tbl',
                       flat: bool = False, emit_shapes: bool = False) -> str:
    """Builds the full report: record count, blank line, then the schema."""
    printer = HiveToDdl()
    lines = [f"{record_count} records read", ""]
    if flat:
        lines.append(printer.render_flat(schema))
    else:
        lines.append(printer.render_table(schema, table_name))
    if emit_shapes and schema is not None and schema.kind == Kind.STRUCT:
        lines.append(f"{len(schema.shapes)} distinct shapes")
        lines.extend(f"   {{{shape}}}" for shape in sorted(schema.shapes))
        lines.append("")
    return '\n'.join(lines)


def convert_json_to_hive(
    input_files: List[str],
    hive_schema_file: str,
    table_name: str = 'tbl',
    flat: bool = False,
    sample_size: int = 0,
    skip_errors: bool = False,
    jobs: int = 1,
    infer_timestamps: bool = True,
    infer_binary: bool = True,
    emit_shapes: bool = False
) -> None:
    """Infers a Hive schema from JSON files and writes it as text.

    Args:
        input_files: List of JSON file paths to analyze
        hive_schema_file: Output path for the schema text
        table_name: Name used in the create table statement
        flat: Write one path-qualified line per leaf field instead of a table
        sample_size: Maximum number of records to sample (0 = all)
        skip_errors: Skip records with out-of-range integers instead of failing
        jobs: Number of worker processes (one file per worker)
        infer_timestamps: Classify date/time strings as timestamp
        infer_binary: Classify hex-digit strings as binary
        emit_shapes: Append the distinct top-level field sets seen
    """
    count, schema = infer_hive_schema_from_files(
        input_files, sample_size=sample_size, skip_errors=skip_errors, jobs=jobs,
        infer_timestamps=infer_timestamps, infer_binary=infer_binary)
    text = render_hive_schema(count, schema, table_name=table_name, flat=flat, emit_shapes=emit_shapes)

    # Ensure output directory exists
    output_dir = os.path.dirname(hive_schema_file)
    if output_dir and not os.path.exists(output_dir):
        os.makedirs(output_dir)

    with open(hive_schema_file, 'w', encoding='utf-8') as f:
        f.write(text)
