"""
Breakpoint and Fragment Statistics Readers

Breakpoint Table Format (one row per split-read orientation of a cluster):
    Col 1:  Cluster identifier
    Col 2:  Reference (free-form string containing an Ensembl gene id)
    Col 3:  Strand (+/-)
    Col 4:  Breakpoint position in the gene's pseudo-transcript coordinates

Fragment Statistics Format (exactly two lines):
    fraglength_mean	fraglength_stddev	...
    312.5	41.2	...
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import MalformedRecordError, MalformedReferenceError, MalformedStatsError
from .regions import iter_table_lines

logger = logging.getLogger(__name__)

# Ensembl gene identifier: fixed prefix followed by digits
GENE_ID_PATTERN = re.compile(r"ENSG\d+")

FRAGMENT_MEAN_KEY = "fraglength_mean"
FRAGMENT_STDDEV_KEY = "fraglength_stddev"


@dataclass
class Breakpoint:
    """Candidate fusion junction for one cluster."""
    cluster_id: str
    reference: str
    strand: str
    position: int


def extract_gene_id(reference: str) -> str:
    """
    Extract the gene identifier from a breakpoint reference.

    Args:
        reference: Reference string, e.g. 'ENSG00000157764|ENST00000288602'

    Returns:
        The first gene identifier found

    Raises:
        MalformedReferenceError: If the reference holds no gene identifier

    Examples:
        >>> extract_gene_id("ENSG00000157764|ENST00000288602")
        'ENSG00000157764'
    """
    match = GENE_ID_PATTERN.search(reference)
    if match is None:
        raise MalformedReferenceError(
            f"No gene identifier found in reference {reference!r}"
        )
    return match.group(0)


def parse_breakpoint_line(line: str, line_number: Optional[int] = None) -> Breakpoint:
    """
    Parse one line of the breakpoint table.

    Raises:
        MalformedRecordError: If the line has fewer than 4 columns or a
            non-integer position

    Examples:
        >>> bp = parse_breakpoint_line("12\\tENSG00000157764\\t+\\t1520")
        >>> bp.position
        1520
    """
    return _breakpoint_from_fields(line.rstrip('\r\n').split('\t'), line_number)


def _breakpoint_from_fields(fields: List[str], line_number: Optional[int]) -> Breakpoint:
    where = f"line {line_number}" if line_number is not None else "breakpoint line"
    if len(fields) < 4:
        raise MalformedRecordError(f"{where}: expected 4 columns, found {len(fields)}")
    try:
        position = int(fields[3])
    except ValueError as e:
        raise MalformedRecordError(
            f"{where}: position {fields[3]!r} is not an integer"
        ) from e
    return Breakpoint(
        cluster_id=fields[0],
        reference=fields[1],
        strand=fields[2],
        position=position,
    )


def read_breakpoints(path: str) -> List[Breakpoint]:
    """
    Read all breakpoints in file order.

    Args:
        path: Path to the breakpoint table (supports .gz)

    Returns:
        List of Breakpoint records
    """
    breakpoints = []
    for line_number, fields in iter_table_lines(path):
        try:
            breakpoints.append(_breakpoint_from_fields(fields, line_number))
        except MalformedRecordError as e:
            raise MalformedRecordError(f"{path} {e}") from e

    logger.info(f"Loaded {len(breakpoints)} breakpoints from {path}")
    return breakpoints


def read_fragment_stats(path: str) -> Dict[str, float]:
    """
    Read named statistics from a two line (header, values) file.

    Args:
        path: Path to statistics file

    Returns:
        Dictionary of statistic name to value

    Raises:
        MalformedStatsError: If the file is not exactly two rows of equal
            length, or a value is not numeric
    """
    with open(path, 'r') as f:
        lines = f.read().splitlines()

    if len(lines) != 2:
        raise MalformedStatsError(
            f"Stats file {path} does not have 2 lines (found {len(lines)})"
        )

    keys = lines[0].split('\t')
    values = lines[1].split('\t')
    if len(keys) != len(values):
        raise MalformedStatsError(f"Stats file {path} with column mismatch")

    stats = {}
    for key, value in zip(keys, values):
        try:
            stats[key] = float(value)
        except ValueError as e:
            raise MalformedStatsError(
                f"Stats file {path}: value {value!r} for {key} is not numeric"
            ) from e
    return stats


def max_fragment_length(stats: Dict[str, float]) -> int:
    """
    Approximate maximum fragment length as mean + 3 standard deviations.

    Examples:
        >>> max_fragment_length({"fraglength_mean": 250.0, "fraglength_stddev": 20.5})
        311
    """
    try:
        mean = stats[FRAGMENT_MEAN_KEY]
        stddev = stats[FRAGMENT_STDDEV_KEY]
    except KeyError as e:
        raise MalformedStatsError(f"Fragment statistics missing {e.args[0]}") from e
    return int(math.floor(mean + 3 * stddev))
