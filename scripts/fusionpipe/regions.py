"""
Exon Region Models and Table Readers

Gene pseudo-transcripts and real transcripts are both described as an
ordered list of exons on one strand of a chromosome. This module holds the
in-memory model and the readers for the tab-separated tables it comes from.

Region Table Format:
    Col 1:  Gene or transcript identifier
    Col 2:  Chromosome
    Col 3:  Strand (+/-)
    Col 4+: Exon start / exon end pairs (1-based, inclusive)

    ENSG00000141510	17	-	7565097	7565332	7569524	7569562

Gene/Transcript Index Format:
    Col 1:  Gene identifier
    Col 2:  Transcript identifier

Exons are kept in the order the table lists them. Coordinate conversion
walks them in that order whatever the strand.
"""

import gzip
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import InvalidStrandError, MalformedRecordError

logger = logging.getLogger(__name__)

VALID_STRANDS = ("+", "-")


@dataclass(frozen=True)
class Interval:
    """Closed range [start, end] of 1-based coordinates."""
    start: int
    end: int

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(
                f"Interval start {self.start} is greater than end {self.end}"
            )

    @property
    def length(self) -> int:
        """Number of bases covered, both ends included."""
        return self.end - self.start + 1


@dataclass(frozen=True)
class ExonModel:
    """Strand and ordered exons of a gene or transcript."""
    strand: str
    exons: Tuple[Interval, ...]
    chromosome: Optional[str] = None

    def __post_init__(self):
        if self.strand not in VALID_STRANDS:
            raise InvalidStrandError(f"Invalid strand {self.strand!r}, expected '+' or '-'")
        if not self.exons:
            raise ValueError("An exon model needs at least one exon")
        # accept any sequence of intervals or (start, end) pairs
        exons = tuple(
            exon if isinstance(exon, Interval) else Interval(*exon)
            for exon in self.exons
        )
        object.__setattr__(self, "exons", exons)

    @property
    def total_length(self) -> int:
        """Combined length of all exons."""
        return regions_length(self.exons)


def regions_length(intervals: Iterable[Interval]) -> int:
    """
    Combined length of a set of closed intervals.

    Examples:
        >>> regions_length([Interval(1, 10), Interval(21, 25)])
        15
    """
    return sum(interval.length for interval in intervals)


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """
    Merge overlapping or book-ended closed intervals.

    Args:
        intervals: Intervals in any order

    Returns:
        List of merged intervals sorted by start

    Examples:
        >>> merge_intervals([Interval(1, 10), Interval(11, 20), Interval(30, 40)])
        [Interval(start=1, end=20), Interval(start=30, end=40)]
    """
    sorted_ivs = sorted(intervals, key=lambda iv: iv.start)
    if not sorted_ivs:
        return []

    merged = [[sorted_ivs[0].start, sorted_ivs[0].end]]
    for interval in sorted_ivs[1:]:
        prev_end = merged[-1][1]
        if interval.start <= prev_end + 1:
            merged[-1][1] = max(prev_end, interval.end)
        else:
            merged.append([interval.start, interval.end])

    return [Interval(s, e) for s, e in merged]


def has_overlapping_exons(model: ExonModel) -> bool:
    """
    True if any two exons of the model share a base.

    Merging only shortens the combined length when a base is covered twice;
    book-ended exons merge without losing length.
    """
    return regions_length(merge_intervals(model.exons)) < model.total_length


def _open_table(path: str):
    opener = gzip.open if str(path).endswith('.gz') else open
    return opener(path, 'rt')


def iter_table_lines(path: str) -> Iterable[Tuple[int, List[str]]]:
    """Yield (line_number, fields) for non-empty, non-comment lines."""
    with _open_table(path) as f:
        for line_number, line in enumerate(f, 1):
            if line.startswith('#') or not line.strip():
                continue
            yield line_number, line.rstrip('\r\n').split('\t')


def parse_region_fields(fields: List[str]) -> Tuple[str, ExonModel]:
    """
    Build an exon model from the columns of one region table line.

    Exon pairs are read from the fourth column onward; a trailing column
    without a partner is ignored.

    Raises:
        ValueError: If a coordinate is not an integer or an exon is inverted
        InvalidStrandError: If the strand column is not '+' or '-'

    Examples:
        >>> name, model = parse_region_fields(["T1", "chr1", "+", "100", "199"])
        >>> model.total_length
        100
    """
    if len(fields) < 5:
        raise ValueError(f"expected at least 5 columns, found {len(fields)}")

    name, chromosome, strand = fields[0], fields[1], fields[2]
    exons = [
        Interval(int(fields[i]), int(fields[i + 1]))
        for i in range(3, len(fields) - 1, 2)
    ]
    return name, ExonModel(strand=strand, exons=tuple(exons), chromosome=chromosome)


def read_regions(path: str) -> Dict[str, ExonModel]:
    """
    Read a region table into a mapping of identifier to exon model.

    Args:
        path: Path to region table (supports .gz)

    Returns:
        Dictionary of gene or transcript identifier to ExonModel. A repeated
        identifier keeps the last line seen.

    Raises:
        MalformedRecordError: If a line cannot be parsed
    """
    regions: Dict[str, ExonModel] = {}
    overlapping = 0

    for line_number, fields in iter_table_lines(path):
        try:
            name, model = parse_region_fields(fields)
        except (ValueError, InvalidStrandError) as e:
            raise MalformedRecordError(f"{path} line {line_number}: {e}") from e

        if has_overlapping_exons(model):
            overlapping += 1
            logger.debug(f"Overlapping exons in {name} ({path} line {line_number})")
        regions[name] = model

    if overlapping:
        logger.warning(f"{overlapping} regions in {path} have overlapping exons")
    logger.info(f"Loaded {len(regions)} regions from {path}")
    return regions


def read_gene_transcripts(path: str) -> Dict[str, List[str]]:
    """
    Read the gene to transcript index.

    Args:
        path: Path to tab-separated (gene_id, transcript_id) pairs

    Returns:
        Dictionary of gene identifier to transcript identifiers in file order

    Raises:
        MalformedRecordError: If a line has fewer than two columns
    """
    gene_transcripts: Dict[str, List[str]] = {}

    for line_number, fields in iter_table_lines(path):
        if len(fields) < 2:
            raise MalformedRecordError(
                f"{path} line {line_number}: expected gene and transcript columns"
            )
        gene_transcripts.setdefault(fields[0], []).append(fields[1])

    logger.info(f"Loaded transcripts for {len(gene_transcripts)} genes from {path}")
    return gene_transcripts
