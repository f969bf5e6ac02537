"""
Alignment Window Queries on the cDNA Pair BAM

Reads are aligned to transcript sequences, so every coordinate here is a
transcript (cDNA) coordinate. A window query returns one AlignmentSegment
per aligned record overlapping a 1-based inclusive window of a transcript.

SAM Columns Used (samtools view output):
    Col 1:  Query name
    Col 2:  Flag (0x10 = read reverse complemented)
    Col 3:  Reference (transcript) name
    Col 4:  Alignment start (1-based)
    Col 10: Read sequence

Two query backends are available:
- BamWindowQuery: random access through pysam
- SamtoolsWindowQuery: runs a samtools binary and parses its text output
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional

import pysam

from .errors import AlignmentQueryError, MalformedRecordError

logger = logging.getLogger(__name__)

FLAG_REVERSE = 0x10


@dataclass
class AlignmentSegment:
    """One aligned read record, reduced to what the support count needs."""
    read_name: str
    strand: str
    genomic_start: int
    genomic_end: int
    transcript_name: str


def _segment(read_name: str, flag: int, transcript: str, start: int, seq_length: int) -> AlignmentSegment:
    return AlignmentSegment(
        read_name=read_name,
        strand="-" if flag & FLAG_REVERSE else "+",
        genomic_start=start,
        genomic_end=start + seq_length - 1,
        transcript_name=transcript,
    )


def parse_sam_line(line: str) -> Optional[AlignmentSegment]:
    """
    Parse one SAM text line into an AlignmentSegment.

    Args:
        line: Tab-separated SAM record

    Returns:
        AlignmentSegment, or None for a header line

    Raises:
        MalformedRecordError: If the line is short or FLAG/POS are not integers

    Examples:
        >>> seg = parse_sam_line("r1\\t16\\tENST1\\t100\\t60\\t4M\\t=\\t50\\t0\\tACGT\\tIIII")
        >>> (seg.strand, seg.genomic_start, seg.genomic_end)
        ('-', 100, 103)
    """
    if line.startswith('@'):
        return None

    parts = line.rstrip('\r\n').split('\t')
    if len(parts) < 11:
        raise MalformedRecordError(
            f"SAM record has {len(parts)} columns, expected 11: {line.rstrip()!r}"
        )

    try:
        flag = int(parts[1])
        pos = int(parts[3])
    except ValueError as e:
        raise MalformedRecordError(f"Bad SAM record {parts[0]}: {e}") from e

    # an absent sequence ('*') still counts as one character
    return _segment(parts[0], flag, parts[2], pos, len(parts[9]))


def segment_from_read(read: pysam.AlignedSegment) -> AlignmentSegment:
    """
    Convert a pysam aligned read into an AlignmentSegment.

    pysam positions are 0-based, so the SAM (1-based) start is
    reference_start + 1. The end is derived from the read sequence length,
    not from the CIGAR, so a record without SEQ spans one base exactly as
    parse_sam_line reads it.
    """
    seq_length = read.query_length or 1
    return _segment(
        read.query_name,
        read.flag,
        read.reference_name,
        read.reference_start + 1,
        seq_length,
    )


class BamWindowQuery:
    """
    Fetch segments from an indexed BAM through pysam.

    Example:
        with BamWindowQuery("cdna.pair.bam") as query:
            segments = query("ENST00000288602", 200, 800)
    """

    def __init__(self, bam_path: str):
        self.bam_path = bam_path
        self.fh = pysam.AlignmentFile(bam_path, 'rb')

    def __call__(self, transcript: str, start: int, end: int) -> List[AlignmentSegment]:
        """
        Args:
            transcript: Transcript (reference) name
            start: Window start (1-based, inclusive)
            end: Window end (1-based, inclusive)

        Raises:
            AlignmentQueryError: If the transcript is not a BAM reference
        """
        logger.debug(f"Fetching {transcript}:{start}-{end} from {self.bam_path}")
        try:
            reads = self.fh.fetch(transcript, start - 1, end)
        except ValueError as e:
            raise AlignmentQueryError(
                f"Cannot fetch {transcript}:{start}-{end} from {self.bam_path}: {e}"
            ) from e
        return [segment_from_read(read) for read in reads]

    def close(self):
        self.fh.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class SamtoolsWindowQuery:
    """
    Fetch segments by running 'samtools view' on a region string.

    Raises AlignmentQueryError if samtools exits non-zero and
    MalformedRecordError on output lines that are not SAM records.
    """

    def __init__(self, bam_path: str, samtools_bin: str = "samtools"):
        self.bam_path = bam_path
        self.samtools_bin = samtools_bin

    def region(self, transcript: str, start: int, end: int) -> str:
        return f"{transcript}:{start}-{end}"

    def __call__(self, transcript: str, start: int, end: int) -> List[AlignmentSegment]:
        region = self.region(transcript, start, end)
        cmd = [self.samtools_bin, "view", self.bam_path, region]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            raise AlignmentQueryError(
                f"samtools view {region} on {self.bam_path} failed "
                f"(exit {e.returncode}): {(e.stderr or '').strip()}"
            ) from e

        segments = []
        for line in result.stdout.splitlines():
            segment = parse_sam_line(line)
            if segment is not None:
                segments.append(segment)
        return segments

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def make_window_query(bam_path: str, samtools_bin: Optional[str] = None):
    """
    Choose a window query backend.

    Args:
        bam_path: Path to the indexed cDNA pair BAM
        samtools_bin: samtools executable; when given, samtools is used
            instead of pysam

    Returns:
        SamtoolsWindowQuery or BamWindowQuery
    """
    if samtools_bin:
        logger.info(f"Querying {bam_path} with {samtools_bin}")
        return SamtoolsWindowQuery(bam_path, samtools_bin)
    logger.info(f"Querying {bam_path} with pysam")
    return BamWindowQuery(bam_path)
