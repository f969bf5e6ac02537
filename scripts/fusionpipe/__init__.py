"""
Fusion Pipeline - Breakpoint Support Library

Reusable functions for confirming candidate fusion breakpoints:
- Exon models and conversion between genomic and cDNA coordinates
- Breakpoint, region and fragment statistics readers
- Alignment window queries and spanning read pair counting
"""

from .coordinates import (
    genomic_position,
    transcript_position,
)

from .regions import (
    Interval,
    ExonModel,
    regions_length,
    merge_intervals,
    read_regions,
    read_gene_transcripts,
)

from .breakpoints import (
    Breakpoint,
    extract_gene_id,
    read_breakpoints,
    read_fragment_stats,
    max_fragment_length,
)

from .alignments import (
    AlignmentSegment,
    parse_sam_line,
    make_window_query,
)

from .support import (
    RegionTables,
    SupportTable,
    compute_support,
)

from .errors import (
    FusionPipeError,
    MalformedReferenceError,
    InvalidStrandError,
    AlignmentConsistencyError,
    MissingRegionError,
    MalformedStatsError,
    MalformedRecordError,
    AlignmentQueryError,
)

__version__ = "1.0.0"

__all__ = [
    # Coordinates
    "genomic_position",
    "transcript_position",
    # Regions
    "Interval",
    "ExonModel",
    "regions_length",
    "merge_intervals",
    "read_regions",
    "read_gene_transcripts",
    # Breakpoints
    "Breakpoint",
    "extract_gene_id",
    "read_breakpoints",
    "read_fragment_stats",
    "max_fragment_length",
    # Alignments
    "AlignmentSegment",
    "parse_sam_line",
    "make_window_query",
    # Support
    "RegionTables",
    "SupportTable",
    "compute_support",
    # Errors
    "FusionPipeError",
    "MalformedReferenceError",
    "InvalidStrandError",
    "AlignmentConsistencyError",
    "MissingRegionError",
    "MalformedStatsError",
    "MalformedRecordError",
    "AlignmentQueryError",
]
