"""
Breakpoint Support Run

Loads everything one run needs from the configuration and the output
directory of the earlier pipeline steps, counts support and writes the
cluster/gene table.

Output directory inputs:
    cdna.pair.bam            concordant pairs aligned to transcripts (indexed)
    concordant.read.stats    fragment length statistics
"""

import logging
import os
import sys
from typing import Any, Dict, Optional

from utils.config_parser import get_nested

from .alignments import make_window_query
from .breakpoints import max_fragment_length, read_breakpoints, read_fragment_stats
from .regions import read_gene_transcripts, read_regions
from .support import SupportTable, compute_support

logger = logging.getLogger(__name__)

CDNA_BAM_NAME = "cdna.pair.bam"
READ_STATS_NAME = "concordant.read.stats"


def run(
    config: Dict[str, Any],
    output_directory: str,
    breaks_filename: str,
    output=None,
    stats_filename: Optional[str] = None,
    window_query=None,
) -> SupportTable:
    """
    Count breakpoint-spanning read pairs for every breakpoint.

    Args:
        config: Pipeline configuration (see config/config.example.yaml)
        output_directory: Directory holding the cDNA pair BAM and read stats
        breaks_filename: Breakpoint table
        output: Path or text handle for the result rows (default stdout)
        stats_filename: Fragment statistics file, overriding the default
        window_query: Alignment query to use instead of opening the BAM

    Returns:
        The SupportTable that was written
    """
    stats_path = stats_filename or os.path.join(output_directory, READ_STATS_NAME)
    max_fragment = max_fragment_length(read_fragment_stats(stats_path))
    splice_bias = int(get_nested(config, "parameters.splice_bias", 0))
    logger.info(f"Max fragment length: {max_fragment}, splice bias: {splice_bias}")

    gene_transcripts = read_gene_transcripts(get_nested(config, "reference.gene_tran_list"))
    transcript_regions = read_regions(get_nested(config, "reference.cdna_regions"))
    gene_regions = read_regions(get_nested(config, "reference.cdna_gene_regions"))
    breakpoints = read_breakpoints(breaks_filename)

    query = window_query
    if query is None:
        bam_path = os.path.join(output_directory, CDNA_BAM_NAME)
        query = make_window_query(bam_path, get_nested(config, "tools.samtools_bin"))

    try:
        table = compute_support(
            breakpoints,
            gene_regions,
            transcript_regions,
            gene_transcripts,
            query,
            max_fragment,
            splice_bias,
        )
    finally:
        if window_query is None:
            query.close()

    write_support(table, output)
    return table


def write_support(table: SupportTable, output=None) -> int:
    """Write the table to a path, an open handle, or stdout."""
    if output is None:
        written = table.write(sys.stdout)
    elif hasattr(output, "write"):
        written = table.write(output)
    else:
        with open(output, 'w') as f:
            written = table.write(f)
    logger.info(f"Wrote {written} support rows")
    return written
