"""
Pytest configuration and fixtures for fusion pipeline tests.
"""

import sys
import tempfile
from pathlib import Path

import pysam
import pytest

# Add scripts directory to path for imports
scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))

from fusionpipe.alignments import AlignmentSegment
from fusionpipe.regions import ExonModel


# ============================================================================
# Path Fixtures
# ============================================================================

@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def scripts_dir(project_root):
    """Return the scripts directory."""
    return project_root / "scripts"


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# Exon Model Fixtures
# ============================================================================

@pytest.fixture
def single_exon_plus():
    """Single-exon plus-strand model, exon [1000, 1199] (length 200)."""
    return ExonModel("+", ((1000, 1199),))


@pytest.fixture
def two_exon_plus():
    """Two-exon plus-strand model, exons [1000, 1099] and [2000, 2099]."""
    return ExonModel("+", ((1000, 1099), (2000, 2099)))


@pytest.fixture
def two_exon_minus():
    """Two-exon minus-strand model, exons [1000, 1099] and [2000, 2099]."""
    return ExonModel("-", ((1000, 1099), (2000, 2099)))


# ============================================================================
# Table Fixtures
# ============================================================================

@pytest.fixture
def gene_regions_content():
    """Gene pseudo-transcript region table."""
    return (
        "ENSG0001\t7\t+\t1000\t1099\t2000\t2099\n"
        "ENSG0002\t12\t-\t5000\t5199\n"
    )


@pytest.fixture
def transcript_regions_content():
    """Transcript region table."""
    return (
        "# transcript\tchromosome\tstrand\texons\n"
        "ENST0001\t7\t+\t1000\t1099\t2000\t2099\n"
        "ENST0002\t7\t+\t2000\t2099\n"
    )


@pytest.fixture
def gene_transcripts_content():
    """Gene to transcript index; ENSG0002 has no transcripts."""
    return (
        "ENSG0001\tENST0001\n"
        "ENSG0001\tENST0002\n"
    )


@pytest.fixture
def breakpoints_content():
    """Two breakpoints for cluster 1 (same gene), one for cluster 2."""
    return (
        "1\tENSG0001|ENST0001\t+\t100\n"
        "1\tENSG0001|ENST0001\t-\t150\n"
        "2\tENSG0002\t-\t20\n"
    )


@pytest.fixture
def stats_content():
    """Fragment statistics giving a max fragment length of 310."""
    return "fraglength_mean\tfraglength_stddev\n250\t20\n"


@pytest.fixture
def pipeline_files(temp_dir, gene_regions_content, transcript_regions_content,
                   gene_transcripts_content, breakpoints_content, stats_content):
    """Write every table of one run into temp_dir."""
    files = {
        "cdna_gene_regions": temp_dir / "cdna.gene.regions",
        "cdna_regions": temp_dir / "cdna.regions",
        "gene_tran_list": temp_dir / "gene.tran.list",
        "breaks": temp_dir / "breaks.tsv",
        "stats": temp_dir / "concordant.read.stats",
    }
    files["cdna_gene_regions"].write_text(gene_regions_content)
    files["cdna_regions"].write_text(transcript_regions_content)
    files["gene_tran_list"].write_text(gene_transcripts_content)
    files["breaks"].write_text(breakpoints_content)
    files["stats"].write_text(stats_content)
    return files


# ============================================================================
# Alignment Fixtures
# ============================================================================

@pytest.fixture
def transcript_segments():
    """
    Segments per transcript as (read_name, strand, start, end).

    ENST0001: r1 spans 100 and 150, r2 spans 150 only, r3 is unpaired,
    r4's minus mate ends exactly at 100.
    ENST0002: r5 spans 50 but not 1.
    """
    return {
        "ENST0001": [
            ("r1", "+", 50, 149),
            ("r1", "-", 180, 279),
            ("r2", "+", 100, 199),
            ("r2", "-", 150, 249),
            ("r3", "+", 60, 159),
            ("r4", "+", 10, 109),
            ("r4", "-", 60, 100),
        ],
        "ENST0002": [
            ("r5", "+", 1, 100),
            ("r5", "-", 120, 219),
        ],
    }


class FakeAlignmentQuery:
    """Window query over in-memory segments; records every call."""

    def __init__(self, segments_by_transcript):
        self.segments = {
            transcript: [
                AlignmentSegment(name, strand, start, end, transcript)
                for name, strand, start, end in rows
            ]
            for transcript, rows in segments_by_transcript.items()
        }
        self.calls = []

    def __call__(self, transcript, start, end):
        self.calls.append((transcript, start, end))
        return [
            seg for seg in self.segments.get(transcript, [])
            if seg.genomic_start <= end and seg.genomic_end >= start
        ]

    def close(self):
        pass


@pytest.fixture
def make_query():
    """Factory fixture building a FakeAlignmentQuery."""
    return FakeAlignmentQuery


@pytest.fixture
def fake_query(transcript_segments):
    """Fake query over the default transcript segments."""
    return FakeAlignmentQuery(transcript_segments)


@pytest.fixture
def write_bam():
    """Factory fixture writing a sorted, indexed BAM of single-end records."""
    def _write_bam(path, references, segments_by_transcript, template_length=0):
        header = {
            "HD": {"VN": "1.0", "SO": "coordinate"},
            "SQ": [{"SN": name, "LN": length} for name, length in references],
        }
        ref_ids = {name: i for i, (name, _) in enumerate(references)}
        records = []
        for transcript, rows in segments_by_transcript.items():
            for name, strand, start, end in rows:
                records.append((ref_ids[transcript], start, name, strand, end))
        records.sort()

        with pysam.AlignmentFile(str(path), "wb", header=header) as out:
            for ref_id, start, name, strand, end in records:
                length = end - start + 1
                read = pysam.AlignedSegment()
                read.query_name = name
                read.query_sequence = "A" * length
                read.flag = 147 if strand == "-" else 99
                read.reference_id = ref_id
                read.reference_start = start - 1
                read.mapping_quality = 60
                read.cigartuples = ((0, length),)
                read.next_reference_id = ref_id
                read.next_reference_start = start - 1
                read.template_length = -template_length if strand == "-" else template_length
                read.query_qualities = pysam.qualitystring_to_array("I" * length)
                out.write(read)
        pysam.index(str(path))
        return path

    return _write_bam


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config(pipeline_files):
    """Configuration dictionary pointing at the pipeline_files tables."""
    return {
        "reference": {
            "cdna_gene_regions": str(pipeline_files["cdna_gene_regions"]),
            "cdna_regions": str(pipeline_files["cdna_regions"]),
            "gene_tran_list": str(pipeline_files["gene_tran_list"]),
        },
        "parameters": {
            "splice_bias": 10,
        },
        "tools": {
            "samtools_bin": None,
        },
    }
