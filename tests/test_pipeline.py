"""
Tests for the configured breakpoint support run and its stage script.

Expected counts with the conftest tables (max fragment 310, splice bias 10):
    cluster 1 / ENSG0001: 3 (second breakpoint replaces the first, 1)
    cluster 2 / ENSG0002: 0 (no transcripts annotated)
"""

import importlib.util
import io
import sys
from pathlib import Path

import pytest
import yaml

# Add scripts directory to path for imports
scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))

from fusionpipe.errors import MalformedReferenceError, MalformedStatsError
from fusionpipe.pipeline import run

EXPECTED_OUTPUT = "1\tENSG0001\t3\n2\tENSG0002\t0\n"


def load_stage_script(scripts_dir):
    path = scripts_dir / "05_fusion_support" / "5.2_calc_break_concordant.py"
    spec = importlib.util.spec_from_file_location("calc_break_concordant", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


# ============================================================================
# Tests: Pipeline Run
# ============================================================================

class TestRun:
    """Tests for pipeline.run with an injected alignment query."""

    def test_output_handle(self, sample_config, pipeline_files, fake_query, temp_dir):
        out = io.StringIO()
        table = run(sample_config, str(temp_dir), str(pipeline_files["breaks"]),
                    output=out, window_query=fake_query)
        assert out.getvalue() == EXPECTED_OUTPUT
        assert table.get("1", "ENSG0001") == 3

    def test_output_path(self, sample_config, pipeline_files, fake_query, temp_dir):
        out_path = temp_dir / "break.concordant.tsv"
        run(sample_config, str(temp_dir), str(pipeline_files["breaks"]),
            output=str(out_path), window_query=fake_query)
        assert out_path.read_text() == EXPECTED_OUTPUT

    def test_stdout(self, sample_config, pipeline_files, fake_query, temp_dir, capsys):
        run(sample_config, str(temp_dir), str(pipeline_files["breaks"]), window_query=fake_query)
        assert capsys.readouterr().out == EXPECTED_OUTPUT

    def test_stats_override(self, sample_config, pipeline_files, fake_query, temp_dir):
        """A small fragment length narrows every query window."""
        stats = temp_dir / "narrow.stats"
        stats.write_text("fraglength_mean\tfraglength_stddev\n30\t0\n")
        run(sample_config, str(temp_dir), str(pipeline_files["breaks"]),
            output=io.StringIO(), stats_filename=str(stats), window_query=fake_query)
        assert fake_query.calls[0] == ("ENST0001", 70, 130)

    def test_bad_stats(self, sample_config, pipeline_files, fake_query, temp_dir):
        pipeline_files["stats"].write_text("fraglength_mean\n")
        with pytest.raises(MalformedStatsError):
            run(sample_config, str(temp_dir), str(pipeline_files["breaks"]),
                output=io.StringIO(), window_query=fake_query)

    def test_malformed_reference_aborts(self, sample_config, pipeline_files, fake_query, temp_dir):
        pipeline_files["breaks"].write_text("1\tENSG0001\t+\t100\n2\tunknown\t+\t5\n")
        out = io.StringIO()
        with pytest.raises(MalformedReferenceError):
            run(sample_config, str(temp_dir), str(pipeline_files["breaks"]),
                output=out, window_query=fake_query)
        assert out.getvalue() == ""


# ============================================================================
# Tests: Stage Script
# ============================================================================

class TestStageScript:
    """End to end through 5.2_calc_break_concordant.py with a real BAM."""

    @pytest.fixture
    def run_dir(self, temp_dir, pipeline_files, sample_config, write_bam, transcript_segments):
        write_bam(
            temp_dir / "cdna.pair.bam",
            [("ENST0001", 1000), ("ENST0002", 1000)],
            transcript_segments,
        )
        config_path = temp_dir / "config.yaml"
        config_path.write_text(yaml.safe_dump(sample_config))
        return temp_dir

    def test_writes_support(self, run_dir, scripts_dir, pipeline_files):
        script = load_stage_script(scripts_dir)
        out_path = run_dir / "break.concordant.tsv"
        status = script.main([
            "-c", str(run_dir / "config.yaml"),
            "-o", str(run_dir),
            "-b", str(pipeline_files["breaks"]),
            "--out", str(out_path),
        ])
        assert status == 0
        assert out_path.read_text() == EXPECTED_OUTPUT

    def test_fatal_error_exit_status(self, run_dir, scripts_dir, pipeline_files):
        pipeline_files["breaks"].write_text("1\tENSG0001\t*\t100\n")
        script = load_stage_script(scripts_dir)
        status = script.main([
            "-c", str(run_dir / "config.yaml"),
            "-o", str(run_dir),
            "-b", str(pipeline_files["breaks"]),
            "--out", str(run_dir / "out.tsv"),
        ])
        assert status == 1

    def test_transcript_missing_from_bam(self, run_dir, scripts_dir, pipeline_files,
                                         write_bam, transcript_segments, caplog):
        """An indexed transcript that the BAM lacks stops the run with exit status 1."""
        write_bam(
            run_dir / "cdna.pair.bam",
            [("ENST0001", 1000)],
            {"ENST0001": transcript_segments["ENST0001"]},
        )
        out_path = run_dir / "break.concordant.tsv"
        script = load_stage_script(scripts_dir)
        status = script.main([
            "-c", str(run_dir / "config.yaml"),
            "-o", str(run_dir),
            "-b", str(pipeline_files["breaks"]),
            "--out", str(out_path),
        ])
        assert status == 1
        assert not out_path.exists()
        assert "ENST0002" in caplog.text

    def test_invalid_config(self, run_dir, scripts_dir, pipeline_files, sample_config):
        sample_config["parameters"]["splice_bias"] = -5
        (run_dir / "config.yaml").write_text(yaml.safe_dump(sample_config))
        script = load_stage_script(scripts_dir)
        status = script.main([
            "-c", str(run_dir / "config.yaml"),
            "-o", str(run_dir),
            "-b", str(pipeline_files["breaks"]),
        ])
        assert status == 1
