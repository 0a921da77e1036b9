import pandas as pd
import pytest
from click.testing import CliRunner

from loopflow.cli import main


@pytest.fixture
def runner():
    return CliRunner()


def test_info(runner):
    result = runner.invoke(main, ["info"])
    assert result.exit_code == 0
    assert "loopflow v" in result.output
    assert "network" in result.output


def test_init_and_validate_config(runner, tmp_path):
    config_path = tmp_path / "config.yaml"
    result = runner.invoke(main, ["-q", "init-config", str(config_path)])
    assert result.exit_code == 0
    assert config_path.exists()

    result = runner.invoke(main, ["-q", "validate-config", str(config_path)])
    assert result.exit_code == 0
    assert "Configuration is valid" in result.output


def test_validate_config_with_issues(runner, tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("communities:\n  count_mode: per_community\n")
    result = runner.invoke(main, ["-q", "validate-config", str(config_path)])
    assert result.exit_code == 1
    assert "count_mode" in result.output


def test_run(runner, tmp_path, loops_file, promoters_file, enhancers_file):
    output_dir = tmp_path / "results"
    result = runner.invoke(
        main,
        [
            "-q",
            "run",
            str(loops_file),
            "--promoters",
            str(promoters_file),
            "--enhancers",
            str(enhancers_file),
            "-o",
            str(output_dir),
            "--include-singletons",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Communities: 2" in result.output
    assert "Mean enhancer/promoter ratio: 1.000" in result.output

    summary = pd.read_csv(output_dir / "community_summary.tsv", sep="\t")
    assert summary["size"].tolist() == [3, 1]


def test_run_needs_output_dir(runner, loops_file, promoters_file, enhancers_file):
    result = runner.invoke(
        main,
        [
            "-q",
            "run",
            str(loops_file),
            "--promoters",
            str(promoters_file),
            "--enhancers",
            str(enhancers_file),
        ],
    )
    assert result.exit_code == 1


def test_validate_loops(runner, loops_file):
    result = runner.invoke(main, ["-q", "utils", "validate-loops", str(loops_file)])
    assert result.exit_code == 0
    assert "num_loops: 4" in result.output
    assert "status_gained: 1" in result.output


def test_validate_bad_loops(runner, tmp_path):
    path = tmp_path / "bad.bedpe"
    path.write_text("chr1\t99\t50\tchr1\t1000\t1100\tgained\n")
    result = runner.invoke(main, ["-q", "utils", "validate-loops", str(path)])
    assert result.exit_code == 1


def test_adjust(runner, tmp_path):
    table = tmp_path / "pvalues.tsv"
    table.write_text("test\tp_value\na\t0.01\nb\t0.04\nc\t0.5\n")
    output = tmp_path / "adjusted.tsv"

    result = runner.invoke(
        main,
        ["-q", "utils", "adjust", str(table), "--method", "bonferroni", "-o", str(output)],
    )
    assert result.exit_code == 0
    adjusted = pd.read_csv(output, sep="\t")
    assert adjusted["p_adjusted"].tolist() == pytest.approx([0.03, 0.12, 1.0])
    assert adjusted["significant"].tolist() == [True, False, False]


def test_adjust_missing_column(runner, tmp_path):
    table = tmp_path / "pvalues.tsv"
    table.write_text("test\tpval\na\t0.01\n")
    result = runner.invoke(main, ["-q", "utils", "adjust", str(table)])
    assert result.exit_code == 1


def test_broken_yaml_config(runner, tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("loops: [unclosed\n")

    result = runner.invoke(main, ["-c", str(config_path), "info"])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Could not load configuration" in result.output

    result = runner.invoke(main, ["-q", "validate-config", str(config_path)])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


def test_run_with_genes(runner, tmp_path, loops_file, genes_file, enhancers_file):
    output_dir = tmp_path / "results"
    result = runner.invoke(
        main,
        [
            "-q",
            "run",
            str(loops_file),
            "--genes",
            str(genes_file),
            "--enhancers",
            str(enhancers_file),
            "-o",
            str(output_dir),
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Communities: 1" in result.output
    assert (output_dir / "community_summary.tsv").exists()


def test_run_needs_promoter_source(runner, tmp_path, loops_file, enhancers_file):
    result = runner.invoke(
        main,
        ["-q", "run", str(loops_file), "--enhancers", str(enhancers_file), "-o", str(tmp_path)],
    )
    assert result.exit_code == 1
