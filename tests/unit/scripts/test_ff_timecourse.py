"""
Tests for the `ff-timecourse` command-line front end and the occupancy plot.
"""
import pytest

from rna_kinetics.scripts import occupancy_plot
from rna_kinetics.scripts.ff_timecourse import main
from rna_kinetics.timecourse import Timeline


@pytest.fixture()
def inputs(tmp_path):
    fasta = tmp_path / "hp.fa"
    fasta.write_text(">hp\nGGGAAACCC\n")
    folded = tmp_path / "folded.ms"
    folded.write_text(">folded\nGGGAAACCC\n(((...)))\n")
    opened = tmp_path / "open.ms"
    opened.write_text("GGGAAACCC\n.........\n")
    return tmp_path, fasta, [folded, opened]


def run_args(fasta, macrostates, *extra):
    return [
        str(fasta), "--macrostates", *map(str, macrostates),
        "--t-end", "1e-4", "--t-ext", "1e-6", "--t-lin", "2", "--t-log", "3", *extra,
    ]


def test_timecourse_summary(inputs, capsys):
    """
    The summary lists macro-state free energies, the trajectory count and the
    occupancy table with one row per checkpoint.
    """
    _, fasta, macrostates = inputs
    code = main(run_args(fasta, macrostates, "-n", "4", "--seed", "3"))
    out = capsys.readouterr().out

    assert code == 0
    assert out.startswith(">hp\nGGGAAACCC\n")
    assert "# folded: 1 structure(s), G = -1.12 kcal/mol" in out
    assert "# open: 1 structure(s), G = 0.00 kcal/mol" in out
    assert "# trajectories: 4" in out
    # Header row plus 0, 2 linear points, 2 log points and t_end.
    table = out.split("# trajectories: 4\n")[1].splitlines()
    assert len(table) == 1 + 6


def test_timeline_accumulates_across_runs(inputs, capsys):
    """
    A second run with `--timeline` adds to the saved statistics.
    """
    tmp_path, fasta, macrostates = inputs
    timeline_path = tmp_path / "hp.json"

    assert main(run_args(fasta, macrostates, "-n", "3", "--seed", "5", "--timeline", str(timeline_path))) == 0
    assert Timeline.load(timeline_path).n_trajectories == 3

    assert main(run_args(fasta, macrostates, "-n", "2", "--seed", "5", "--timeline", str(timeline_path))) == 0
    timeline = Timeline.load(timeline_path)
    assert timeline.n_trajectories == 5
    assert timeline.columns == ["folded", "open", "unassigned"]
    assert "# trajectories: 5" in capsys.readouterr().out


def test_mismatched_timeline_exits_with_code_2(inputs, capsys):
    """
    Extending a timeline with another schedule is refused and leaves it untouched.
    """
    tmp_path, fasta, macrostates = inputs
    timeline_path = tmp_path / "hp.json"
    assert main(run_args(fasta, macrostates, "-n", "1", "--seed", "1", "--timeline", str(timeline_path))) == 0

    args = run_args(fasta, macrostates, "-n", "1", "--timeline", str(timeline_path))
    args[args.index("--t-end") + 1] = "1e-3"
    assert main(args) == 2
    assert Timeline.load(timeline_path).n_trajectories == 1


def test_bad_macrostate_exits_with_code_2(inputs, capsys):
    tmp_path, fasta, _ = inputs
    wrong = tmp_path / "wrong.ms"
    wrong.write_text(">wrong\nGGGAAACCCA\n(((...))).\n")
    assert main(run_args(fasta, [wrong], "-n", "1")) == 2


def test_plot_written(inputs, capsys):
    """
    `--plot` writes the occupancy figure; the standalone plot command reads
    a saved timeline.
    """
    tmp_path, fasta, macrostates = inputs
    figure = tmp_path / "hp.png"
    timeline_path = tmp_path / "hp.json"
    args = run_args(fasta, macrostates, "-n", "2", "--seed", "2",
                    "--timeline", str(timeline_path), "--plot", str(figure))
    assert main(args) == 0
    assert figure.stat().st_size > 0

    second = tmp_path / "plots" / "again.svg"
    assert occupancy_plot.main([str(timeline_path), str(second), "--no-unassigned"]) == 0
    assert second.exists()
    assert occupancy_plot.main([str(tmp_path / "missing.json"), str(second)]) == 2


def test_unwritable_plot_exits_with_code_1(inputs, capsys):
    """
    A plot path below a regular file cannot be created.
    """
    tmp_path, fasta, macrostates = inputs
    timeline_path = tmp_path / "hp.json"
    assert main(run_args(fasta, macrostates, "-n", "1", "--seed", "1", "--timeline", str(timeline_path))) == 0
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")

    code = occupancy_plot.main([str(timeline_path), str(blocker / "occupancy.png")])
    assert code == 1
    assert "Cannot write plot" in capsys.readouterr().err


def test_non_numeric_seed_in_config_exits_with_code_2(inputs, capsys):
    tmp_path, fasta, macrostates = inputs
    config = tmp_path / "run.yaml"
    config.write_text("simulation:\n  seed: abc\n")
    assert main(run_args(fasta, macrostates, "-n", "1", "--config", str(config))) == 2
