"""
Unit tests for Timeline accumulation, merging and persistence.
"""
import json
import math

import numpy as np
import pytest

from rna_kinetics.errors import TimelineError, TimelineFormatError, TimelineMismatchError
from rna_kinetics.kinetics import TrajectoryStatus
from rna_kinetics.timecourse import OccupancySample, Timeline

SEQ = "GGGAAACCC"
TIMES = [0.0, 0.5, 1.0]
COLUMNS = ["hp", "unassigned"]


def sample(rows, sampled=(True, True, True), status=TrajectoryStatus.COMPLETED):
    return OccupancySample(np.array(rows, dtype=np.uint8), np.array(sampled, dtype=bool), status)


FOLDED = sample([[0, 1], [1, 0], [1, 0]])
OPEN = sample([[0, 1], [0, 1], [0, 1]])
ABSORBED = sample([[0, 1], [0, 0], [0, 0]], sampled=(True, False, False), status=TrajectoryStatus.ABSORBED)


def timeline_of(*samples):
    timeline = Timeline(SEQ, TIMES, COLUMNS)
    for s in samples:
        timeline.record_trajectory(s)
    return timeline


def test_mean_and_stderr():
    """
    Mean is the fraction of sampled trajectories in each macro-state; the
    standard error is sqrt(var / n) with the unbiased variance.
    """
    timeline = timeline_of(FOLDED, OPEN)
    mean, err = timeline.mean(), timeline.stderr()
    assert timeline.n_trajectories == 2
    assert mean[0].tolist() == [0.0, 1.0]
    assert mean[2].tolist() == [0.5, 0.5]
    # Variance of {0, 1} is 0.5, so stderr = sqrt(0.5 / 2) = 0.5.
    assert err[2, 0] == pytest.approx(0.5)
    assert err[0, 0] == pytest.approx(0.0)


def test_unsampled_cells_are_nan():
    """
    Cells without samples have NaN mean; single samples have NaN stderr.
    """
    timeline = timeline_of(ABSORBED)
    assert timeline.counts[:, 0].tolist() == [1, 0, 0]
    assert math.isnan(timeline.mean()[1, 0])
    assert math.isnan(timeline.stderr()[0, 0])

    timeline.record_trajectory(FOLDED)
    assert timeline.mean()[1].tolist() == [1.0, 0.0]
    assert timeline.mean()[0].tolist() == [0.0, 1.0]


def test_record_rejects_wrong_shape():
    with pytest.raises(TimelineMismatchError):
        timeline_of().record_trajectory(sample([[0, 1], [0, 1]], sampled=(True, True)))


def test_merge_is_commutative_and_associative():
    """
    Merging partial timelines in any order gives the same statistics as
    recording every trajectory into one.
    """
    a, b, c = timeline_of(FOLDED), timeline_of(OPEN, ABSORBED), timeline_of(FOLDED, OPEN)
    ab_c = a.copy().merge(b).merge(c)
    a_bc = a.copy().merge(b.copy().merge(c))
    c_b_a = c.copy().merge(b).merge(a)
    assert ab_c == a_bc == c_b_a
    assert ab_c == timeline_of(FOLDED, OPEN, ABSORBED, FOLDED, OPEN)
    assert ab_c.n_trajectories == 5


@pytest.mark.parametrize(
    "other",
    [
        Timeline("GGGAAAUCC", TIMES, COLUMNS),
        Timeline(SEQ, [0.0, 0.5, 2.0], COLUMNS),
        Timeline(SEQ, [0.0, 1.0], COLUMNS),
        Timeline(SEQ, TIMES, ["open", "unassigned"]),
    ],
)
def test_merge_mismatch(other):
    """
    Timelines on a different sequence, schedule or macro-state set cannot be merged.
    """
    with pytest.raises(TimelineMismatchError):
        timeline_of(FOLDED).merge(other)
    assert issubclass(TimelineMismatchError, TimelineError)


def test_save_and_load_round_trip(tmp_path):
    """
    A saved timeline loads back equal and leaves no temporary files behind.
    """
    timeline = timeline_of(FOLDED, OPEN, ABSORBED)
    path = timeline.save(tmp_path / "sub" / "hp.json")
    assert Timeline.load(path) == timeline
    assert [p.name for p in path.parent.iterdir()] == ["hp.json"]

    data = json.loads(path.read_text())
    assert data["format"] == "rna_kinetics.timeline"
    assert data["version"] == 1
    assert data["macrostates"] == COLUMNS


def test_save_replaces_existing_file(tmp_path):
    path = tmp_path / "hp.json"
    timeline_of(FOLDED).save(path)
    timeline_of(FOLDED, OPEN).save(path)
    assert Timeline.load(path).n_trajectories == 2


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        "[]",
        json.dumps({"format": "something-else", "version": 1}),
        json.dumps({"format": "rna_kinetics.timeline", "version": 99}),
        json.dumps({"format": "rna_kinetics.timeline", "version": 1, "sequence": SEQ}),
    ],
)
def test_load_rejects_corrupt_files(tmp_path, content):
    """
    Unreadable, foreign or incomplete files raise TimelineFormatError.
    """
    path = tmp_path / "bad.json"
    path.write_text(content)
    with pytest.raises(TimelineFormatError):
        Timeline.load(path)


def test_load_rejects_bad_shapes(tmp_path):
    data = timeline_of(FOLDED).to_dict()
    data["counts"] = [[1, 1]]
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(data))
    with pytest.raises(TimelineFormatError):
        Timeline.load(path)


def test_load_missing_file(tmp_path):
    with pytest.raises(TimelineFormatError):
        Timeline.load(tmp_path / "missing.json")


def test_to_table_rendering():
    """
    The table has a header plus one row per checkpoint, with NA for unsampled cells.
    """
    table = timeline_of(ABSORBED).to_table(precision=2)
    lines = table.splitlines()
    assert len(lines) == 1 + len(TIMES)
    assert "hp" in lines[0] and "unassigned" in lines[0]
    assert "NA" in lines[2]
    assert "1.00" in lines[1]
